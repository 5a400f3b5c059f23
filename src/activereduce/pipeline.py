"""
Online learning driver

Feeds examples one at a time through a learner stack: stamps each
example with the run's cumulative weight, dispatches learn or predict,
then finalizes it.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from .active_learning.cs_active import CostSensitiveActiveLearner
from .core.context import LearningContext
from .core.example import Example
from .core.learner import BaseLearner
from .core.parser import ExampleParser

logger = logging.getLogger(__name__)


class OnlineDriver:
    """
    Main loop of an online active learning run

    The driver owns the context's prediction sinks: use it as a context
    manager, or call ``close()``, to release files opened for the run.
    """

    def __init__(self,
                 learner: BaseLearner,
                 context: LearningContext,
                 parser: Optional[ExampleParser] = None,
                 query_pass: Optional[bool] = None,
                 training: bool = True):
        """
        Initialize driver

        Args:
            learner: Top of the learner stack
            context: Run context shared with the stack
            parser: Example parser; cost-sensitive when the learner is
            query_pass: Predict before learning so the stack can mark which
                costs it wants; defaults to on for cost-sensitive learners
                outside simulation mode
            training: Learn from labeled examples (predict only when False)
        """
        self.learner = learner
        self.context = context
        self.training = training

        is_cs = isinstance(learner, CostSensitiveActiveLearner)
        if parser is None:
            parser = ExampleParser(num_classes=learner.num_classes if is_cs else None)
        self.parser = parser
        if query_pass is None:
            query_pass = is_cs and not learner.simulation
        self.query_pass = query_pass

        self.examples_processed = 0

    def setup_example(self, ec: Example):
        stats = self.context.stats
        if ec.label.is_labeled:
            stats.set_minmax(ec.label.label)
        stats.t += ec.weight
        ec.example_t = stats.t

    def process(self, ec: Example) -> Example:
        """Run one example through the stack and finalize it."""
        self.setup_example(ec)
        if self.training and not ec.test_only:
            if self.query_pass:
                self.learner.predict(ec)
            self.learner.learn(ec)
        else:
            self.learner.predict(ec)
        self.learner.finish_example(ec)
        self.examples_processed += 1
        return ec

    def run(self, examples: Iterable[Example]) -> Dict[str, Any]:
        """
        Process every example in order

        Returns:
            Summary of the run's statistics
        """
        start = time.time()
        for ec in examples:
            self.process(ec)
        elapsed = time.time() - start

        summary = self.context.stats.summary()
        summary["elapsed_seconds"] = elapsed
        logger.info(
            f"Finished {self.examples_processed} examples in {elapsed:.2f}s, "
            f"average loss = {summary['average_loss']:.6f}, queries = {summary['queries']}"
        )
        return summary

    def run_lines(self, lines: Iterable[str]) -> Dict[str, Any]:
        return self.run(self.parser.parse_lines(lines))

    def run_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        logger.info(f"Reading examples from {path}")
        with open(path, "r", encoding="utf-8") as f:
            return self.run_lines(f)

    def close(self):
        """Close the prediction sinks opened for this run."""
        if self.context.predictions is not None:
            self.context.predictions.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
