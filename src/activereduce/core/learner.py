"""
Learner capability shared by base models and reductions

Every layer of a stack implements ``predict``, ``learn`` and
``sensitivity`` with an optional ``offset`` selecting one of several
weight tables (one per class for multiclass reductions), so any
reduction can be wrapped by another.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, Optional

from ..config import LearnerConfig
from .context import LearningContext
from .example import Example

logger = logging.getLogger(__name__)

BIAS_FEATURE = "__constant__"


class BaseLearner(ABC):
    """Base class for everything that can sit in a learner stack"""

    def __init__(self, context: LearningContext):
        self.context = context

    @abstractmethod
    def predict(self, ec: Example, offset: int = 0) -> float:
        """
        Predict for an example and store the result on it

        Args:
            ec: Example to predict on
            offset: Weight table to use

        Returns:
            The (clipped) prediction
        """
        pass

    @abstractmethod
    def learn(self, ec: Example, offset: int = 0) -> None:
        """Predict, then update on the example's scalar label if it has one."""
        pass

    @abstractmethod
    def sensitivity(self, ec: Example, offset: int = 0) -> float:
        """How far the prediction moves per unit of importance weight."""
        pass

    def finish_example(self, ec: Example) -> None:
        """Account for and emit a fully processed example."""
        stats = self.context.stats
        labeled = ec.label.is_labeled
        stats.update(ec.test_only, ec.loss, ec.weight, ec.num_features, labeled=labeled)
        if labeled and not ec.test_only:
            stats.weighted_labels += ec.label.label * ec.weight
        if not labeled:
            stats.weighted_unlabeled_examples += ec.weight

        if self.context.predictions is not None:
            self.context.predictions.write_raw(ec.partial_prediction, ec.tag)
            self.context.predictions.write(ec.prediction, ec.tag)
        if self.context.progress is not None:
            self.context.progress.update(ec, ec.label.label, ec.prediction)

    def state_dict(self) -> Dict[str, Any]:
        return {}


class Reduction(BaseLearner):
    """A learner that wraps another learner."""

    def __init__(self, base: BaseLearner, context: LearningContext):
        super().__init__(context)
        self.base = base

    def sensitivity(self, ec: Example, offset: int = 0) -> float:
        return self.base.sensitivity(ec, offset)

    def finish_example(self, ec: Example) -> None:
        self.base.finish_example(ec)

    def state_dict(self) -> Dict[str, Any]:
        return self.base.state_dict()


class LinearRegressor(BaseLearner):
    """
    Squared-loss online linear regressor

    Keeps one sparse weight table per offset plus a constant feature.
    Predictions are clipped to the run's observed label range.
    """

    def __init__(self, context: LearningContext, config: Optional[LearnerConfig] = None):
        super().__init__(context)
        self.config = config or LearnerConfig()
        self.weights: Dict[int, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self.t = 0.0

    @property
    def learning_rate(self) -> float:
        cfg = self.config
        return cfg.learning_rate * (cfg.initial_t / (cfg.initial_t + self.t)) ** cfg.power_t

    def _raw_score(self, ec: Example, offset: int) -> float:
        table = self.weights.get(offset, {})
        score = table.get(BIAS_FEATURE, 0.0)
        for name, value in ec.features.items():
            score += table.get(name, 0.0) * value
        return score

    def predict(self, ec: Example, offset: int = 0) -> float:
        stats = self.context.stats
        raw = self._raw_score(ec, offset)
        ec.partial_prediction = raw
        ec.prediction = min(max(raw, stats.min_label), stats.max_label)
        if ec.label.is_labeled:
            ec.loss = (ec.prediction - ec.label.label) ** 2 * ec.weight
        else:
            ec.loss = 0.0
        return ec.prediction

    def learn(self, ec: Example, offset: int = 0) -> None:
        self.predict(ec, offset)
        if not ec.label.is_labeled or ec.weight <= 0:
            return

        # importance-invariant step: the prediction never overshoots the label
        norm = self._norm(ec)
        decay = 1.0 - math.exp(-self.learning_rate * ec.weight * norm)
        update = (ec.label.label - ec.prediction) * decay / norm
        table = self.weights[offset]
        table[BIAS_FEATURE] += update
        for name, value in ec.features.items():
            table[name] += update * value
        self.t += ec.weight

    @staticmethod
    def _norm(ec: Example) -> float:
        return 1.0 + sum(v * v for v in ec.features.values())

    def sensitivity(self, ec: Example, offset: int = 0) -> float:
        return self.learning_rate * self._norm(ec)

    def state_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "t": self.t,
            "weights": {offset: dict(table) for offset, table in self.weights.items()},
        }

    def load_state_dict(self, state: Dict[str, Any]):
        self.config = LearnerConfig(**state["config"])
        self.t = state["t"]
        self.weights = defaultdict(lambda: defaultdict(float))
        for offset, table in state["weights"].items():
            self.weights[int(offset)].update(table)
