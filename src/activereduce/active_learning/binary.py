"""
Binary active learning reduction

Wraps a scalar base learner. In simulation mode every example arrives
labeled and the reduction decides whether to reveal the label to the
base learner. Otherwise labeled examples are learned as usual and, for
unlabeled ones, the reduction reports the query weight it would use so
an outside caller can decide whether to acquire the label.
"""

import logging
import math
from dataclasses import dataclass

from ..config import UNBOUNDED, ActiveConfig
from ..core.context import LearningContext
from ..core.example import Example
from ..core.learner import BaseLearner, Reduction
from .coin_bias import QUERY_SKIPPED, query_decision

logger = logging.getLogger(__name__)

IN_DIS_TOLERANCE = 1e-10


def sign(w: float) -> float:
    return -1.0 if w < 0.0 else 1.0


def confidence_from(margin: float, sens: float) -> float:
    """Distance to the decision threshold in units of sensitivity."""
    if math.isnan(sens):
        return 0.0
    if sens <= 0.0:
        return 0.0 if margin == 0.0 else math.inf
    return margin / sens


@dataclass
class ActiveState:
    """Binary active learning state, created once at setup"""

    c0: float = 8.0
    oracular: bool = False
    simple_threshold: bool = False
    max_labels: float = UNBOUNDED
    min_labels: float = UNBOUNDED

    @classmethod
    def from_config(cls, config: ActiveConfig) -> "ActiveState":
        return cls(
            c0=config.mellowness,
            oracular=config.oracular,
            simple_threshold=config.simple_threshold,
            max_labels=config.max_labels,
            min_labels=config.min_labels,
        )


class ActiveLearner(Reduction):
    """Importance-weighted binary active learning on top of a base learner"""

    def __init__(self, base: BaseLearner, context: LearningContext,
                 config: ActiveConfig = None):
        super().__init__(base, context)
        config = config or ActiveConfig()
        self.state = ActiveState.from_config(config)
        self.simulation = config.simulation
        logger.info(
            f"Binary active learning ({'simulation' if self.simulation else 'active'} mode), "
            f"mellowness={self.state.c0}"
        )

    def predict(self, ec: Example, offset: int = 0) -> float:
        self._predict_or_learn(ec, offset, is_learn=False)
        return ec.prediction

    def learn(self, ec: Example, offset: int = 0) -> None:
        self._predict_or_learn(ec, offset, is_learn=True)

    def _predict_or_learn(self, ec: Example, offset: int, is_learn: bool):
        if self.simulation:
            self._simulate(ec, offset, is_learn)
        else:
            self._forward(ec, offset, is_learn)

    def _simulate(self, ec: Example, offset: int, is_learn: bool):
        self.base.predict(ec, offset)
        if not is_learn:
            return

        state = self.state
        stats = self.context.stats
        if stats.queries >= state.min_labels:
            filename = self.context.checkpoint_name(
                stats.n_processed, stats.n_in_dis, stats.sum_error_not_in_dis, stats.queries
            )
            self.context.save_checkpoint(self, filename)
            state.min_labels *= 2

        if stats.queries >= state.max_labels:
            return

        k = ec.example_t - ec.weight
        threshold = 0.0
        ec.confidence = confidence_from(abs(ec.prediction - threshold),
                                        self.base.sensitivity(ec, offset))
        importance = query_decision(state, self.context, ec.confidence, k)
        logger.debug(f"prediction = {sign(ec.prediction)}, query = {sign(importance)}")

        stats.n_processed = ec.example_t
        if abs(importance - 1.0) <= IN_DIS_TOLERANCE:
            stats.n_in_dis += 1

        if importance > 0:
            stats.queries += 1
            ec.weight *= importance
            self.base.learn(ec, offset)
        elif state.oracular:
            if sign(ec.label.label) != sign(ec.prediction):
                stats.sum_error_not_in_dis += 1
            ec.label.label = sign(ec.prediction)
            self.base.learn(ec, offset)
        else:
            ec.label.label = None

    def _forward(self, ec: Example, offset: int, is_learn: bool):
        if is_learn:
            self.base.learn(ec, offset)
        else:
            self.base.predict(ec, offset)

        if not ec.label.is_labeled:
            stats = self.context.stats
            threshold = (stats.max_label + stats.min_label) * 0.5
            ec.confidence = confidence_from(abs(ec.prediction - threshold),
                                            self.base.sensitivity(ec, offset))

    def finish_example(self, ec: Example) -> None:
        if self.simulation:
            self.base.finish_example(ec)
            return
        self._return_active_example(ec)

    def _return_active_example(self, ec: Example):
        context = self.context
        stats = context.stats
        labeled = ec.label.is_labeled

        stats.update(ec.test_only, ec.loss, ec.weight, ec.num_features, labeled=labeled)
        if labeled and not ec.test_only:
            stats.weighted_labels += ec.label.label * ec.weight
        if not labeled:
            stats.weighted_unlabeled_examples += ec.weight

        query_weight = QUERY_SKIPPED
        if not labeled:
            query_weight = query_decision(self.state, context, ec.confidence,
                                          stats.weighted_unlabeled_examples)

        if context.predictions is not None:
            context.predictions.write_raw(ec.partial_prediction, ec.tag)
            context.predictions.write(ec.prediction, ec.tag, query_weight)
        if context.progress is not None:
            context.progress.update(ec, ec.label.label, ec.prediction)
