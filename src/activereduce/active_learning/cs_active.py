"""
Cost-sensitive active learning reduction

One base-learner weight table per class regresses that class's cost.
For every example the reduction bounds each class's cost, finds the
classes that could still be the cheapest, and only asks for costs when
more than one class is in contention.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..config import UNBOUNDED, CostSensitiveActiveConfig
from ..core.context import LearningContext
from ..core.example import Example, SimpleLabel, WeightedClassCost
from ..core.learner import BaseLearner, Reduction
from .cost_range import find_cost_range

logger = logging.getLogger(__name__)


@dataclass
class CSActiveState:
    """Cost-sensitive active learning state, created once at setup"""

    num_classes: int
    c0: float = 0.1
    c1: float = 0.5
    cost_min: float = 0.0
    cost_max: float = 1.0
    t: int = 1
    min_labels: float = UNBOUNDED
    max_labels: float = UNBOUNDED
    is_baseline: bool = False
    print_debug: bool = False

    @classmethod
    def from_config(cls, config: CostSensitiveActiveConfig) -> "CSActiveState":
        return cls(
            num_classes=config.num_classes,
            c0=config.mellowness,
            c1=config.range_c,
            cost_min=config.cost_min,
            cost_max=config.cost_max,
            min_labels=config.min_labels,
            max_labels=config.max_labels,
            is_baseline=config.baseline,
            print_debug=config.debug,
        )

    def thresholds(self) -> Tuple[float, float]:
        """
        Range and loss thresholds for the current round

        Returns:
            Tuple of (eta, delta): cost ranges wider than eta are large;
            delta bounds the tolerated increase in empirical loss
        """
        t = float(self.t)
        t_prev = t - 1.0
        span = self.cost_max - self.cost_min
        eta = self.c1 * span / math.sqrt(t)
        delta = self.c0 * math.log(self.num_classes * max(t_prev, 1.0)) * span * span
        return eta, delta


class CostSensitiveActiveLearner(Reduction):
    """Active learning over per-class cost regressors"""

    def __init__(self, base: BaseLearner, context: LearningContext,
                 config: CostSensitiveActiveConfig):
        super().__init__(base, context)
        self.state = CSActiveState.from_config(config)
        self.simulation = config.simulation

        stats = context.stats
        stats.set_minmax(config.cost_max)
        stats.set_minmax(config.cost_min)
        stats.ensure_histogram_size(config.num_classes + 1)
        logger.info(
            f"Cost-sensitive active learning with {config.num_classes} classes "
            f"({'simulation' if self.simulation else 'reduction'} mode), "
            f"c0={self.state.c0}, c1={self.state.c1}, baseline={self.state.is_baseline}"
        )

    @property
    def num_classes(self) -> int:
        return self.state.num_classes

    def _class_offset(self, offset: int, class_index: int) -> int:
        return offset * self.num_classes + class_index - 1

    def predict(self, ec: Example, offset: int = 0) -> int:
        self._predict_or_learn(ec, offset, is_learn=False)
        return ec.multiclass_prediction

    def learn(self, ec: Example, offset: int = 0) -> None:
        self._predict_or_learn(ec, offset, is_learn=True)

    def sensitivity(self, ec: Example, offset: int = 0) -> float:
        return self.base.sensitivity(ec, self._class_offset(offset, 1))

    def _predict_or_learn(self, ec: Example, offset: int, is_learn: bool):
        state = self.state
        stats = self.context.stats

        if stats.queries >= state.min_labels * state.num_classes:
            filename = self.context.checkpoint_name(ec.example_t, stats.queries)
            self.context.save_checkpoint(self, filename)
            state.min_labels *= 2
            self._log_diagnostics()

        saved_label, saved_weight = ec.label, ec.weight
        budget_left = stats.queries < state.max_labels * state.num_classes
        queries_before = stats.queries

        if ec.costs and budget_left:
            prediction, score = self._query_and_learn(ec, offset, ec.costs, is_learn)
        else:
            prediction, score = self._predict_all(ec, offset)

        # the histogram is filled once per example, in finish_example
        ec.query_count += stats.queries - queries_before

        ec.label, ec.weight = saved_label, saved_weight
        ec.partial_prediction = score
        ec.multiclass_prediction = prediction

    def _query_and_learn(self, ec: Example, offset: int, costs: List[WeightedClassCost],
                         is_learn: bool) -> Tuple[int, float]:
        state = self.state
        stats = self.context.stats
        eta, delta = state.thresholds()

        min_max_cost = math.inf
        for cl in costs:
            cost_range = find_cost_range(
                self.base, ec, self._class_offset(offset, cl.class_index), state.t,
                delta, eta, state.cost_min, state.cost_max,
            )
            cl.min_pred = cost_range.min_pred
            cl.max_pred = cost_range.max_pred
            cl.is_range_large = cost_range.is_range_large
            min_max_cost = min(min_max_cost, cl.max_pred)

        n_overlapped = 0
        for cl in costs:
            cl.is_range_overlapped = cl.min_pred <= min_max_cost
            n_overlapped += int(cl.is_range_overlapped)
            if cl.is_range_overlapped and not cl.is_range_large:
                stats.overlapped_and_range_small += 1
            if cl.is_labeled and (cl.cost > cl.max_pred or cl.cost < cl.min_pred):
                stats.labels_outside_range += 1
                stats.distance_to_range += max(cl.cost - cl.max_pred, cl.min_pred - cl.cost)
                stats.range += cl.max_pred - cl.min_pred

        query = n_overlapped > 1
        prediction, score = 1, math.inf
        for cl in costs:
            query_label = query and (
                state.is_baseline or (cl.is_range_overlapped and cl.is_range_large)
            )
            prediction, score = self._inner_loop(ec, offset, cl.class_index, cl, prediction,
                                                 score, query_label, is_learn)
            if state.print_debug:
                logger.info(
                    f"label={cl.class_index} x={cl.cost} prediction={prediction} score={score} "
                    f"pp={cl.partial_prediction} ql={query_label} qn={cl.query_needed} "
                    f"ro={cl.is_range_overlapped} rl={cl.is_range_large} "
                    f"[{cl.min_pred}, {cl.max_pred}] vs delta={delta} "
                    f"n_overlapped={n_overlapped} is_baseline={state.is_baseline}"
                )

        if is_learn:
            state.t += 1
        return prediction, score

    def _predict_all(self, ec: Example, offset: int) -> Tuple[int, float]:
        prediction, score = 1, math.inf
        for i in range(1, self.num_classes + 1):
            prediction, score = self._inner_loop(ec, offset, i, None, prediction, score,
                                                 False, False)
        return prediction, score

    def _inner_loop(self, ec: Example, offset: int, class_index: int,
                    cl: Optional[WeightedClassCost], prediction: int, score: float,
                    query_this_label: bool, is_learn: bool) -> Tuple[int, float]:
        state = self.state
        stats = self.context.stats
        class_offset = self._class_offset(offset, class_index)

        ec.label = SimpleLabel(label=None, weight=1.0)
        ec.weight = 1.0
        self.base.predict(ec, class_offset)

        if is_learn:
            take = query_this_label if self.simulation else cl.query_needed
            if take and cl.is_labeled:
                ec.label.label = cl.cost
                stats.queries += 1
                if cl.cost < state.cost_min or cl.cost > state.cost_max:
                    stats.costs_outside_bounds += 1
                    logger.warning(
                        f"cost {cl.cost} outside of cost range "
                        f"[{state.cost_min}, {state.cost_max}]!"
                    )
            if ec.label.is_labeled:
                self.base.learn(ec, class_offset)
        elif not self.simulation and cl is not None:
            # an outer layer reads this to decide which costs to acquire
            cl.query_needed = query_this_label

        pp = ec.partial_prediction
        if cl is not None:
            cl.partial_prediction = pp
        if pp < score or (pp == score and class_index < prediction):
            score = pp
            prediction = class_index
        ec.add_passthrough_feature(class_index, pp)
        return prediction, score

    def _log_diagnostics(self):
        stats = self.context.stats
        for i, count in enumerate(stats.examples_by_queries):
            logger.info(f"examples with {i} labels queried = {count}")
        logger.info(f"labels outside of cost range = {stats.labels_outside_range}")
        if stats.labels_outside_range:
            logger.info(
                f"average distance to range = "
                f"{stats.distance_to_range / stats.labels_outside_range}"
            )
            logger.info(f"average range = {stats.range / stats.labels_outside_range}")

    def finish_example(self, ec: Example) -> None:
        context = self.context
        stats = context.stats

        loss = 0.0
        labeled = not ec.test_only and bool(ec.costs)
        if labeled:
            known = [cl for cl in ec.costs if cl.is_labeled]
            min_cost = min(cl.cost for cl in known)
            chosen = [cl.cost for cl in known if cl.class_index == ec.multiclass_prediction]
            if chosen:
                loss = chosen[0] - min_cost
            else:
                logger.debug(f"predicted class {ec.multiclass_prediction} has no known cost")
        ec.loss = loss

        stats.update(ec.test_only, loss, 1.0, ec.num_features, labeled=labeled)
        stats.record_queries(ec.query_count)
        if context.predictions is not None:
            context.predictions.write_raw(ec.partial_prediction, ec.tag)
            context.predictions.write(ec.multiclass_prediction, ec.tag)
        if context.progress is not None:
            best = None
            if labeled:
                best = min(known, key=lambda c: (c.cost, c.class_index)).class_index
            context.progress.update(ec, best, ec.multiclass_prediction)
