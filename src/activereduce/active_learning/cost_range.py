"""
Confidence ranges for per-class predicted costs
"""

import logging
import math
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.example import Example
    from ..core.learner import BaseLearner

logger = logging.getLogger(__name__)

B_SEARCH_MAX_ITER = 20
RANGE_TOLERANCE = 1e-6
FLT_MAX = sys.float_info.max


def binary_search(fhat: float, delta: float, sens: float, tol: float = RANGE_TOLERANCE) -> float:
    """
    Largest step ``w`` with ``w * (fhat**2 - (fhat - sens * w)**2) <= delta``

    Args:
        fhat: Distance from the prediction to the cost bound
        delta: Allowed increase in empirical loss
        sens: Sensitivity of the prediction to the example weight
        tol: Stop once the residual or the bracket is this small

    Returns:
        A non-negative step; the lower end of the final bracket, so the
        constraint is never violated by more than ``tol``
    """
    if fhat <= 0.0:
        return 0.0
    maxw = min(fhat / sens, FLT_MAX) if sens > 0.0 else FLT_MAX

    if maxw * fhat * fhat <= delta:
        return maxw

    lower, upper = 0.0, maxw
    for _ in range(B_SEARCH_MAX_ITER):
        w = (upper + lower) / 2.0
        v = w * (fhat * fhat - (fhat - sens * w) * (fhat - sens * w)) - delta
        if v > 0:
            upper = w
        else:
            lower = w
        if abs(v) <= tol or upper - lower <= tol:
            break

    return lower


@dataclass
class CostRange:
    """Plausible interval of one class's cost"""

    min_pred: float
    max_pred: float
    is_range_large: bool

    @property
    def width(self) -> float:
        return self.max_pred - self.min_pred


def find_cost_range(base: "BaseLearner", ec: "Example", offset: int, t: float,
                    delta: float, eta: float, cost_min: float, cost_max: float) -> CostRange:
    """
    Bound the cost one class can plausibly have

    Args:
        base: Learner predicting per-class costs
        ec: Example being processed
        offset: Weight table of the class
        t: Current learning round
        delta: Allowed increase in empirical loss
        eta: Widths above this are considered large
        cost_min: Lowest possible cost
        cost_max: Highest possible cost

    Returns:
        CostRange within [cost_min, cost_max]
    """
    base.predict(ec, offset)
    sens = base.sensitivity(ec, offset)

    if t <= 1 or math.isnan(sens) or math.isinf(sens):
        result = CostRange(cost_min, cost_max, True)
        logger.debug(
            f"  find_cost_range (full): offset={offset} pp={ec.partial_prediction} "
            f"sens={sens} eta={eta} [{result.min_pred}, {result.max_pred}]"
        )
        return result

    pred = min(max(ec.prediction, cost_min), cost_max)
    max_pred = min(pred + sens * binary_search(cost_max - pred, delta, sens), cost_max)
    min_pred = max(pred - sens * binary_search(pred - cost_min, delta, sens), cost_min)
    result = CostRange(min_pred, max_pred, max_pred - min_pred > eta)
    logger.debug(
        f"  find_cost_range: offset={offset} pp={ec.partial_prediction} sens={sens} "
        f"eta={eta} [{min_pred}, {max_pred}] = {result.width}"
    )
    return result
