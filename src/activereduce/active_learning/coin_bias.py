"""
Query probabilities for importance-weighted binary active learning

The coin bias is the probability of asking for a label given how far the
current prediction is from the decision threshold, measured in units of
the learner's sensitivity. Queried examples are reweighted by the inverse
of that probability.
"""

import logging
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.context import LearningContext
    from .binary import ActiveState

logger = logging.getLogger(__name__)

QUERY_SKIPPED = -1.0

EPSILON = 0.0001
SIMPLE_C1 = 5.0 + 2 * math.sqrt(2.0)
SIMPLE_C2 = 5.0


def get_active_coin_bias(k: float, avg_loss: float, g: float, c0: float,
                         oracular: bool = False, simple_threshold: bool = False) -> float:
    """
    Probability of querying the label of an example

    Args:
        k: Number of rounds seen so far (cumulative example weight)
        avg_loss: Estimated average loss; clamped to [0, 1]
        g: Confidence gap of the current example, per round
        c0: Mellowness; larger values query more
        oracular: Never query outside the disagreement region
        simple_threshold: Use the loss-independent threshold

    Returns:
        Query probability in [0, 1]
    """
    b = c0 * (math.log(k + 1.0) + EPSILON) / (k + EPSILON)
    sb = math.sqrt(b)
    avg_loss = min(1.0, max(0.0, avg_loss))

    sl = math.sqrt(avg_loss) + math.sqrt(avg_loss + g)
    if simple_threshold:
        threshold = sb + b
    else:
        threshold = sb * sl + b

    if g <= threshold:
        p = 1.0
    elif oracular:
        p = 0.0
    elif math.isinf(g):
        p = 0.0
    else:
        if simple_threshold:
            a = (SIMPLE_C1 - 1.0) * sb + (SIMPLE_C2 - 1.0) * b + g
            rs = (SIMPLE_C1 + math.sqrt(SIMPLE_C1 * SIMPLE_C1 + 4 * a * SIMPLE_C2)) / (2 * a)
        else:
            rs = (sl + math.sqrt(sl * sl + 4 * g)) / (2 * g)
        p = min(1.0, b * rs * rs)

    logger.debug(f"gap = {g}, threshold = {threshold}, in_dis = {g <= threshold}, p = {p}")
    return p


def query_decision(state: "ActiveState", context: "LearningContext",
                   confidence: float, k: float) -> float:
    """
    Decide whether to query an example's label

    Args:
        state: Binary active learning state (mellowness and mode flags)
        context: Run context supplying statistics and the random stream
        confidence: Distance of the prediction to the threshold over sensitivity
        k: Number of rounds seen so far

    Returns:
        The importance weight ``1 / p`` when the label is queried,
        otherwise QUERY_SKIPPED
    """
    if k <= 1.0:
        bias = 1.0
        logger.debug("cold start, p = 1")
    else:
        stats = context.stats
        avg_loss = stats.sum_loss / k + math.sqrt(
            (1.0 + 0.5 * math.log(k)) / (stats.weighted_queries + EPSILON)
        )
        bias = get_active_coin_bias(k, avg_loss, confidence / k, state.c0,
                                    state.oracular, state.simple_threshold)

    if context.uniform() < bias:
        return 1.0 / bias
    return QUERY_SKIPPED
