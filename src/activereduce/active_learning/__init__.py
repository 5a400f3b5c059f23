"""
Active learning reductions for activereduce

Binary importance-weighted querying and cost-sensitive (multiclass)
querying driven by per-class cost confidence ranges.
"""

from .binary import ActiveLearner, ActiveState
from .coin_bias import QUERY_SKIPPED, get_active_coin_bias, query_decision
from .cost_range import CostRange, binary_search, find_cost_range
from .cs_active import CostSensitiveActiveLearner, CSActiveState

__all__ = [
    # Binary querying
    "get_active_coin_bias",
    "query_decision",
    "QUERY_SKIPPED",
    "ActiveLearner",
    "ActiveState",
    # Cost ranges
    "binary_search",
    "find_cost_range",
    "CostRange",
    # Cost-sensitive querying
    "CostSensitiveActiveLearner",
    "CSActiveState",
]
