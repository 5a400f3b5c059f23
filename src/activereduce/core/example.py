"""
Example and label containers passed through the reduction stack
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class SimpleLabel:
    """Scalar label slot; ``label is None`` means unlabeled."""

    label: Optional[float] = None
    weight: float = 1.0
    initial: float = 0.0

    @property
    def is_labeled(self) -> bool:
        return self.label is not None


@dataclass
class WeightedClassCost:
    """Per-class cost entry of a cost-sensitive label."""

    class_index: int
    cost: Optional[float] = None  # None when the cost is not known
    min_pred: float = 0.0
    max_pred: float = 0.0
    partial_prediction: float = 0.0
    is_range_overlapped: bool = False
    is_range_large: bool = False
    query_needed: bool = False

    @property
    def is_labeled(self) -> bool:
        return self.cost is not None


@dataclass
class Example:
    """
    A single training or test example.

    ``example_t`` is the cumulative example weight seen by the run,
    including this example; it is assigned by the driver before the
    example enters the learner stack.
    """

    features: Dict[str, float] = field(default_factory=dict)
    label: SimpleLabel = field(default_factory=SimpleLabel)
    costs: Optional[List[WeightedClassCost]] = None
    tag: str = ""
    weight: float = 1.0
    test_only: bool = False

    example_t: float = 0.0
    prediction: float = 0.0
    partial_prediction: float = 0.0
    multiclass_prediction: int = 0
    confidence: float = 0.0
    loss: float = 0.0
    query_count: int = 0  # labels revealed while processing this example

    # set to a list by an outer layer that consumes per-class scores
    passthrough: Optional[List[Tuple[int, float]]] = None

    @property
    def num_features(self) -> int:
        return len(self.features)

    @property
    def is_cost_sensitive(self) -> bool:
        return self.costs is not None

    def add_passthrough_feature(self, index: int, value: float):
        if self.passthrough is not None:
            self.passthrough.append((index, value))
