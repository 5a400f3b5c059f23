"""
Running statistics shared by every layer of a learner stack
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class RunningStats:
    """
    Cumulative counters for one run.

    All counters are monotonic non-decreasing within a run. The object
    is owned by the run's LearningContext and shared by reference; no
    reduction resets it.
    """

    # example accounting
    t: float = 0.0  # cumulative example weight, used for example_t
    example_number: int = 0
    total_features: int = 0
    sum_loss: float = 0.0
    sum_loss_since_last_dump: float = 0.0
    weighted_examples: float = 0.0
    weighted_labeled_examples: float = 0.0
    weighted_unlabeled_examples: float = 0.0
    weighted_labels: float = 0.0
    weighted_since_last_dump: float = 0.0
    initial_t: float = 0.0

    min_label: float = 0.0
    max_label: float = 1.0

    # active learning
    queries: int = 0
    n_processed: float = 0.0
    n_in_dis: int = 0
    sum_error_not_in_dis: int = 0

    # cost-sensitive active learning diagnostics
    examples_by_queries: List[int] = field(default_factory=list)
    labels_outside_range: int = 0
    distance_to_range: float = 0.0
    range: float = 0.0
    overlapped_and_range_small: int = 0
    costs_outside_bounds: int = 0

    def update(self, test_only: bool, loss: float, weight: float, num_features: int,
               labeled: bool = True):
        """Account for one finished example."""
        self.example_number += 1
        self.total_features += num_features
        if test_only:
            return
        self.sum_loss += loss
        self.sum_loss_since_last_dump += loss
        self.weighted_examples += weight
        self.weighted_since_last_dump += weight
        if labeled:
            self.weighted_labeled_examples += weight

    def set_minmax(self, label: float):
        """Widen the observed label range to include ``label``."""
        if label is None or math.isinf(label):
            return
        self.min_label = min(self.min_label, label)
        self.max_label = max(self.max_label, label)

    def ensure_histogram_size(self, size: int):
        """Grow the queries-by-example histogram to at least ``size`` buckets."""
        if len(self.examples_by_queries) < size:
            self.examples_by_queries.extend([0] * (size - len(self.examples_by_queries)))

    def record_queries(self, n_queries: int):
        if n_queries >= len(self.examples_by_queries):
            self.ensure_histogram_size(n_queries + 1)
        self.examples_by_queries[n_queries] += 1

    @property
    def weighted_queries(self) -> float:
        return self.initial_t + self.weighted_examples - self.weighted_unlabeled_examples

    @property
    def average_loss(self) -> float:
        if self.weighted_examples <= 0:
            return 0.0
        return self.sum_loss / self.weighted_examples

    @property
    def average_loss_since_last_dump(self) -> float:
        if self.weighted_since_last_dump <= 0:
            return 0.0
        return self.sum_loss_since_last_dump / self.weighted_since_last_dump

    def mark_dump(self):
        self.sum_loss_since_last_dump = 0.0
        self.weighted_since_last_dump = 0.0

    def summary(self) -> Dict[str, float]:
        """Get summary of the run's counters"""
        result = {
            "examples": self.example_number,
            "weighted_examples": self.weighted_examples,
            "weighted_labeled_examples": self.weighted_labeled_examples,
            "weighted_unlabeled_examples": self.weighted_unlabeled_examples,
            "average_loss": self.average_loss,
            "total_features": self.total_features,
            "queries": self.queries,
            "n_in_dis": self.n_in_dis,
            "sum_error_not_in_dis": self.sum_error_not_in_dis,
        }
        if self.examples_by_queries:
            result["examples_by_queries"] = list(self.examples_by_queries)
            result["labels_outside_range"] = self.labels_outside_range
            result["average_distance_to_range"] = (
                self.distance_to_range / self.labels_outside_range
                if self.labels_outside_range else 0.0
            )
            result["average_range"] = (
                self.range / self.labels_outside_range if self.labels_outside_range else 0.0
            )
        return result
