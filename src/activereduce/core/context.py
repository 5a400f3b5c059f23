"""
Run-scoped mutable context threaded through every layer of a learner stack
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np

from .stats import RunningStats

if TYPE_CHECKING:
    from ..checkpoint import CheckpointWriter
    from ..output import PredictionWriter, ProgressReporter

logger = logging.getLogger(__name__)


@dataclass
class LearningContext:
    """
    Everything a reduction may read or mutate besides its own state:
    the shared running statistics, the single seeded random stream,
    and the output/checkpoint sinks.
    """

    stats: RunningStats = field(default_factory=RunningStats)
    seed: int = 0
    final_regressor_name: Optional[str] = None
    predictions: Optional["PredictionWriter"] = None
    checkpoints: Optional["CheckpointWriter"] = None
    progress: Optional["ProgressReporter"] = None
    rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self):
        self.rng = np.random.default_rng(self.seed)

    def uniform(self) -> float:
        """Next draw from the run's random stream, in [0, 1)."""
        return float(self.rng.random())

    def save_checkpoint(self, model, filename: str):
        """Write a checkpoint when a checkpoint sink is configured."""
        if self.checkpoints is None:
            logger.debug(f"No checkpoint sink configured, skipping {filename}")
            return None
        return self.checkpoints.save(model, filename)

    def checkpoint_name(self, *parts) -> str:
        base = self.final_regressor_name or "model"
        return ".".join([base] + [_format_part(p) for p in parts])


def _format_part(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
