"""
Synchronous model checkpoints written during active learning
"""

import logging
import pickle
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import CheckpointError

logger = logging.getLogger(__name__)


class CheckpointWriter:
    """
    Saves a learner's ``state_dict()`` under a given file name.

    A failed write raises CheckpointError; the run does not continue
    with an unsaved checkpoint.
    """

    def __init__(self, checkpoint_dir: Optional[Union[str, Path]] = None):
        self.checkpoint_dir = Path(checkpoint_dir) if checkpoint_dir is not None else None
        self.saved: List[Path] = []

    def _resolve(self, filename: str) -> Path:
        path = Path(filename)
        if self.checkpoint_dir is not None and not path.is_absolute():
            path = self.checkpoint_dir / path
        return path

    def save(self, model, filename: str) -> Path:
        """
        Save a checkpoint

        Args:
            model: Learner exposing ``state_dict()``
            filename: File name, relative to the checkpoint directory

        Returns:
            Path of the written checkpoint
        """
        path = self._resolve(filename)
        checkpoint = {"model_state_dict": model.state_dict(), "name": path.name}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                pickle.dump(checkpoint, f)
        except (OSError, pickle.PicklingError, TypeError) as e:
            raise CheckpointError(f"Failed to save checkpoint {path}: {e}", str(path)) from e

        self.saved.append(path)
        logger.info(f"Checkpoint saved: {path}")
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> Dict[str, Any]:
        """Load a checkpoint written by ``save``."""
        try:
            with open(path, "rb") as f:
                return pickle.load(f)
        except (OSError, pickle.UnpicklingError) as e:
            raise CheckpointError(f"Failed to load checkpoint {path}: {e}", str(path)) from e
