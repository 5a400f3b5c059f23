"""
Prediction sinks and progress reporting
"""

import logging
from pathlib import Path
from typing import IO, List, Optional, Union

from .core.example import Example

logger = logging.getLogger(__name__)

Sink = Union[str, Path, IO[str]]


def format_prediction(prediction: float, tag: str = "", weight: float = -1.0) -> str:
    """
    Format one prediction line

    ``<prediction> <tag>[ <query weight>]``; the query weight is only
    written when it is non-negative.
    """
    if isinstance(prediction, int):
        line = f"{prediction}"
    else:
        line = f"{prediction:f}"
    line += f" {tag}"
    if weight >= 0:
        line += f" {weight:f}"
    return line + "\n"


class PredictionWriter:
    """Writes one line per finished example to every configured sink"""

    def __init__(self, sinks: Optional[List[Sink]] = None, raw_sink: Optional[Sink] = None):
        self._owned: List[IO[str]] = []
        self.sinks: List[IO[str]] = [self._open(s) for s in (sinks or [])]
        self.raw_sink: Optional[IO[str]] = self._open(raw_sink) if raw_sink is not None else None

    def _open(self, sink: Sink) -> IO[str]:
        if isinstance(sink, (str, Path)):
            handle = open(sink, "w", encoding="utf-8")
            self._owned.append(handle)
            return handle
        return sink

    def _emit(self, handle: IO[str], line: str):
        try:
            handle.write(line)
        except (OSError, ValueError) as e:
            logger.error(f"write error: {e}")

    def write(self, prediction, tag: str = "", weight: float = -1.0):
        line = format_prediction(prediction, tag, weight)
        for handle in self.sinks:
            self._emit(handle, line)

    def write_raw(self, partial_prediction: float, tag: str = ""):
        if self.raw_sink is not None:
            self._emit(self.raw_sink, format_prediction(partial_prediction, tag))

    def close(self):
        for handle in self._owned:
            handle.close()
        self._owned = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ProgressReporter:
    """Logs a progress row at exponentially spaced example counts"""

    HEADER = (
        f"{'average':>10} {'since':>10} {'example':>12} {'example':>12} "
        f"{'current':>10} {'current':>10} {'current':>8}"
    )
    SUBHEADER = (
        f"{'loss':>10} {'last':>10} {'counter':>12} {'weight':>12} "
        f"{'label':>10} {'predict':>10} {'features':>8}"
    )

    def __init__(self, stats, interval: float = 1.0, multiplier: float = 2.0):
        self.stats = stats
        self.dump_interval = interval
        self.multiplier = multiplier
        self.rows: List[str] = []
        self._header_logged = False

    def update(self, ec: Example, label, prediction):
        stats = self.stats
        if stats.weighted_examples < self.dump_interval:
            return
        if not self._header_logged:
            logger.info(self.HEADER)
            logger.info(self.SUBHEADER)
            self._header_logged = True

        if label is None:
            label_text = "unknown"
        elif isinstance(label, int):
            label_text = f"{label}"
        else:
            label_text = f"{label:.4f}"
        predict_text = f"{prediction}" if isinstance(prediction, int) else f"{prediction:.4f}"
        row = (
            f"{stats.average_loss:>10.6f} {stats.average_loss_since_last_dump:>10.6f} "
            f"{stats.example_number:>12d} {stats.weighted_examples:>12.1f} "
            f"{label_text:>10} {predict_text:>10} {ec.num_features:>8d}"
        )
        self.rows.append(row)
        logger.info(row)
        stats.mark_dump()
        self.dump_interval *= self.multiplier
