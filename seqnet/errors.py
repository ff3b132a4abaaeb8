"""Exception hierarchy for seqnet."""

from __future__ import annotations

from typing import List, Tuple


class SeqnetError(Exception):
    """Base class for all seqnet failures."""


class ShapeError(SeqnetError, ValueError):
    """Raised when data cannot be cast or converted to the requested shape."""


class LayerError(SeqnetError):
    """Raised by a single layer that cannot initialise itself."""


class NotInitializedError(SeqnetError):
    """Raised when an uninitialised sequence is asked to run."""


class InvariantViolation(SeqnetError):
    """Raised when the backward derivative carrier is misused."""


Failure = Tuple[int, str, str]


class InitializationError(SeqnetError):
    """Aggregated per-layer failures from ``Sequence.initialize``."""

    def __init__(self, failures: List[Failure]) -> None:
        self.failures = list(failures)
        lines = [f"layer {idx} ({name}): {reason}" for idx, name, reason in self.failures]
        super().__init__("failed to initialise layers: " + "; ".join(lines))


__all__ = [
    "SeqnetError",
    "ShapeError",
    "LayerError",
    "NotInitializedError",
    "InvariantViolation",
    "InitializationError",
]
