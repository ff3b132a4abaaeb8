"""seqnet public API."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .core import activations, data, types  # noqa: F401
from .core.activations import Activation
from .core.data import ANY, DMatrix, List1D, List2D
from .core.dense import Dense
from .core.sequence import ErrorCalc, Sequence
from .errors import (
    InitializationError,
    InvariantViolation,
    NotInitializedError,
    SeqnetError,
    ShapeError,
)
from .training.trainer import Trainer, train


def sequence(
    layers: Iterable[Any],
    *,
    learning_rate: float = 0.05,
    error_calc: Optional[ErrorCalc] = None,
) -> Sequence:
    """Build an uninitialised :class:`Sequence` from ``layers``."""

    return Sequence(layers=tuple(layers), learning_rate=float(learning_rate), error_calc=error_calc)


def dense(rows: Optional[int] = None, columns: Optional[int] = None, **kwargs: Any) -> Dense:
    return Dense(rows=rows, columns=columns, **kwargs)


def activation(name: Any) -> Activation:
    return activations.build(name)


def predict(seq: Sequence, inputs: Any) -> list[float]:
    return seq.predict(inputs)


__all__ = [
    "ANY",
    "Activation",
    "DMatrix",
    "Dense",
    "InitializationError",
    "InvariantViolation",
    "List1D",
    "List2D",
    "NotInitializedError",
    "SeqnetError",
    "Sequence",
    "ShapeError",
    "Trainer",
    "activation",
    "activations",
    "data",
    "dense",
    "predict",
    "sequence",
    "train",
    "types",
]
