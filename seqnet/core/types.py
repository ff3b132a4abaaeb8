"""Core typing contracts for seqnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

import numpy as np

Array = np.ndarray


class _Wildcard:
    """Marker for the single dimension a shape may leave unresolved."""

    def __repr__(self) -> str:
        return "ANY"


ANY = _Wildcard()

Dim = Union[int, _Wildcard]
Shape = Sequence[Dim]


@dataclass(frozen=True)
class LayerContext:
    """Neighbours handed to a layer while a sequence initialises it."""

    previous_layer: Optional[Any] = None
    next_layer: Optional[Any] = None
