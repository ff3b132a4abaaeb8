"""Backward carrier for chain-rule terms that are not part of the error vector."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, ClassVar, Optional, Tuple, Union

import numpy as np

from ..errors import InvariantViolation
from .types import Array

FLOAT = "float"
JACOBIAN = "jacobian"


@dataclass(frozen=True)
class Derivative:
    """Derivative of an activation, evaluated by the next weighted layer.

    ``float`` derivatives map one pre-activation value to one slope and are
    multiplied into the error elementwise.  ``jacobian`` derivatives map the
    whole pre-activation vector to its Jacobian matrix, which is applied to
    the error as a vector-Jacobian product.
    """

    fn: Callable
    func_type: str = FLOAT

    def chain(self, z: Array, error: Array) -> Array:
        if self.func_type == JACOBIAN:
            jacobian = np.asarray(self.fn(z.ravel()), dtype=np.float64)
            return (jacobian.T @ error.ravel()).reshape(error.shape)
        if self.func_type != FLOAT:
            raise ValueError(f"Unknown derivative type: {self.func_type}")
        slopes = np.vectorize(self.fn, otypes=[np.float64])(z)
        return error * slopes


@dataclass(frozen=True)
class Backprop:
    """Single-slot queue threaded backwards through a sequence.

    An activation puts its derivative here and the next weighted layer in the
    backward fold takes it.  The learning rate of the enclosing sequence rides
    along so weighted layers can scale their updates.
    """

    learning_rate: float = 0.05
    derivatives: Tuple[Derivative, ...] = ()

    capacity: ClassVar[int] = 1

    def put_derivative(self, derivative: Union[Derivative, Callable]) -> "Backprop":
        if not isinstance(derivative, Derivative):
            derivative = Derivative(derivative)
        if len(self.derivatives) >= self.capacity:
            raise InvariantViolation(
                "a derivative is already pending; two activations have no weighted layer between them"
            )
        return replace(self, derivatives=self.derivatives + (derivative,))

    def take_derivative(self) -> tuple[Optional[Derivative], "Backprop"]:
        if not self.derivatives:
            return None, self
        return self.derivatives[0], replace(self, derivatives=self.derivatives[1:])

    def with_learning_rate(self, learning_rate: float) -> "Backprop":
        return replace(self, learning_rate=float(learning_rate))

    @property
    def is_empty(self) -> bool:
        return not self.derivatives

    def ensure_drained(self) -> None:
        if self.derivatives:
            raise InvariantViolation(
                f"{len(self.derivatives)} derivative(s) left undrained after the backward pass"
            )


__all__ = ["Backprop", "Derivative", "FLOAT", "JACOBIAN"]
