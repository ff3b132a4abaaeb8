"""Weighted linear layer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

import numpy as np

from ..errors import LayerError, NotInitializedError, ShapeError
from . import data
from .backprop import Backprop
from .data import DataType, DMatrix
from .types import Array, LayerContext

Seed = Union[int, np.random.SeedSequence, None]


def _neighbour_dims(layer: Any, attr: str) -> Optional[int]:
    if layer is None:
        return None
    return getattr(layer, attr, None)


@dataclass(frozen=True, eq=False)
class Dense:
    """Fully connected layer computing ``W @ x + b``.

    ``weights`` has shape ``[rows, columns]``: ``rows`` is the number of
    outputs and ``columns`` the number of inputs.  Inputs and outputs are
    column vectors wrapped in :class:`~seqnet.core.data.DMatrix`.

    Weights are drawn from ``numpy.random.default_rng(seed)``.  Without a
    seed every layer draws fresh entropy; pass one for reproducible runs.
    """

    rows: Optional[int] = None
    columns: Optional[int] = None
    weights: Optional[Array] = field(default=None, repr=False)
    biases: Optional[Array] = field(default=None, repr=False)
    seed: Seed = None
    name: str = "dense"
    data_type: DataType = DMatrix
    input: Optional[DMatrix] = field(default=None, repr=False)
    output: Optional[DMatrix] = field(default=None, repr=False)

    @property
    def input_dims(self) -> Optional[int]:
        return self.columns

    @property
    def output_dims(self) -> Optional[int]:
        return self.rows

    @property
    def initialized(self) -> bool:
        return self.weights is not None and self.biases is not None

    def initialize(self, context: LayerContext | None = None) -> "Dense":
        context = context or LayerContext()
        rows, columns = self.rows, self.columns
        weights = None
        if self.weights is not None:
            weights = np.asarray(self.weights, dtype=np.float64)
            if weights.ndim != 2:
                raise ShapeError(f"weights must be two dimensional, got shape {weights.shape}")
            rows = rows or weights.shape[0]
            columns = columns or weights.shape[1]
        rows = rows or _neighbour_dims(context.next_layer, "input_dims")
        columns = columns or _neighbour_dims(context.previous_layer, "output_dims")

        missing = [label for label, dim in (("rows", rows), ("columns", columns)) if not dim]
        if missing:
            raise LayerError(f"cannot infer {' and '.join(missing)} from neighbouring layers")

        if weights is None:
            rng = np.random.default_rng(self.seed)
            weights = rng.uniform(-1.0, 1.0, size=(rows, columns))
        elif weights.shape != (rows, columns):
            raise ShapeError(f"weights have shape {weights.shape}, expected {(rows, columns)}")

        if self.biases is None:
            biases = np.zeros((rows, 1), dtype=np.float64)
        else:
            biases = np.asarray(self.biases, dtype=np.float64)
            if biases.size != rows:
                raise ShapeError(f"expected {rows} biases, got {biases.size}")
            biases = biases.reshape(rows, 1)

        return replace(self, rows=int(rows), columns=int(columns), weights=weights, biases=biases)

    def feedforward(self, inputs: Any) -> tuple["Dense", DMatrix]:
        if not self.initialized:
            raise NotInitializedError(f"{self.name} layer has no weights; initialise it first")
        x = data.cast(self.data_type, data.decode(inputs), (self.columns, 1))
        z = self.weights @ x.values + self.biases
        output = DMatrix(z)
        return replace(self, input=x, output=output), output

    def backprop(
        self,
        total_loss_pd: float,
        loss_pd: Any,
        props: Backprop,
    ) -> tuple["Dense", DMatrix, Backprop]:
        """Apply one gradient step and return the error for the previous layer.

        ``loss_pd`` is the per-output error in the direction ``label - output``.
        The pending derivative, if any, belongs to the activation fed by this
        layer and is evaluated at the cached pre-activation output.
        ``total_loss_pd`` is the sum of the per-output loss partials and is
        already represented element by element in ``loss_pd``, so it is
        intentionally unused here.
        """

        if self.input is None or self.output is None:
            raise LayerError(f"{self.name} layer has no cached forward pass")
        derivative, props = props.take_derivative()
        error = data.cast(self.data_type, data.decode(loss_pd), (self.rows, 1)).values
        z = self.output.values
        delta = derivative.chain(z, error) if derivative is not None else error

        # d(sum of squared errors)/dz
        gradient = -2.0 * delta
        learning_rate = props.learning_rate
        weights = self.weights - learning_rate * (gradient @ self.input.values.T)
        biases = self.biases - learning_rate * gradient
        next_error = DMatrix(self.weights.T @ delta)
        return replace(self, weights=weights, biases=biases), next_error, props


__all__ = ["Dense"]
