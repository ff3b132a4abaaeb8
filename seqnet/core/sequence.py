"""Ordered composite layer driving forward and backward passes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence as SequenceType, Tuple

import numpy as np

from ..errors import InitializationError, NotInitializedError, SeqnetError, ShapeError
from . import data
from .backprop import Backprop
from .layer import Layer, layer_name
from .types import Array, LayerContext

ErrorCalc = Callable[[float], float]
Window = Tuple[Optional[Layer], Layer, Optional[Layer]]


def windows(
    layers: SequenceType[Layer],
    before: Optional[Layer] = None,
    after: Optional[Layer] = None,
) -> List[Window]:
    """Return ``(previous, current, next)`` for every layer, padded at the edges."""

    padded = [before, *layers, after]
    return [(padded[idx - 1], padded[idx], padded[idx + 1]) for idx in range(1, len(padded) - 1)]


def calc_network_error(outputs: Array, labels: Array) -> Array:
    outputs = np.asarray(outputs, dtype=np.float64)
    labels = np.asarray(labels, dtype=np.float64)
    if outputs.shape != labels.shape:
        raise ShapeError(f"network produced {outputs.size} outputs for {labels.size} labels")
    return labels - outputs


def calc_total_loss_pd(network_error: Array) -> float:
    """Derivative of the summed squared error with respect to the outputs, summed."""

    return float(-2.0 * np.sum(network_error))


@dataclass(frozen=True)
class Sequence:
    """Layer made of other layers, run in order.

    A sequence must be initialised once before it can run; initialisation
    gives every layer a view of its neighbours so missing dimensions can be
    inferred.  Every operation returns a new sequence.
    """

    layers: Tuple[Layer, ...] = ()
    learning_rate: float = 0.05
    initialized: bool = False
    error_calc: Optional[ErrorCalc] = None
    name: str = "sequence"

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))

    @property
    def input_dims(self) -> Optional[int]:
        for layer in self.layers:
            if layer.input_dims:
                return layer.input_dims
        return None

    @property
    def output_dims(self) -> Optional[int]:
        for layer in reversed(self.layers):
            if layer.output_dims:
                return layer.output_dims
        return None

    def initialize(self, context: LayerContext | None = None) -> "Sequence":
        """Initialise every layer, raising one error that lists all failures.

        Each layer sees its predecessor as already initialised, so widths
        resolved earlier in the stack flow forward through activations.
        """

        if self.initialized:
            return self
        context = context or LayerContext()
        resolved: List[Layer] = []
        failures = []
        for idx, (previous_layer, layer, next_layer) in enumerate(
            windows(self.layers, context.previous_layer, context.next_layer)
        ):
            if idx:
                previous_layer = resolved[idx - 1]
            try:
                layer = layer.initialize(LayerContext(previous_layer, next_layer))
            except SeqnetError as exc:
                failures.append((idx, layer_name(layer), str(exc)))
            resolved.append(layer)
        if failures:
            raise InitializationError(failures)
        return replace(self, layers=tuple(resolved), initialized=True)

    def _ensure_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError(f"{self.name} must be initialised before it can run")

    def feedforward(self, inputs: Any) -> tuple["Sequence", Any]:
        self._ensure_initialized()
        output = inputs
        fed: List[Layer] = []
        for layer in self.layers:
            layer, output = layer.feedforward(output)
            fed.append(layer)
        return replace(self, layers=tuple(fed)), output

    def backprop(
        self,
        total_loss_pd: float,
        loss_pd: Any,
        props: Backprop | None = None,
    ) -> tuple["Sequence", Any, Backprop]:
        """Run the layers in reverse, each receiving the error of its successor.

        Raises :class:`~seqnet.errors.InvariantViolation` when an activation's
        derivative is left in the carrier once every layer has run.
        """

        self._ensure_initialized()
        if props is None:
            props = Backprop(self.learning_rate)
        outer_rate = props.learning_rate
        props = props.with_learning_rate(self.learning_rate)
        error = loss_pd
        updated: List[Layer] = []
        for layer in reversed(self.layers):
            layer, error, props = layer.backprop(total_loss_pd, error, props)
            updated.append(layer)
        props.ensure_drained()
        updated.reverse()
        return replace(self, layers=tuple(updated)), error, props.with_learning_rate(outer_rate)

    def apply_error_calc(self, network_error: Array) -> Array:
        if self.error_calc is None:
            return network_error
        return np.asarray([self.error_calc(float(e)) for e in network_error], dtype=np.float64)

    def train_once(self, inputs: Any, labels: Any) -> "Sequence":
        """Run one forward pass and one backward pass on a single example."""

        seq, outputs = self.feedforward(inputs)
        network_error = calc_network_error(data.decode(outputs), data.decode(labels))
        backprop_error = self.apply_error_calc(network_error)
        total_loss_pd = calc_total_loss_pd(network_error)
        seq, _, _ = seq.backprop(total_loss_pd, backprop_error.tolist(), Backprop(self.learning_rate))
        return seq

    def predict(self, inputs: Any) -> List[float]:
        _, output = self.feedforward(inputs)
        return data.decode(output)

    def total_loss_pd(self, outputs: Any, labels: Any) -> float:
        return calc_total_loss_pd(calc_network_error(data.decode(outputs), data.decode(labels)))

    def loss(self, inputs: Any, labels: Any) -> float:
        """Summed squared error of the prediction for one example."""

        network_error = calc_network_error(self.predict(inputs), data.decode(labels))
        return float(np.sum(np.square(network_error)))


__all__ = ["Sequence", "calc_network_error", "calc_total_loss_pd", "windows"]
