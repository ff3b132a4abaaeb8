"""Capability set shared by every layer."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .backprop import Backprop
from .types import LayerContext


class Layer(Protocol):
    """Protocol implemented by activations, dense layers and sequences.

    Every method returns an updated layer instead of mutating ``self``; the
    caller threads the returned value into the next call.
    """

    @property
    def input_dims(self) -> Optional[int]:
        """Width of the input this layer consumes, if known."""

    @property
    def output_dims(self) -> Optional[int]:
        """Width of the output this layer produces, if known."""

    def initialize(self, context: LayerContext) -> "Layer":
        """Return an initialised layer or raise a ``SeqnetError``."""

    def feedforward(self, inputs: Any) -> tuple["Layer", Any]:
        """Return the layer with a refreshed cache and its output."""

    def backprop(
        self,
        total_loss_pd: float,
        loss_pd: Any,
        props: Backprop,
    ) -> tuple["Layer", Any, Backprop]:
        """Return the updated layer, the error for the previous layer and the carrier."""


def initialize(layer: Layer, context: LayerContext | None = None) -> Layer:
    return layer.initialize(context or LayerContext())


def feedforward(layer: Layer, inputs: Any) -> tuple[Layer, Any]:
    return layer.feedforward(inputs)


def backprop(
    layer: Layer, total_loss_pd: float, loss_pd: Any, props: Backprop
) -> tuple[Layer, Any, Backprop]:
    return layer.backprop(total_loss_pd, loss_pd, props)


def layer_name(layer: Any) -> str:
    name = getattr(layer, "name", None)
    if name is None:
        return type(layer).__name__
    return str(name)


__all__ = ["Layer", "backprop", "feedforward", "initialize", "layer_name"]
