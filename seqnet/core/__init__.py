"""Core layer primitives for seqnet."""

from . import activations, backprop, data, dense, layer, sequence, types

__all__ = ["activations", "backprop", "data", "dense", "layer", "sequence", "types"]
