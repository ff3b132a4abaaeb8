"""Training loops and configuration for seqnet."""

from .trainer import TrainResult, Trainer, train

__all__ = ["TrainResult", "Trainer", "train"]
