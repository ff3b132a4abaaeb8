"""Sequential training loop over a cyclic stream of examples."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence as SequenceType, Tuple

import numpy as np

from ..core.sequence import Sequence

Example = Tuple[Any, Any]


@dataclass(frozen=True)
class TrainResult:
    """Summary returned by :meth:`Trainer.run`."""

    sequence: Sequence
    steps: int
    loss: float


def dataset_loss(seq: Sequence, examples: SequenceType[Example]) -> float:
    """Mean summed-squared error of ``seq`` over ``examples``."""

    if not examples:
        return 0.0
    return float(np.mean([seq.loss(inputs, labels) for inputs, labels in examples]))


class Trainer:
    """Fold ``Sequence.train_once`` over a repeated stream of examples.

    One step consumes one ``(input, label)`` pair; ``epochs`` counts steps.
    Callbacks receive ``on_step(step, {"loss": ...})`` every ``log_every``
    steps and once more after the final step.
    """

    def __init__(self, callbacks: SequenceType[object] | None = None) -> None:
        self.callbacks = list(callbacks or [])

    def run(
        self,
        seq: Sequence,
        examples: Iterable[Example],
        epochs: int,
        *,
        log_every: int | None = None,
    ) -> TrainResult:
        if epochs < 0:
            raise ValueError("epochs must be non-negative")
        pairs: List[Example] = list(examples)
        if not pairs:
            raise ValueError("training requires at least one example")

        seq = seq.initialize()
        step = 0
        for step, (inputs, labels) in enumerate(
            itertools.islice(itertools.cycle(pairs), epochs), start=1
        ):
            seq = seq.train_once(inputs, labels)
            if log_every and step % log_every == 0 and step != epochs:
                self._emit_step(step, {"loss": dataset_loss(seq, pairs)})

        final_loss = dataset_loss(seq, pairs)
        self._emit_step(step, {"loss": final_loss})
        return TrainResult(sequence=seq, steps=step, loss=final_loss)

    def _emit_step(self, step: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(step, metrics)


def train(
    seq: Sequence,
    inputs: Iterable[Any],
    labels: Iterable[Any],
    *,
    epochs: int,
    log_every: int | None = None,
    callbacks: SequenceType[object] | None = None,
) -> Sequence:
    """Train ``seq`` on ``inputs``/``labels`` and return the trained sequence."""

    examples = list(zip(inputs, labels))
    result = Trainer(callbacks).run(seq, examples, epochs, log_every=log_every)
    return result.sequence


__all__ = ["TrainResult", "Trainer", "dataset_loss", "train"]
