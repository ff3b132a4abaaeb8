from __future__ import annotations

from typing import List, Mapping

import pytest

from seqnet import dense, activation, sequence, train
from seqnet.training.trainer import Trainer, dataset_loss

AND_INPUTS = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
AND_LABELS = [[0.0], [0.0], [0.0], [1.0]]


class _Capture:
    def __init__(self) -> None:
        self.history: List[tuple[int, Mapping[str, float]]] = []

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        self.history.append((step, dict(metrics)))


def _and_network():
    return sequence([dense(1, 2, seed=0), activation("sigmoid")], learning_rate=0.5)


def test_trainer_reduces_loss_on_and_gate() -> None:
    seq = _and_network()
    examples = list(zip(AND_INPUTS, AND_LABELS))
    initial = dataset_loss(seq.initialize(), examples)
    capture = _Capture()

    result = Trainer(callbacks=[capture]).run(seq, examples, epochs=4000, log_every=400)

    assert result.steps == 4000
    assert result.sequence.initialized
    assert [step for step, _ in capture.history] == list(range(400, 4001, 400))
    assert capture.history[-1][1]["loss"] == pytest.approx(result.loss)
    assert result.loss < initial
    assert result.loss < 0.1
    prediction = result.sequence.predict([1.0, 1.0])[0]
    assert prediction > result.sequence.predict([0.0, 0.0])[0]


def test_train_cycles_examples_and_accepts_plain_callables() -> None:
    seen: list[tuple[int, float]] = []
    trained = train(
        _and_network(),
        AND_INPUTS,
        AND_LABELS,
        epochs=10,
        log_every=3,
        callbacks=[lambda step, metrics: seen.append((step, metrics["loss"]))],
    )
    assert trained.initialized
    assert [step for step, _ in seen] == [3, 6, 9, 10]


def test_trainer_requires_examples() -> None:
    with pytest.raises(ValueError):
        Trainer().run(_and_network(), [], epochs=5)
    with pytest.raises(ValueError):
        Trainer().run(_and_network(), list(zip(AND_INPUTS, AND_LABELS)), epochs=-1)
