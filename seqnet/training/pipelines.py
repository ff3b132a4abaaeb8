"""Build and run sequences from plain configuration mappings."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from ..core import activations
from ..core.dense import Dense, Seed
from ..core.layer import Layer
from ..core.sequence import Sequence
from ..reporting.metrics import CsvSink, JsonlSink
from .trainer import TrainResult, Trainer

_XOR_INPUTS = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "model": {
            "learning_rate": 0.1,
            "layers": [
                {"dense": {"rows": 4, "columns": 2, "seed": 1}},
                {"activation": "tanh"},
                {"dense": {"rows": 1, "columns": 4, "seed": 2}},
                {"activation": "sigmoid"},
            ],
        },
        "data": {"inputs": _XOR_INPUTS, "labels": [[0.0], [1.0], [1.0], [0.0]]},
        "train": {"epochs": 4000, "log_every": 400, "run_dir": "runs/xor"},
    },
    "and-gate": {
        "model": {
            "learning_rate": 0.1,
            "layers": [
                {"dense": {"rows": 1, "columns": 2, "seed": 0}},
                {"activation": "sigmoid"},
            ],
        },
        "data": {"inputs": _XOR_INPUTS, "labels": [[0.0], [0.0], [0.0], [1.0]]},
        "train": {"epochs": 2000, "log_every": 200, "run_dir": "runs/and-gate"},
    },
}

_REQUIRED = {"model", "data", "train"}


def read_config_file(path: str | Path) -> Mapping[str, object]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    elif suffix == ".json":
        data = json.loads(path.read_text() or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, object]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


def _spawn(seed: Seed, count: int) -> List[Optional[np.random.SeedSequence]]:
    if seed is None:
        return [None] * count
    if not isinstance(seed, np.random.SeedSequence):
        seed = np.random.SeedSequence(seed)
    return seed.spawn(count)


def build_layer(spec: Mapping[str, Any], seed: Seed = None) -> Layer:
    """Build one layer from ``{"dense": {...}}``, ``{"activation": ...}`` or ``{"sequence": {...}}``.

    ``seed`` is used by dense layers that do not name their own.
    """

    if not isinstance(spec, Mapping) or len(spec) != 1:
        raise ValueError(f"Layer spec must be a single-key mapping, got {spec!r}")
    (kind, options), = spec.items()
    if kind == "dense":
        options = dict(options or {})
        if seed is not None:
            options.setdefault("seed", seed)
        return Dense(**options)
    if kind == "activation":
        if isinstance(options, list):
            options = tuple(options)
        return activations.build(options)
    if kind == "sequence":
        return build_sequence(options, seed=seed)
    raise ValueError(f"Unknown layer kind: {kind}")


def build_sequence(model_cfg: Mapping[str, Any], seed: Seed = None) -> Sequence:
    specs = list(model_cfg.get("layers", []))
    layers = [build_layer(item, child) for item, child in zip(specs, _spawn(seed, len(specs)))]
    if not layers:
        raise ValueError("model config must list at least one layer")
    return Sequence(
        layers=tuple(layers),
        learning_rate=float(model_cfg.get("learning_rate", 0.05)),
    )


def run_pipeline(config: Mapping[str, object]) -> TrainResult:
    """Train the configured sequence, writing metrics into ``train.run_dir``."""

    missing = _REQUIRED - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    model_cfg = dict(config["model"])
    data_cfg = dict(config["data"])
    train_cfg = dict(config["train"])

    inputs: List[Any] = list(data_cfg["inputs"])
    labels: List[Any] = list(data_cfg["labels"])
    if len(inputs) != len(labels):
        raise ValueError(f"{len(inputs)} inputs but {len(labels)} labels")

    seq = build_sequence(model_cfg, seed=train_cfg.get("seed"))
    run_dir = Path(str(train_cfg.get("run_dir", "runs/default")))
    run_dir.mkdir(parents=True, exist_ok=True)
    epochs = int(train_cfg.get("epochs", 1))
    log_every = train_cfg.get("log_every")

    _print_startup_summary(seq=seq, examples=len(inputs), epochs=epochs, run_dir=run_dir)

    sinks = [JsonlSink(run_dir / "metrics.jsonl"), CsvSink(run_dir / "metrics.csv")]
    trainer = Trainer(callbacks=sinks)
    return trainer.run(
        seq,
        list(zip(inputs, labels)),
        epochs,
        log_every=int(log_every) if log_every else None,
    )


def _print_startup_summary(*, seq: Sequence, examples: int, epochs: int, run_dir: Path) -> None:
    print("=== seqnet run ===")
    print(f"Layers        : {[getattr(layer, 'name', type(layer).__name__) for layer in seq.layers]}")
    print(f"Learning rate : {seq.learning_rate}")
    print(f"Examples      : {examples}")
    print(f"Steps         : {epochs}")
    print(f"Run dir       : {run_dir}")


__all__ = [
    "build_layer",
    "build_sequence",
    "load_preset",
    "presets",
    "read_config_file",
    "run_pipeline",
]
