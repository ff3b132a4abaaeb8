import json

import numpy as np
import pytest

from seqnet.core.activations import Activation
from seqnet.core.dense import Dense
from seqnet.core.sequence import Sequence
from seqnet.training import pipelines


def test_build_sequence_from_mapping():
    seq = pipelines.build_sequence(
        {
            "learning_rate": 0.2,
            "layers": [
                {"sequence": {"layers": [{"dense": {"rows": 3, "columns": 2}}, {"activation": "tanh"}]}},
                {"dense": {"rows": 1, "columns": 3}},
                {"activation": ["relu", 0.5]},
            ],
        }
    )
    assert seq.learning_rate == 0.2
    assert isinstance(seq.layers[0], Sequence)
    assert isinstance(seq.layers[1], Dense)
    assert isinstance(seq.layers[2], Activation)
    assert seq.layers[2].name == ("relu", 0.5)
    assert seq.initialize().initialized


def test_build_layer_rejects_unknown_specs():
    with pytest.raises(ValueError):
        pipelines.build_layer({"conv": {}})
    with pytest.raises(ValueError):
        pipelines.build_layer({"dense": {}, "activation": "tanh"})
    with pytest.raises(ValueError):
        pipelines.build_sequence({"layers": []})


def test_read_config_file_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "net.yaml"
    yaml_path.write_text(
        "model:\n"
        "  learning_rate: 0.1\n"
        "  layers:\n"
        "    - dense: {rows: 1, columns: 2}\n"
        "    - activation: sigmoid\n"
    )
    loaded = pipelines.read_config_file(yaml_path)
    assert loaded["model"]["layers"][1] == {"activation": "sigmoid"}

    json_path = tmp_path / "net.json"
    json_path.write_text(json.dumps({"model": {"layers": []}}))
    assert pipelines.read_config_file(json_path) == {"model": {"layers": []}}

    with pytest.raises(ValueError):
        pipelines.read_config_file(tmp_path / "net.toml")

    list_path = tmp_path / "list.json"
    list_path.write_text("[1, 2]")
    with pytest.raises(TypeError):
        pipelines.read_config_file(list_path)


def test_presets_are_copies():
    first = pipelines.load_preset("xor")
    first["train"]["epochs"] = 1
    assert pipelines.load_preset("xor")["train"]["epochs"] == 4000
    assert {"xor", "and-gate"} <= set(pipelines.presets())
    with pytest.raises(KeyError):
        pipelines.load_preset("missing")


def test_run_pipeline_writes_metrics(tmp_path):
    cfg = pipelines.load_preset("and-gate")
    cfg["train"].update({"epochs": 40, "log_every": 10, "run_dir": str(tmp_path / "run")})
    result = pipelines.run_pipeline(cfg)
    assert result.steps == 40
    records = [
        json.loads(line)
        for line in (tmp_path / "run" / "metrics.jsonl").read_text().splitlines()
        if line
    ]
    assert [record["step"] for record in records] == [10, 20, 30, 40]
    assert all("loss" in record for record in records)
    assert (tmp_path / "run" / "metrics.csv").read_text().startswith("loss,run,step")


def test_run_pipeline_requires_sections():
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"model": {}})


def test_build_sequence_seed_gives_reproducible_distinct_layers():
    model = {
        "layers": [
            {"dense": {"rows": 3, "columns": 3}},
            {"activation": "tanh"},
            {"sequence": {"layers": [{"dense": {"rows": 3, "columns": 3}}]}},
            {"dense": {"rows": 3, "columns": 3, "seed": 9}},
        ]
    }
    first = pipelines.build_sequence(model, seed=5).initialize()
    again = pipelines.build_sequence(model, seed=5).initialize()
    weights = [first.layers[0].weights, first.layers[2].layers[0].weights, first.layers[3].weights]

    assert np.array_equal(weights[0], again.layers[0].weights)
    assert np.array_equal(weights[1], again.layers[2].layers[0].weights)
    assert not np.array_equal(weights[0], weights[1])
    assert first.layers[3].seed == 9
    explicit = pipelines.build_layer({"dense": {"rows": 3, "columns": 3, "seed": 9}}).initialize()
    assert np.array_equal(weights[2], explicit.weights)
