import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_runs_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "and-gate", "--epochs", "20"])
    run_dir = Path("runs/and-gate")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "metrics.csv").exists()
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary["steps"] == 20
    assert summary["run_dir"] == "runs/and-gate"


def test_cli_merges_partial_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    override = tmp_path / "override.json"
    override.write_text(json.dumps({"train": {"epochs": 8, "log_every": 4}}))
    dump = tmp_path / "resolved.json"
    main(["--preset", "xor", "--config", str(override), "--run-dir", "out", "--dump-config", str(dump)])
    resolved = json.loads(dump.read_text())
    assert resolved["train"]["epochs"] == 8
    assert resolved["model"]["learning_rate"] == 0.1
    assert len((tmp_path / "out" / "metrics.jsonl").read_text().splitlines()) == 2


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--list-presets"])
    assert info.value.code == 0
    assert "xor" in capsys.readouterr().out.split()
