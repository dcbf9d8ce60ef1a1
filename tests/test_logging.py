from __future__ import annotations

import json
import logging
from pathlib import Path

from fask_engine.graph import Graph
from fask_engine.orientation import OrientationEngine
from fask_engine.utils.logging_utils import get_logger, init_logging


def _records(path: Path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_file_and_json_logs_carry_run_id(tmp_path: Path):
    cfg = {
        "logging": {"level": "INFO", "to_file": True, "to_json": True, "dir": str(tmp_path)},
        "search": {"two_cycle_alpha": 0.01},
    }
    assert init_logging(cfg, run_id="unit") == "unit"
    get_logger("fask.test").info("hello %s", "world")

    text = (tmp_path / "fask_unit.log").read_text()
    assert "unit fask.test: hello world" in text

    recs = _records(tmp_path / "fask_unit.jsonl")
    assert recs[0]["logger"] == "fask.run"
    assert recs[0]["config"] == {"two_cycle_alpha": 0.01}
    assert recs[-1]["msg"] == "hello world"
    assert recs[-1]["level"] == "INFO"
    assert all(r["run_id"] == "unit" for r in recs)
    assert "pair" not in recs[-1]


def test_orientation_decisions_tagged_with_pair(tmp_path: Path, skewed_ds):
    init_logging({"logging": {"level": "DEBUG", "to_json": True, "dir": str(tmp_path)}}, run_id="pairs")
    X, Y = skewed_ds.variables
    g = Graph(skewed_ds.variables)
    g.add_undirected(X, Y)
    OrientationEngine(skewed_ds).run(g)

    recs = [r for r in _records(tmp_path / "fask_pairs.jsonl") if r["logger"] == "fask.orientation"]
    tagged = [r for r in recs if "pair" in r]
    assert tagged
    assert all(r["pair"] == ["X", "Y"] for r in tagged)
    assert any("cxy=" in r["msg"] for r in tagged)


def test_level_from_config(tmp_path: Path):
    rid = init_logging({"logging": {"level": "WARNING", "dir": str(tmp_path)}})
    assert rid
    assert logging.getLogger().level == logging.WARNING
    assert not list(tmp_path.iterdir())
