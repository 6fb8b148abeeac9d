"""
Tests for the config/state file layer.
"""

import json
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config
from pollution import PollutionSimulation


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    d = tmp_path / "configs"
    monkeypatch.setattr(config, "CONFIG_DIR", d)
    monkeypatch.setattr(config, "LAST_FILE", d / "last.txt")
    config.refresh_index()
    yield d
    config.refresh_index()


def test_defaults_when_nothing_saved(config_dir):
    cfg = config.load_config()
    assert cfg == config._default_config()
    assert config.list_configs() == []
    assert config.get_last_config() is None


def test_default_config_builds_simulation():
    with PollutionSimulation.from_config(config._default_config()) as s:
        assert s.grid_size == 64
        assert s.pollutants.names == ["smoke", "co2"]


def test_save_and_load_round_trip(config_dir):
    cfg = config._default_config()
    cfg["grid_size"] = 4
    cfg["wind"] = {"angle": 90.0, "strength": 0.4}
    buffer = np.arange(2 * 4 * 4, dtype=float)
    config.save_config(cfg, "My run!", tick_count=12, state={"buffer": buffer, "tick_count": 12})

    assert config.list_configs() == ["My_run"]
    assert config.config_exists("My run!")
    assert config.get_last_config() == "My_run"
    loaded = config.load_config()
    assert loaded["grid_size"] == 4
    assert loaded["wind"] == {"angle": 90.0, "strength": 0.4}
    assert loaded["tick_count"] == 12
    state = config.load_state("My_run")
    np.testing.assert_array_equal(state["buffer"], buffer)
    assert state["tick_count"] == 12


def test_merge_defaults_fills_missing_keys(config_dir):
    config_dir.mkdir(parents=True)
    path = config_dir / "partial.json"
    path.write_text(json.dumps({"grid_size": 10, "wind": {"strength": 0.2}}))
    cfg = config.load_config(path)
    assert cfg["grid_size"] == 10
    assert cfg["wind"] == {"angle": 0.0, "strength": 0.2}
    assert cfg["tick_interval"] == 1.0
    assert len(cfg["pollutants"]) == 2


def test_missing_path_gives_defaults(config_dir):
    assert config.load_config(config_dir / "nope.json") == config._default_config()


def test_refresh_index_reads_disk(config_dir):
    config.save_config(config._default_config(), "alpha")
    config.save_config(config._default_config(), "Beta")
    config._CONFIG_INDEX.clear()
    config.refresh_index()
    assert config.list_configs() == ["alpha", "Beta"]


def test_delete_config(config_dir):
    config.save_config(config._default_config(), "gone", state={"buffer": np.zeros(4), "tick_count": 0})
    assert config.get_state_path("gone").exists()
    config.delete_config("gone")
    assert not config.config_exists("gone")
    assert not config.get_state_path("gone").exists()
    assert config.load_state("gone") is None
    assert config.get_last_config() is None


def test_corrupt_state_returns_none(config_dir):
    config_dir.mkdir(parents=True)
    config.get_state_path("bad").write_bytes(b"not an npz")
    assert config.load_state("bad") is None


def test_saved_state_loads_into_simulation(config_dir):
    cfg = config._default_config()
    cfg["grid_size"] = 3
    cfg["spill_over_borders"] = False
    with PollutionSimulation.from_config(cfg) as s:
        s.queue_edit("co2", (1, 2), 9.0)
        s.step()
        config.save_config(cfg, "run", state={"buffer": s.read_buffer(), "tick_count": s.tick_count})
    state = config.load_state("run")
    with PollutionSimulation.from_config(config.load_config()) as s:
        assert s.load_buffer(state["buffer"])
        s.step()
        assert s.total("co2") == pytest.approx(9.0)
