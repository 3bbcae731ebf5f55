"""Tests for JSON config loading and npz lattice state."""

import json

import numpy as np
import pytest

import config
from wavefield.errors import DimensionMismatchError
from wavefield.lattice import Lattice


class TestConfig:
    """Defaults and merging."""

    def test_defaults_without_path(self):
        cfg = config.load_config()
        assert cfg["world"]["boundary"] == "clamped"
        assert cfg["steps_per_frame"] == 20

    def test_missing_file_gives_defaults(self, tmp_path):
        assert config.load_config(tmp_path / "nope.json") == config.load_config()

    def test_partial_sections_merge(self, tmp_path):
        p = tmp_path / "run.json"
        p.write_text(json.dumps({"world": {"nx": 33}, "workers": {"render": 1}, "total_steps": 7}))
        cfg = config.load_config(p)
        assert cfg["world"]["nx"] == 33
        assert cfg["world"]["ny"] == 101
        assert cfg["workers"]["render"] == 1
        assert cfg["workers"]["velocity"] == 8
        assert cfg["total_steps"] == 7

    def test_save_then_load(self, tmp_path):
        cfg = config.load_config()
        cfg["scene"] = "plain"
        path = config.save_config(cfg, tmp_path / "sub" / "x.json")
        assert config.load_config(path)["scene"] == "plain"

    def test_sanitize_name(self):
        assert config._sanitize_name("  my run! v2 ") == "my_run_v2"
        assert config._sanitize_name("") == "unnamed"


class TestState:
    """npz snapshots."""

    def test_roundtrip(self, tmp_path):
        lat = Lattice(4, 3)
        lat.value[:] = np.arange(12)
        lat.velocity[5] = -1.5
        lat.mass[2] = 20.0
        path = config.save_state(tmp_path / "s.npz", lat, tick_count=42)
        state = config.load_state(path)
        assert state["tick_count"] == 42

        other = Lattice(4, 3)
        config.apply_state(other, state)
        assert np.array_equal(other.value, lat.value)
        assert np.array_equal(other.velocity, lat.velocity)
        assert np.array_equal(other.mass, lat.mass)

    def test_shape_mismatch_on_apply(self, tmp_path):
        path = config.save_state(tmp_path / "s.npz", Lattice(4, 3), tick_count=0)
        with pytest.raises(DimensionMismatchError):
            config.apply_state(Lattice(3, 4), config.load_state(path))

    def test_missing_state(self, tmp_path):
        assert config.load_state(tmp_path / "missing.npz") is None

    def test_unreadable_state(self, tmp_path):
        p = tmp_path / "bad.npz"
        np.savez_compressed(p, value=np.zeros((2, 2)))
        assert config.load_state(p) is None


class TestResolve:
    """Config references by path or bundled name."""

    def test_bundled_names(self):
        names = config.list_configs()
        assert "lens" in names
        assert config.resolve_config("lens") == config.get_config_path("lens")
        assert config.load_config(config.resolve_config("lens"))["world"]["nx"] == 501

    def test_path_passthrough(self, tmp_path):
        p = tmp_path / "mine.json"
        assert config.resolve_config(str(p)) == p
        assert config.resolve_config(None) is None
