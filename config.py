"""Load/save simulation parameters. Configs live in configs/ as {name}.json (+ optional .npz lattice state)."""

import json
import logging
import re
from pathlib import Path

import numpy as np

from wavefield.lattice import Lattice

logger = logging.getLogger("wavefield.config")

CONFIG_DIR = Path(__file__).resolve().parent / "configs"


def _sanitize_name(name: str) -> str:
    s = (name or "").strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s-]+", "_", s).strip("_")
    return s[:64] or "unnamed"


def get_config_path(name: str) -> Path:
    return CONFIG_DIR / f"{_sanitize_name(name)}.json"


def list_configs() -> list[str]:
    """Names of the configs shipped in configs/."""
    if not CONFIG_DIR.exists():
        return []
    return sorted(f.stem for f in CONFIG_DIR.glob("*.json"))


def resolve_config(ref: str | None) -> Path | None:
    """A config file path, or the name of one in configs/ (e.g. "lens")."""
    if ref is None:
        return None
    p = Path(ref)
    if p.exists() or p.suffix == ".json":
        return p
    if ref in list_configs():
        return get_config_path(ref)
    return p


def load_config(path: Path | str | None = None) -> dict:
    """Read a JSON config merged over defaults. Missing path = defaults."""
    if path is None:
        return _default_config()
    p = Path(path)
    if not p.exists():
        logger.warning("Config %s not found, using defaults", p)
        return _default_config()
    with open(p, "r") as f:
        return _merge_defaults(json.load(f))


def save_config(params: dict, path: Path | str) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w") as f:
        json.dump(params, f, indent=2)
    return p


def save_state(path: Path | str, lattice: Lattice, tick_count: int) -> Path:
    """Snapshot value, velocity and mass as (nx, ny) arrays."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        p,
        value=lattice.grid("value"),
        velocity=lattice.grid("velocity"),
        mass=lattice.grid("mass"),
        tick_count=np.int64(tick_count),
    )
    return p


def load_state(path: Path | str) -> dict | None:
    """Return {'value', 'velocity', 'mass': ndarray, 'tick_count': int} or None if unreadable."""
    p = Path(path)
    if not p.exists():
        return None
    try:
        data = np.load(p, allow_pickle=False)
        return {
            "value": data["value"].copy(),
            "velocity": data["velocity"].copy(),
            "mass": data["mass"].copy(),
            "tick_count": int(data["tick_count"]),
        }
    except (KeyError, OSError, ValueError) as exc:
        logger.warning("Could not read state %s: %s", p, exc)
        return None


def apply_state(lattice: Lattice, state: dict) -> None:
    """Restore a snapshot. Raises DimensionMismatchError if it was saved from another shape."""
    lattice.set_mass(state["mass"])
    lattice.set_state(state["value"], state["velocity"])


def _default_config() -> dict:
    return {
        "world": {"nx": 101, "ny": 101, "mass": 10.0, "boundary": "clamped"},
        "scene": "lens",
        "total_steps": 2000,
        "steps_per_frame": 20,
        "frame_delay": 0,
        "workers": {"velocity": 8, "value": 8, "particle_velocity": 2, "particle_value": 2, "render": 8},
        "chunk_size": None,
        "c2": 0.1,
        "source": {"cells": None, "period": 200.0, "duration": 300, "amplitude": 1.0},
        "particles": {"count": 0, "seed": -1, "cells": [], "velocity": [0.0, 0.0], "mass": 1.0},
        "state": None,
        "output": "image.gif",
        "fps": 25,
    }


def _merge_defaults(data: dict) -> dict:
    d = _default_config()
    for k in ("world", "workers", "source", "particles"):
        if k in data:
            d[k] = {**d[k], **data[k]}
    for k in (
        "scene", "total_steps", "steps_per_frame", "frame_delay", "chunk_size",
        "c2", "state", "output", "fps",
    ):
        if k in data:
            d[k] = data[k]
    return d
