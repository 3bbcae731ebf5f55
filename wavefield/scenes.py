"""
Scene setup applied to a fresh lattice before the first step.

lens: mass doubled inside the intersection of two discs centred left and right of the
middle (a biconvex lens), and damped bands along the top and bottom edges where mass
and gain are scaled by 0.99 to soak up reflections. Geometry is relative to lattice
size so the same scene works at any resolution.
"""

import numpy as np

from wavefield.lattice import Lattice

LENS_MASS_FACTOR = 2.0
DAMPING_FACTOR = 0.99
# Fractions of the lattice size.
LENS_OFFSET = 0.16
LENS_RADIUS = 0.2
DAMPING_BAND = 0.2

SCENES = ("plain", "lens")


def _coords(lattice: Lattice) -> tuple[np.ndarray, np.ndarray]:
    nx, ny = lattice.shape
    X = np.arange(nx, dtype=np.float64).reshape(-1, 1)
    Y = np.arange(ny, dtype=np.float64).reshape(1, -1)
    return X, Y


def lens_mask(lattice: Lattice) -> np.ndarray:
    """(nx, ny) bool: inside both discs."""
    nx, ny = lattice.shape
    X, Y = _coords(lattice)
    cx, cy = (nx - 1) * 0.5, (ny - 1) * 0.5
    span = max(nx, ny) - 1
    dx = LENS_OFFSET * span
    r2 = (LENS_RADIUS * span) ** 2
    right = (X - (cx + dx)) ** 2 + (Y - cy) ** 2 < r2
    left = (X - (cx - dx)) ** 2 + (Y - cy) ** 2 < r2
    return right & left


def damping_mask(lattice: Lattice) -> np.ndarray:
    """(nx, ny) bool: rows within DAMPING_BAND of the top or bottom edge."""
    nx, ny = lattice.shape
    _, Y = _coords(lattice)
    band = DAMPING_BAND * (ny - 1)
    rows = (Y < band) | ((ny - 1) - Y < band)
    return np.broadcast_to(rows, (nx, ny))


def apply_lens(lattice: Lattice) -> None:
    lattice.scale_mass(lens_mask(lattice), LENS_MASS_FACTOR)
    damp = damping_mask(lattice)
    lattice.scale_mass(damp, DAMPING_FACTOR)
    lattice.scale_gain(damp, DAMPING_FACTOR)


def apply_scene(lattice: Lattice, name: str) -> None:
    if name == "plain":
        return
    if name == "lens":
        apply_lens(lattice)
        return
    raise ValueError(f"Unknown scene {name!r}; expected one of {SCENES}")


def west_source_cells(lattice: Lattice) -> list[tuple[int, int]]:
    """Two adjacent cells at the middle of the west edge."""
    _, ny = lattice.shape
    mid = ny // 2
    return [(0, mid), (0, min(mid + 1, ny - 1))] if ny > 1 else [(0, 0)]
