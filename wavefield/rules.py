"""
Update rules. The per-cell functions touch one cell: they write only that cell's
velocity or value and read neighbors' committed state, so a pass can run them in any
order on any number of workers.

The *_range functions apply the same rule to the cells [start, stop) with numpy and
produce bit-identical results. Passes dispatch those; the per-cell forms stay as the
readable reference.
"""

import math
from typing import Sequence

import numpy as np

from wavefield.constants import BLACK, GRAY_OFFSET, GRAY_SCALE, NO_CELL, PARTICLE_INDEX, WHITE
from wavefield.lattice import Lattice
from wavefield.particle import Particle, compose_scalar


def _gray(gray: float) -> int:
    index = int(min(max(gray, 0.0), 255.0))
    # the particle index is reserved; a field that bright shows as saturated
    return WHITE if index == PARTICLE_INDEX else index


def calc_velocity(lattice: Lattice, i: int) -> None:
    """velocity = velocity * gain + mean(neighbor - self) / mass."""
    adjacent = lattice.adjacent[i]
    value = lattice.value
    here = value[i]
    force = 0.0
    for n in adjacent:
        force += value[n] - here
    if adjacent:
        force /= len(adjacent)
    lattice.velocity[i] = lattice.velocity[i] * lattice.gain[i] + force / lattice.mass[i]


def calc_value(lattice: Lattice, i: int) -> None:
    lattice.value[i] += lattice.velocity[i]


def calc_cell_perturbation_velocity(
    lattice: Lattice, i: int, particles: Sequence[Particle], c2: float
) -> None:
    """Particle-variant velocity: summed neighbor force times c2, composed relativistically."""
    value = lattice.value
    here = value[i]
    force = 0.0
    for n in lattice.adjacent[i]:
        force += value[n] - here
    acceleration = force * c2
    pid = lattice.occupant[i]
    if pid == NO_CELL:
        lattice.velocity[i] = compose_scalar(lattice.velocity[i], acceleration, c2)
        return
    particle = particles[pid]
    v = compose_scalar(particle.speed, acceleration, c2)
    # mass self-coupling: the particle digs a well in the field it occupies
    lattice.velocity[i] = compose_scalar(v, -particle.mass / lattice.mass[i] * c2, c2)


def classify(lattice: Lattice, i: int) -> int:
    """Palette index for one cell: particle, mass boundary (white/black), or gray from value."""
    if lattice.occupant[i] != NO_CELL:
        return PARTICLE_INDEX
    mass = lattice.mass
    here = mass[i]
    for n in lattice.adjacent[i]:
        if mass[n] > here:
            return WHITE
        if mass[n] < here:
            return BLACK
    gray = GRAY_SCALE * lattice.value[i] + GRAY_OFFSET
    if not math.isfinite(gray):
        return BLACK
    return _gray(gray)


def _neighbor_force(lattice: Lattice, start: int, stop: int) -> tuple[np.ndarray, np.ndarray]:
    """Summed (neighbor - self) over present neighbors, accumulated in N, S, W, E order."""
    table = lattice.neighbors[start:stop]
    value = lattice.value
    here = value[start:stop]
    force = np.zeros(stop - start, dtype=np.float64)
    present = table != NO_CELL
    for slot in range(table.shape[1]):
        has = present[:, slot]
        force += np.where(has, value[table[:, slot]] - here, 0.0)
    return force, present.sum(axis=1)


def _compose(v1: np.ndarray, v2: np.ndarray, c2: float) -> np.ndarray:
    return (v1 + v2) / (1.0 + np.abs(v1) * np.abs(v2) / c2)


def calc_velocity_range(lattice: Lattice, start: int, stop: int) -> None:
    force, count = _neighbor_force(lattice, start, stop)
    np.divide(force, count, out=force, where=count > 0)
    cells = slice(start, stop)
    lattice.velocity[cells] = lattice.velocity[cells] * lattice.gain[cells] + force / lattice.mass[cells]


def calc_value_range(lattice: Lattice, start: int, stop: int) -> None:
    lattice.value[start:stop] += lattice.velocity[start:stop]


def calc_cell_perturbation_velocity_range(
    lattice: Lattice, start: int, stop: int, particles: Sequence[Particle], c2: float
) -> None:
    force, _ = _neighbor_force(lattice, start, stop)
    velocity = lattice.velocity[start:stop]
    velocity[:] = _compose(velocity, force * c2, c2)
    # occupied cells start from the particle's speed instead
    for i in np.flatnonzero(lattice.occupant[start:stop] != NO_CELL):
        calc_cell_perturbation_velocity(lattice, start + int(i), particles, c2)


def classify_range(lattice: Lattice, start: int, stop: int) -> np.ndarray:
    """uint8 palette indices for cells [start, stop), same rule order as classify()."""
    table = lattice.neighbors[start:stop]
    mass = lattice.mass
    here = mass[start:stop]
    with np.errstate(invalid="ignore"):
        gray = GRAY_SCALE * lattice.value[start:stop] + GRAY_OFFSET
        out = np.where(np.isfinite(gray), np.clip(gray, 0.0, 255.0), BLACK).astype(np.uint8)
    out[out == PARTICLE_INDEX] = WHITE
    undecided = np.ones(stop - start, dtype=bool)
    for slot in range(table.shape[1]):
        nbr = table[:, slot]
        m = mass[nbr]
        live = undecided & (nbr != NO_CELL)
        heavier = live & (m > here)
        lighter = live & (m < here)
        out[heavier] = WHITE
        out[lighter] = BLACK
        undecided &= ~(heavier | lighter)
    out[lattice.occupant[start:stop] != NO_CELL] = PARTICLE_INDEX
    return out
