"""
Embedded particle: sub-cell offset, own velocity, relativistic velocity composition
with the field, and the leap rule that moves it between cells.

Offsets live in [-0.5, 0.5). Crossing +0.5 moves one cell toward +x/+y (east/south),
crossing -0.5 one cell toward -x/-y. Each axis is handled on its own, so a diagonal
leap in a single step is allowed.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from wavefield.constants import EAST, NO_CELL, NORTH, SOUTH, WEST
from wavefield.errors import ParticleError
from wavefield.lattice import Lattice

logger = logging.getLogger(__name__)

_BELOW_HALF = math.nextafter(0.5, 0.0)


def relativistic_compose(v1: Sequence[float], v2: Sequence[float], c2: float) -> tuple[float, ...]:
    """(v1 + v2) / (1 + |v1|·|v2| / c2), component-wise. |v| is the Euclidean norm."""
    denom = 1.0 + math.hypot(*v1) * math.hypot(*v2) / c2
    return tuple((a + b) / denom for a, b in zip(v1, v2))


def compose_scalar(v1: float, v2: float, c2: float) -> float:
    return relativistic_compose((v1,), (v2,), c2)[0]


@dataclass
class Particle:
    """A weight riding the field. cell/last_cell are flat lattice indices."""

    cell: int
    mass: float = 1.0
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    last_cell: int = NO_CELL

    def __post_init__(self) -> None:
        if self.mass < 0:
            raise ParticleError(f"Particle mass must be non-negative, got {self.mass}")
        if self.last_cell == NO_CELL:
            self.last_cell = self.cell

    @property
    def speed(self) -> float:
        return math.hypot(self.velocity_x, self.velocity_y)


def place_particles(lattice: Lattice, particles: Sequence[Particle]) -> None:
    """
    Register every particle in its cell. Needs a periodic lattice; one particle per cell.
    All cells are checked before any is written, so a failure leaves the lattice untouched.
    """
    if particles and not lattice.periodic:
        raise ParticleError("Particles need a periodic lattice (gradient uses all 4 neighbors)")
    claimed: dict[int, int] = {}
    for pid, particle in enumerate(particles):
        if not 0 <= particle.cell < lattice.size:
            raise ParticleError(f"Particle {pid} cell index {particle.cell} outside lattice")
        holder = claimed.get(particle.cell, int(lattice.occupant[particle.cell]))
        if holder != NO_CELL and holder != pid:
            raise ParticleError(
                f"Cell {lattice.coords(particle.cell)} already holds particle {holder}, cannot place {pid}"
            )
        claimed[particle.cell] = pid
    for pid, particle in enumerate(particles):
        lattice.place(pid, particle.cell)


def snapshot_cells(particles: Sequence[Particle]) -> None:
    """Freeze pre-leap geometry for the coupling passes of this step."""
    for particle in particles:
        particle.last_cell = particle.cell


def calc_particle_velocity(lattice: Lattice, particle: Particle, c2: float) -> None:
    """
    Particle is pushed down the field gradient around its last cell; the field velocity
    there takes the opposite share of the change in particle speed.
    """
    c = particle.last_cell
    nbr = lattice.neighbors[c]
    value = lattice.value
    gx = (value[nbr[EAST]] - value[nbr[WEST]]) * 0.5
    gy = (value[nbr[SOUTH]] - value[nbr[NORTH]]) * 0.5
    old_speed = particle.speed
    particle.velocity_x, particle.velocity_y = relativistic_compose(
        (particle.velocity_x, particle.velocity_y), (-gx * c2, -gy * c2), c2
    )
    reaction = -particle.mass * (particle.speed - old_speed)
    lattice.velocity[c] = compose_scalar(lattice.velocity[c], reaction, c2)


def advance_offset(particle: Particle) -> None:
    particle.offset_x += particle.velocity_x
    particle.offset_y += particle.velocity_y


def _crossing(offset: float) -> int:
    if offset >= 0.5:
        return 1
    if offset < -0.5:
        return -1
    return 0


def leap(lattice: Lattice, particles: Sequence[Particle], pid: int) -> bool:
    """
    Move particle pid at most one cell per axis. A leap into an occupied cell is
    rejected: the particle stays and its offsets are clamped into [-0.5, 0.5).
    Returns True if the particle changed cell.
    """
    particle = particles[pid]
    dx, dy = _crossing(particle.offset_x), _crossing(particle.offset_y)
    if not dx and not dy:
        return False
    dst = lattice.shift(particle.cell, dx, dy)
    holder = int(lattice.occupant[dst])
    if holder != NO_CELL and holder != pid:
        logger.warning(
            "Particle %d leap into %s rejected: held by particle %d",
            pid, lattice.coords(dst), holder,
        )
        particle.offset_x = min(max(particle.offset_x, -0.5), _BELOW_HALF)
        particle.offset_y = min(max(particle.offset_y, -0.5), _BELOW_HALF)
        return False
    particle.offset_x -= dx
    particle.offset_y -= dy
    lattice.move_occupant(particle.cell, dst)
    particle.cell = dst
    return True


def leap_pass(lattice: Lattice, particles: Sequence[Particle]) -> int:
    """Commit leaps in ascending particle order (lower id wins a contested cell)."""
    moved = 0
    for pid in range(len(particles)):
        if leap(lattice, particles, pid):
            moved += 1
    return moved
