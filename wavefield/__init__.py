"""Wavefield: phase-barriered lattice wave simulation rendered to indexed-color frames."""

from wavefield.lattice import Lattice
from wavefield.particle import Particle, relativistic_compose
from wavefield.frames import Frame, default_palette
from wavefield.simulation import Simulation
from wavefield.constants import CLAMPED, PERIODIC

__all__ = [
    "Lattice", "Particle", "relativistic_compose", "Frame", "default_palette",
    "Simulation", "CLAMPED", "PERIODIC",
]
