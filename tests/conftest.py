"""Shared fixtures."""

import pytest

from wavefield.lattice import Lattice


@pytest.fixture
def small_clamped():
    return Lattice(5, 4, mass=2.0, boundary="clamped")


@pytest.fixture
def torus():
    return Lattice(10, 10, mass=1.0, boundary="periodic")
