"""External influence hooks: called once per step, between passes, as hook(lattice, step)."""

import math
from typing import Callable, Iterable

from wavefield.lattice import Lattice

InfluenceHook = Callable[[Lattice, int], None]


def no_influence(lattice: Lattice, step: int) -> None:
    return None


def sine_source(
    cells: Iterable[tuple[int, int]],
    period: float = 200.0,
    duration: int = 300,
    amplitude: float = 1.0,
) -> InfluenceHook:
    """Drive the given cells' velocity with amplitude * sin(2*pi*step/period) for step < duration."""
    cells = [(int(x), int(y)) for x, y in cells]
    if period <= 0:
        raise ValueError(f"Source period must be positive, got {period}")

    def hook(lattice: Lattice, step: int) -> None:
        if step >= duration:
            return
        dv = amplitude * math.sin(2.0 * math.pi * step / period)
        for x, y in cells:
            lattice.inject(x, y, dv)

    return hook


def impulse(cells: Iterable[tuple[int, int]], dv: float, at_step: int = 0) -> InfluenceHook:
    """One kick of dv to each cell at a single step."""
    cells = [(int(x), int(y)) for x, y in cells]

    def hook(lattice: Lattice, step: int) -> None:
        if step == at_step:
            for x, y in cells:
                lattice.inject(x, y, dv)

    return hook
