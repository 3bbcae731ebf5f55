"""Reproducible particle placement from a seed. Seed -1 = new random each call.
Cells are derived from 0-1 relative coords so the same seed gives the same relative
placement for any lattice size (nx, ny)."""

import random
from typing import List, Tuple


def pick_particle_cells(
    nx: int, ny: int, count: int, seed: int
) -> Tuple[List[Tuple[int, int]], int]:
    """
    Return (cells, seed_used) with `count` distinct cells. If seed == -1, choose a new
    random seed. Raises ValueError if the lattice cannot hold that many particles.
    """
    if count > nx * ny:
        raise ValueError(f"Cannot place {count} particles on a {nx}x{ny} lattice")
    if seed == -1:
        seed_used = random.randint(0, 2**31 - 1)
    else:
        seed_used = seed
    rng = random.Random(seed_used)

    # Map 0-1 to cell indices; clamp so we stay in [0, nx-1] and [0, ny-1]
    def to_cell(rx: float, ry: float) -> Tuple[int, int]:
        return (min(int(rx * nx), nx - 1), min(int(ry * ny), ny - 1))

    cells: List[Tuple[int, int]] = []
    taken = set()
    while len(cells) < count:
        cell = to_cell(rng.random(), rng.random())
        if cell in taken:
            continue
        taken.add(cell)
        cells.append(cell)
    return cells, seed_used
