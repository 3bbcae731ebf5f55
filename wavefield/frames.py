"""Indexed-color frames sampled from the lattice every steps_per_frame steps."""

import math
from dataclasses import dataclass
from functools import partial

import numpy as np

from wavefield.constants import PARTICLE_COLOR, PARTICLE_INDEX
from wavefield.lattice import Lattice
from wavefield.rules import classify_range
from wavefield.scheduler import Scheduler

MAX_PALETTE = 256

Palette = tuple[tuple[int, int, int], ...]


def default_palette() -> Palette:
    """256 entries, black through teal to blue: index i -> (0, i // 2, i), except the particle slot."""
    return tuple(
        PARTICLE_COLOR if i == PARTICLE_INDEX else (0, i // 2, i) for i in range(MAX_PALETTE)
    )


def expected_frames(total_steps: int, steps_per_frame: int, start_step: int = 0) -> int:
    """Sampled steps in [start_step, start_step + total_steps)."""
    end = start_step + total_steps
    return math.ceil(end / steps_per_frame) - math.ceil(start_step / steps_per_frame)


@dataclass(frozen=True, eq=False)
class Frame:
    """Read-only raster (ny, nx) of palette indices, its palette and display delay (1/100 s)."""

    step: int
    pixels: np.ndarray
    palette: Palette
    delay: int = 0

    def __post_init__(self) -> None:
        if self.pixels.ndim != 2 or self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be 2D uint8, got {self.pixels.dtype} {self.pixels.shape}")
        if not 0 < len(self.palette) <= MAX_PALETTE:
            raise ValueError(f"Palette must have 1..{MAX_PALETTE} entries, got {len(self.palette)}")
        self.pixels.flags.writeable = False

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) like an image."""
        return self.pixels.shape[1], self.pixels.shape[0]


def _render_range(lattice: Lattice, cells: np.ndarray, start: int, stop: int) -> None:
    cells[start:stop] = classify_range(lattice, start, stop)


class FrameSampler:
    """Decides which steps are sampled and renders them through the scheduler's render pool."""

    def __init__(
        self,
        lattice: Lattice,
        steps_per_frame: int,
        palette: Palette | None = None,
        delay: int = 0,
    ) -> None:
        if steps_per_frame < 1:
            raise ValueError(f"steps_per_frame must be >= 1, got {steps_per_frame}")
        self.lattice = lattice
        self.steps_per_frame = steps_per_frame
        self.palette = tuple(palette) if palette is not None else default_palette()
        self.delay = delay

    def due(self, step: int) -> bool:
        return step % self.steps_per_frame == 0

    def capture(self, scheduler: Scheduler, step: int) -> Frame:
        nx, ny = self.lattice.shape
        cells = np.zeros(self.lattice.size, dtype=np.uint8)
        scheduler.run("render", partial(_render_range, self.lattice, cells), self.lattice.size)
        # cells are x-major; images are row-major
        raster = np.ascontiguousarray(cells.reshape(nx, ny).T)
        return Frame(step=step, pixels=raster, palette=self.palette, delay=self.delay)
