"""2D lattice of coupled cells stored in flat arrays. index = x * ny + y, shape (nx, ny)."""

import numpy as np

from wavefield.constants import (
    BOUNDARY_MODES,
    CLAMPED,
    DEFAULT_GAIN,
    DEFAULT_MASS,
    DEFAULT_NX,
    DEFAULT_NY,
    NEIGHBOR_OFFSETS,
    NO_CELL,
    PERIODIC,
)
from wavefield.errors import DimensionMismatchError, LatticeError, ParticleError


class Lattice:
    """Per-cell field state plus fixed 4-neighbor connectivity (clamped or periodic)."""

    __slots__ = (
        "shape", "boundary", "value", "velocity", "mass", "gain",
        "occupant", "neighbors", "adjacent",
    )

    def __init__(
        self,
        nx: int = DEFAULT_NX,
        ny: int = DEFAULT_NY,
        mass: float = DEFAULT_MASS,
        boundary: str = CLAMPED,
    ) -> None:
        if nx <= 0 or ny <= 0:
            raise LatticeError(f"Lattice dimensions must be positive, got {nx}x{ny}")
        if not mass > 0:
            raise LatticeError(f"Cell mass must be positive, got {mass}")
        if boundary not in BOUNDARY_MODES:
            raise LatticeError(f"Unknown boundary mode {boundary!r}; expected one of {BOUNDARY_MODES}")
        self.shape = (nx, ny)
        self.boundary = boundary
        n = nx * ny
        self.value = np.zeros(n, dtype=np.float64)
        self.velocity = np.zeros(n, dtype=np.float64)
        self.mass = np.full(n, float(mass), dtype=np.float64)
        self.gain = np.full(n, DEFAULT_GAIN, dtype=np.float64)
        self.occupant = np.full(n, NO_CELL, dtype=np.int64)
        self.neighbors = self._wire(nx, ny, boundary)
        # Same table without the NO_CELL holes, as tuples for per-cell loops.
        self.adjacent = [tuple(int(k) for k in row if k != NO_CELL) for row in self.neighbors]

    @staticmethod
    def _wire(nx: int, ny: int, boundary: str) -> np.ndarray:
        """(n, 4) neighbor indices in N, S, W, E order; NO_CELL where clamped edges cut."""
        X = np.repeat(np.arange(nx, dtype=np.int64), ny)
        Y = np.tile(np.arange(ny, dtype=np.int64), nx)
        table = np.full((nx * ny, 4), NO_CELL, dtype=np.int64)
        for slot, (dx, dy) in enumerate(NEIGHBOR_OFFSETS):
            nxs, nys = X + dx, Y + dy
            if boundary == PERIODIC:
                table[:, slot] = np.mod(nxs, nx) * ny + np.mod(nys, ny)
            else:
                inside = (nxs >= 0) & (nxs < nx) & (nys >= 0) & (nys < ny)
                table[inside, slot] = nxs[inside] * ny + nys[inside]
        return table

    @property
    def size(self) -> int:
        return self.shape[0] * self.shape[1]

    @property
    def periodic(self) -> bool:
        return self.boundary == PERIODIC

    def index(self, x: int, y: int) -> int:
        nx, ny = self.shape
        if not (0 <= x < nx and 0 <= y < ny):
            raise LatticeError(f"Cell ({x}, {y}) outside {nx}x{ny} lattice")
        return x * ny + y

    def coords(self, index: int) -> tuple[int, int]:
        return divmod(int(index), self.shape[1])

    def shift(self, index: int, dx: int, dy: int) -> int:
        """Index of the cell (dx, dy) away. Periodic wraps; clamped raises when leaving."""
        nx, ny = self.shape
        x, y = self.coords(index)
        x, y = x + dx, y + dy
        if self.periodic:
            return (x % nx) * ny + (y % ny)
        return self.index(x, y)

    def grid(self, name: str) -> np.ndarray:
        """2D (nx, ny) view of one per-cell array, e.g. grid("value")."""
        if name not in ("value", "velocity", "mass", "gain", "occupant"):
            raise KeyError(name)
        return getattr(self, name).reshape(self.shape)

    def _check_shape(self, arr: np.ndarray, what: str) -> np.ndarray:
        arr = np.asarray(arr)
        if arr.shape != self.shape:
            raise DimensionMismatchError(f"{what} has shape {arr.shape}, lattice is {self.shape}")
        return arr

    def scale_mass(self, mask: np.ndarray, factor: float) -> None:
        """Multiply mass where mask is true. Only meaningful before the first step."""
        mask = self._check_shape(mask, "mass mask").astype(bool).reshape(-1)
        scaled = self.mass[mask] * factor
        if scaled.size and not np.all(scaled > 0):
            raise LatticeError(f"Mass factor {factor} makes cell mass non-positive")
        self.mass[mask] = scaled

    def scale_gain(self, mask: np.ndarray, factor: float) -> None:
        mask = self._check_shape(mask, "gain mask").astype(bool).reshape(-1)
        self.gain[mask] *= factor

    def set_state(self, value: np.ndarray, velocity: np.ndarray | None = None) -> None:
        """Overwrite value (and optionally velocity) from (nx, ny) arrays."""
        self.value[:] = self._check_shape(value, "value").reshape(-1)
        if velocity is not None:
            self.velocity[:] = self._check_shape(velocity, "velocity").reshape(-1)

    def set_mass(self, mass: np.ndarray) -> None:
        mass = self._check_shape(mass, "mass").astype(np.float64)
        if not np.all(mass > 0):
            raise LatticeError("Cell mass must be positive everywhere")
        self.mass[:] = mass.reshape(-1)

    def inject(self, x: int, y: int, dv: float) -> None:
        """Add dv to the velocity of cell (x, y). Influence hooks use this between passes."""
        self.velocity[self.index(x, y)] += dv

    def place(self, particle_id: int, index: int) -> None:
        current = int(self.occupant[index])
        if current != NO_CELL and current != particle_id:
            x, y = self.coords(index)
            raise ParticleError(f"Cell ({x}, {y}) already holds particle {current}")
        self.occupant[index] = particle_id

    def move_occupant(self, src: int, dst: int) -> None:
        particle_id = int(self.occupant[src])
        self.occupant[src] = NO_CELL
        self.occupant[dst] = particle_id

    def total_value(self) -> float:
        return float(np.sum(self.value))
