"""
Simulation driver.

Per step: influence hook -> velocity pass -> value pass
-> [particle velocity pass -> particle value pass -> leap pass] -> render pass (every
steps_per_frame steps, step 0 included). Every pass ends on a barrier, and the hook and
the leap pass run in the dispatching thread while no pass is active.

Step indices are absolute: a run resumed from a snapshot taken at tick t numbers its
steps t, t+1, ... so influence timing and frame sampling carry on where they stopped.
"""

import logging
import time
from functools import partial
from typing import Mapping, Sequence

from tqdm import tqdm

from wavefield.constants import DEFAULT_C2
from wavefield.errors import SimulationError
from wavefield.frames import Frame, FrameSampler, Palette, expected_frames
from wavefield.influence import InfluenceHook, no_influence
from wavefield.lattice import Lattice
from wavefield.particle import (
    Particle,
    advance_offset,
    calc_particle_velocity,
    leap_pass,
    place_particles,
    snapshot_cells,
)
from wavefield.rules import calc_cell_perturbation_velocity_range, calc_value_range, calc_velocity_range
from wavefield.scheduler import DEFAULT_WORKERS, Scheduler, per_index

logger = logging.getLogger(__name__)


class Simulation:
    """Owns the lattice, influence hook, particles and the frames they produce. Runs once."""

    def __init__(
        self,
        lattice: Lattice,
        total_steps: int,
        steps_per_frame: int,
        influence: InfluenceHook | None = None,
        particles: Sequence[Particle] = (),
        workers: int | Mapping[str, int] = DEFAULT_WORKERS,
        chunk_size: int | None = None,
        c2: float = DEFAULT_C2,
        frame_delay: int = 0,
        palette: Palette | None = None,
        start_step: int = 0,
    ) -> None:
        if total_steps < 0:
            raise SimulationError(f"total_steps must be >= 0, got {total_steps}")
        if steps_per_frame < 1:
            raise SimulationError(f"steps_per_frame must be >= 1, got {steps_per_frame}")
        if not c2 > 0:
            raise SimulationError(f"c2 must be positive, got {c2}")
        if start_step < 0:
            raise SimulationError(f"start_step must be >= 0, got {start_step}")
        self.lattice = lattice
        self.total_steps = total_steps
        self.start_step = start_step
        self.influence = influence or no_influence
        self.particles = list(particles)
        self.c2 = c2
        place_particles(lattice, self.particles)
        self.sampler = FrameSampler(lattice, steps_per_frame, palette, frame_delay)
        self.scheduler = Scheduler(workers, chunk_size)
        self.frames: list[Frame] = []
        self._consumed = False

        n = lattice.size
        if self.particles:
            velocity_fn = self._perturbation_velocity
        else:
            velocity_fn = partial(calc_velocity_range, lattice)
        self._cell_passes = [
            ("velocity", velocity_fn, n),
            ("value", partial(calc_value_range, lattice), n),
        ]

    @property
    def end_step(self) -> int:
        """First step index after this run; the tick count to save with a snapshot."""
        return self.start_step + self.total_steps

    def _perturbation_velocity(self, start: int, stop: int) -> None:
        calc_cell_perturbation_velocity_range(self.lattice, start, stop, self.particles, self.c2)

    def _particle_velocity(self, pid: int) -> None:
        calc_particle_velocity(self.lattice, self.particles[pid], self.c2)

    def _particle_value(self, pid: int) -> None:
        advance_offset(self.particles[pid])

    def step(self, index: int) -> None:
        """Advance one step. Only valid inside run() while the scheduler is up."""
        self.influence(self.lattice, index)
        if self.particles:
            snapshot_cells(self.particles)
        for name, fn, count in self._cell_passes:
            self.scheduler.run(name, fn, count)
        if self.particles:
            count = len(self.particles)
            self.scheduler.run("particle_velocity", per_index(self._particle_velocity), count)
            self.scheduler.run("particle_value", per_index(self._particle_value), count)
            leap_pass(self.lattice, self.particles)
        if self.sampler.due(index):
            self.frames.append(self.sampler.capture(self.scheduler, index))
            logger.debug("Captured frame %d at step %d", len(self.frames) - 1, index)

    def run(self, progress: bool = False) -> list[Frame]:
        if self._consumed:
            raise SimulationError("Simulation already ran; build a new one")
        self._consumed = True
        nx, ny = self.lattice.shape
        logger.info(
            "Simulating steps %d..%d on %dx%d %s lattice (%d particles, %d frames expected)",
            self.start_step, self.end_step - 1, nx, ny, self.lattice.boundary, len(self.particles),
            expected_frames(self.total_steps, self.sampler.steps_per_frame, self.start_step),
        )
        t0 = time.perf_counter()
        with self.scheduler:
            steps = range(self.start_step, self.end_step)
            for index in tqdm(steps, desc="Simulating", unit="step", disable=not progress):
                self.step(index)
        logger.info("Finished %d steps in %.2fs", self.total_steps, time.perf_counter() - t0)
        return self.frames
