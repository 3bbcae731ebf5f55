"""End-to-end tests for the stepped simulation."""

import numpy as np
import pytest

from wavefield.constants import PARTICLE_INDEX
from wavefield.errors import ParticleError, SimulationError
from wavefield.frames import expected_frames
from wavefield.influence import impulse, sine_source
from wavefield.lattice import Lattice
from wavefield.particle import Particle
from wavefield.scenes import apply_lens
from wavefield.rules import calc_value, calc_velocity
from wavefield.simulation import Simulation


def _lens_run(workers, steps=40):
    lat = Lattice(12, 9, mass=10.0)
    apply_lens(lat)
    sim = Simulation(
        lat,
        total_steps=steps,
        steps_per_frame=10,
        influence=sine_source([(0, 4), (0, 5)], period=20, duration=30),
        workers=workers,
    )
    frames = sim.run()
    return lat, frames


class TestFieldDynamics:
    """Rest state, propagation and boundaries."""

    def test_uniform_field_stays_at_rest(self):
        lat = Lattice(6, 5, mass=3.0)
        lat.value[:] = 3.0
        Simulation(lat, total_steps=30, steps_per_frame=10, workers=3).run()
        assert np.all(lat.value == 3.0)
        assert np.all(lat.velocity == 0.0)

    def test_periodic_signal_reenters_west_same_row(self):
        lat = Lattice(20, 3, mass=1.0, boundary="periodic")
        lat.grid("value")[19, 1] = 1.0
        Simulation(lat, total_steps=1, steps_per_frame=1, workers=2).run()
        grid = lat.grid("value")
        assert grid[0, 1] == pytest.approx(0.25)
        assert grid[0, 0] == 0.0
        assert grid[0, 2] == 0.0
        assert grid[10, 1] == 0.0

    def test_clamped_signal_stops_at_edge(self):
        lat = Lattice(20, 3, mass=1.0, boundary="clamped")
        lat.grid("value")[19, 1] = 1.0
        Simulation(lat, total_steps=1, steps_per_frame=1, workers=2).run()
        assert lat.grid("value")[0, 1] == 0.0
        assert lat.grid("value")[18, 1] > 0.0

    def test_influence_runs_before_velocity_pass(self):
        lat = Lattice(3, 1, mass=1.0)
        Simulation(lat, total_steps=1, steps_per_frame=1, influence=impulse([(1, 0)], 0.5)).run()
        assert lat.value[1] == 0.5

    @pytest.mark.parametrize("workers", [4, 64])
    def test_bit_identical_across_pool_sizes(self, workers):
        ref_lat, ref_frames = _lens_run(1)
        lat, frames = _lens_run(workers)
        assert np.array_equal(ref_lat.value, lat.value)
        assert np.array_equal(ref_lat.velocity, lat.velocity)
        assert all(np.array_equal(a.pixels, b.pixels) for a, b in zip(ref_frames, frames))

    def test_chunked_dispatch_matches_per_cell(self):
        def go(chunk):
            lat = Lattice(8, 8, boundary="periodic")
            sim = Simulation(
                lat, total_steps=25, steps_per_frame=5,
                influence=sine_source([(3, 3)], period=10, duration=12), workers=4, chunk_size=chunk,
            )
            sim.run()
            return lat.value.copy()

        assert np.array_equal(go(1), go(13))
        assert np.array_equal(go(1), go(None))

    def test_lens_matches_per_cell_rules(self):
        def reference(steps):
            lat = Lattice(12, 9, mass=10.0)
            apply_lens(lat)
            hook = sine_source([(0, 4), (0, 5)], period=20, duration=30)
            for index in range(steps):
                hook(lat, index)
                for i in range(lat.size):
                    calc_velocity(lat, i)
                for i in range(lat.size):
                    calc_value(lat, i)
            return lat

        ref = reference(40)
        lat, frames = _lens_run(4)
        assert np.array_equal(ref.value, lat.value)
        assert np.array_equal(ref.velocity, lat.velocity)


class TestFrames:
    """Sampling cadence and frame immutability."""

    def test_frame_count_and_steps(self):
        sim = Simulation(Lattice(3, 3), total_steps=500, steps_per_frame=20, workers=2)
        frames = sim.run()
        assert len(frames) == 25 == expected_frames(500, 20)
        assert [f.step for f in frames] == list(range(0, 500, 20))

    def test_resumed_run_numbers_steps_from_start(self):
        seen = []
        sim = Simulation(
            Lattice(3, 3), total_steps=7, steps_per_frame=4, start_step=5,
            influence=lambda lattice, step: seen.append(step),
        )
        frames = sim.run()
        assert seen == list(range(5, 12))
        assert [f.step for f in frames] == [8]
        assert sim.end_step == 12

    def test_partial_last_interval(self):
        frames = Simulation(Lattice(2, 2), total_steps=21, steps_per_frame=10, workers=1).run()
        assert [f.step for f in frames] == [0, 10, 20]

    def test_frames_are_read_only(self):
        frames = Simulation(Lattice(4, 3), total_steps=1, steps_per_frame=1, frame_delay=4).run()
        frame = frames[0]
        assert frame.size == (4, 3)
        assert frame.delay == 4
        with pytest.raises(ValueError):
            frame.pixels[0, 0] = 1

    def test_mass_boundary_rendered(self):
        lat = Lattice(5, 5, mass=10.0)
        lat.mass[lat.index(2, 2)] = 20.0
        frames = Simulation(lat, total_steps=1, steps_per_frame=1).run()
        px = frames[0].pixels
        assert px[2, 1] == 255  # (x=1, y=2) sees heavier east neighbor
        assert px[0, 0] == 128


class TestParticleVariant:
    """Particle passes inside a full run."""

    def test_massless_particle_at_rest_in_flat_field(self):
        lat = Lattice(6, 6, boundary="periodic")
        p = Particle(cell=lat.index(2, 3), mass=0.0)
        frames = Simulation(lat, total_steps=12, steps_per_frame=4, particles=[p], workers=3).run()
        assert p.cell == lat.index(2, 3)
        assert np.all(lat.value == 0.0)
        assert all(f.pixels[3, 2] == PARTICLE_INDEX for f in frames)

    def test_massive_particle_digs_a_well(self):
        lat = Lattice(8, 8, boundary="periodic")
        p = Particle(cell=lat.index(4, 4), mass=1.0)
        Simulation(lat, total_steps=5, steps_per_frame=5, particles=[p], workers=2).run()
        assert lat.value[p.cell] < 0.0

    def test_particle_run_deterministic(self):
        def go(workers):
            lat = Lattice(10, 10, boundary="periodic")
            particles = [
                Particle(cell=lat.index(2, 2), mass=0.5, velocity_x=0.2),
                Particle(cell=lat.index(7, 5), mass=0.5, velocity_y=-0.15),
            ]
            Simulation(
                lat, total_steps=30, steps_per_frame=10, particles=particles, workers=workers,
                influence=sine_source([(0, 5)], period=12, duration=20),
            ).run()
            return lat.value.copy(), [(q.cell, q.offset_x, q.offset_y) for q in particles]

        assert go(1)[1] == go(8)[1]
        assert np.array_equal(go(1)[0], go(8)[0])

    def test_particles_need_periodic_lattice(self):
        with pytest.raises(ParticleError):
            Simulation(Lattice(4, 4), total_steps=1, steps_per_frame=1, particles=[Particle(cell=0)])


class TestValidation:
    """Bad parameters and reuse."""

    @pytest.mark.parametrize(
        "kwargs", [{"total_steps": -1}, {"steps_per_frame": 0}, {"c2": 0.0}, {"start_step": -1}]
    )
    def test_invalid_parameters(self, kwargs):
        args = {"total_steps": 10, "steps_per_frame": 2, **kwargs}
        with pytest.raises(SimulationError):
            Simulation(Lattice(2, 2), **args)

    def test_runs_once(self):
        sim = Simulation(Lattice(2, 2), total_steps=2, steps_per_frame=1)
        sim.run()
        with pytest.raises(SimulationError, match="already ran"):
            sim.run()

    def test_hook_writing_outside_lattice_fails_run(self):
        sim = Simulation(Lattice(2, 2), total_steps=2, steps_per_frame=1, influence=impulse([(5, 5)], 1.0))
        with pytest.raises(ValueError):
            sim.run()

