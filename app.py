"""
App shell: build a simulation from config, run it, write the GIF, then optionally play
the frames back in a window. Playback is driven from elapsed time and fps (independent
of display refresh). Space pauses, left/right step one frame while paused.
"""

import argparse
import logging
from pathlib import Path

import pygame

import config
from logging_config import setup_logging
from ui import draw_frame, draw_status
from wavefield import Lattice, Particle, Simulation
from wavefield.export import save_gif
from wavefield.frames import Frame
from wavefield.influence import sine_source
from wavefield.scenes import apply_scene, west_source_cells
from wavefield.seed_util import pick_particle_cells

logger = logging.getLogger("wavefield.app")

TITLE = "Wavefield"
WIDTH, HEIGHT = 640, 664
BACKGROUND = (0, 0, 0)
STATUS_HEIGHT = 24


def build_simulation(cfg: dict) -> Simulation:
    world = cfg["world"]
    lattice = Lattice(int(world["nx"]), int(world["ny"]), float(world["mass"]), world["boundary"])
    apply_scene(lattice, cfg.get("scene", "plain"))

    start_step = 0
    if cfg.get("state"):
        state = config.load_state(cfg["state"])
        if state is not None:
            config.apply_state(lattice, state)
            start_step = state["tick_count"]
            logger.info("Restored lattice state from %s, resuming at step %d", cfg["state"], start_step)

    src = cfg["source"]
    cells = src.get("cells") or west_source_cells(lattice)
    influence = sine_source(cells, period=src["period"], duration=src["duration"], amplitude=src["amplitude"])

    pcfg = cfg["particles"]
    cells = [tuple(c) for c in pcfg.get("cells") or []]
    if not cells and pcfg.get("count", 0) > 0:
        nx, ny = lattice.shape
        cells, seed_used = pick_particle_cells(nx, ny, int(pcfg["count"]), int(pcfg.get("seed", -1)))
        logger.info("Placed %d particles with seed %d", len(cells), seed_used)
    vx, vy = pcfg.get("velocity", (0.0, 0.0))
    particles = [
        Particle(cell=lattice.index(x, y), mass=float(pcfg.get("mass", 1.0)), velocity_x=vx, velocity_y=vy)
        for x, y in cells
    ]

    return Simulation(
        lattice,
        total_steps=int(cfg["total_steps"]),
        steps_per_frame=int(cfg["steps_per_frame"]),
        influence=influence,
        particles=particles,
        workers=cfg["workers"],
        chunk_size=cfg.get("chunk_size"),
        c2=float(cfg["c2"]),
        frame_delay=int(cfg.get("frame_delay", 0)),
        start_step=start_step,
    )


def play(frames: list[Frame], fps: int = 25) -> None:
    """Loop the frames in a window until closed."""
    pygame.init()
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption(TITLE)
    clock = pygame.time.Clock()
    view_rect = pygame.Rect(0, 0, WIDTH, HEIGHT - STATUS_HEIGHT)

    idx = 0
    paused = False
    frame_accum = 0.0
    running = True

    while running:
        dt_s = clock.tick(60) / 1000.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_RIGHT and frames:
                    idx = (idx + 1) % len(frames)
                elif event.key == pygame.K_LEFT and frames:
                    idx = (idx - 1) % len(frames)
                elif event.key == pygame.K_ESCAPE:
                    running = False

        if not paused and frames:
            frame_accum += dt_s * max(1, fps)
            advance = int(frame_accum)
            frame_accum -= advance
            idx = (idx + advance) % len(frames)

        screen.fill(BACKGROUND)
        current = frames[idx] if frames else None
        draw_frame(screen, view_rect, current)
        if current is not None:
            draw_status(screen, (6, HEIGHT - STATUS_HEIGHT + 5), idx, len(frames), current.step, paused)
        pygame.display.flip()

    pygame.quit()


def run(cfg: dict, output: Path | None = None, view: bool = True, state_out: Path | None = None) -> list[Frame]:
    sim = build_simulation(cfg)
    frames = sim.run(progress=True)
    if state_out is not None:
        config.save_state(state_out, sim.lattice, sim.end_step)
        logger.info("Saved lattice state to %s", state_out)
    if output is not None and frames:
        save_gif(frames, output)
    if view:
        play(frames, fps=int(cfg.get("fps", 25)))
    return frames


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Simulate a lattice wave field and render it to a GIF.")
    parser.add_argument("--config", default=None, help="JSON config path or name in configs/ (defaults if omitted)")
    parser.add_argument("--list-configs", action="store_true", help="List bundled configs and exit")
    parser.add_argument("--output", type=Path, default=None, help="GIF path (overrides config)")
    parser.add_argument("--steps", type=int, default=None, help="Total steps (overrides config)")
    parser.add_argument("--no-view", action="store_true", help="Skip the playback window")
    parser.add_argument("--save-state", type=Path, default=None, help="Write final lattice state (.npz)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    args = parser.parse_args(argv)

    if args.list_configs:
        print("\n".join(config.list_configs()))
        return

    setup_logging(getattr(logging, args.log_level), args.log_file)
    cfg = config.load_config(config.resolve_config(args.config))
    if args.steps is not None:
        cfg["total_steps"] = args.steps
    output = args.output or (Path(cfg["output"]) if cfg.get("output") else None)
    run(cfg, output=output, view=not args.no_view, state_out=args.save_state)


if __name__ == "__main__":
    main()
