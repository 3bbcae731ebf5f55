"""GIF export of a frame sequence via Pillow (palette mode, infinite loop)."""

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from wavefield.frames import Frame

logger = logging.getLogger(__name__)


def frame_to_image(frame: Frame) -> Image.Image:
    img = Image.frombytes("P", frame.size, np.ascontiguousarray(frame.pixels).tobytes())
    flat = [channel for rgb in frame.palette for channel in rgb]
    img.putpalette(flat)
    return img


def save_gif(frames: Sequence[Frame], output_path: Path | str, loop: int = 0) -> Path:
    """Write frames as an animated GIF. Frame delay is in 1/100 s, Pillow wants ms."""
    if not frames:
        raise ValueError("No frames to export")
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    images = [frame_to_image(f) for f in frames]
    images[0].save(
        output_path,
        save_all=True,
        append_images=images[1:],
        duration=[f.delay * 10 for f in frames],
        loop=loop,
        # full-frame replace; also keeps Pillow from folding identical frames together
        disposal=2,
    )
    logger.info("Wrote %d frames to %s", len(frames), output_path)
    return output_path
