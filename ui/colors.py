"""
Display-only color lookup: palette-indexed frame rasters to RGB for pygame. The mass
boundary and particle indices come from the frame itself, so this only maps indices.
"""

import numpy as np

from wavefield.frames import Frame

# Shown around the lattice and while no frame exists yet.
BORDER_COLOR = (80, 80, 80)
EMPTY_COLOR = (0, 0, 0)


def palette_array(palette) -> np.ndarray:
    """(256, 3) uint8 lookup table; short palettes are padded with black."""
    lut = np.zeros((256, 3), dtype=np.uint8)
    arr = np.asarray(palette, dtype=np.uint8).reshape(-1, 3)
    lut[: len(arr)] = arr
    return lut


def frame_to_rgb(frame: Frame) -> np.ndarray:
    """Returns (height, width, 3) uint8 RGB."""
    return palette_array(frame.palette)[frame.pixels]
