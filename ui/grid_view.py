"""Frame view: one sampled lattice frame scaled into a rect with a thin grey border."""

import pygame

from ui.colors import BORDER_COLOR, EMPTY_COLOR, frame_to_rgb
from wavefield.frames import Frame

BORDER_PX = 1
LABEL_COLOR = (200, 200, 200)
FONT_SIZE = 16

_font = None


def _ensure_font() -> pygame.font.Font:
    global _font
    if _font is None:
        _font = pygame.font.Font(None, FONT_SIZE)
    return _font


def draw_frame(surface: pygame.Surface, rect: pygame.Rect, frame: Frame | None) -> None:
    """Draw frame into rect, nearest-neighbor scaled so lattice cells stay crisp."""
    if frame is None:
        surface.fill(EMPTY_COLOR, rect)
    else:
        rgb = frame_to_rgb(frame)
        H, W = rgb.shape[0], rgb.shape[1]
        # pygame: size (width, height); rgb is (H, W, 3) row-major
        img = pygame.image.frombytes(rgb.tobytes(), (W, H), "RGB")
        scaled = pygame.transform.scale(img, (rect.width, rect.height))
        surface.blit(scaled, rect.topleft)
    pygame.draw.rect(surface, BORDER_COLOR, rect, BORDER_PX)


def draw_status(surface: pygame.Surface, pos: tuple[int, int], frame_idx: int, total: int, step: int, paused: bool) -> None:
    text = f"frame {frame_idx + 1}/{total}  step {step}" + ("  [paused]" if paused else "")
    surface.blit(_ensure_font().render(text, True, LABEL_COLOR), pos)
