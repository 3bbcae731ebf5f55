"""UI: frame playback view."""

from ui.grid_view import draw_frame, draw_status
from ui.colors import frame_to_rgb

__all__ = ["draw_frame", "draw_status", "frame_to_rgb"]
