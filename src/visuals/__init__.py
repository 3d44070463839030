"""Visuals package public API.
This module re-exports key functions and constants from submodules
to provide a simplified interface.
"""

from .anims.state import (
    ColorTransition,
    FrameDriver,
    ManualFrameDriver,
    ThreadFrameDriver,
    TransitionRunner,
    lerp_palette,
)
from .core.colors import extract_palette, get_track_colors, palette_from_bytes
from .core.constants import DEFAULT_PALETTE, PALETTE_SIZE
from .io.images import fetch_image_bytes, fetch_inline_image, http_session

__all__ = [
    "DEFAULT_PALETTE",
    "PALETTE_SIZE",
    "extract_palette",
    "get_track_colors",
    "palette_from_bytes",
    "fetch_image_bytes",
    "fetch_inline_image",
    "http_session",
    "ColorTransition",
    "FrameDriver",
    "ManualFrameDriver",
    "ThreadFrameDriver",
    "TransitionRunner",
    "lerp_palette",
]
