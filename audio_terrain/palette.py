# audio_terrain/palette.py

"""
================================================================================
RING COLOUR UTILITIES
================================================================================
Colour lookup tables for the terrain rings. Outer rings are "near" the
viewer and drawn brightest; colours fade towards the "far" colour at the
inner ring, which sells the depth of the flight-through.

It is designed to be a pure, stateless utility with no dependencies on
Pygame, so it can be used with any DrawSurface.
================================================================================
"""
import numpy as np

from . import config as DEFAULTS


def ring_palette(rows: int, near_color: tuple = DEFAULTS.NEAR_RING_COLOR,
                 far_color: tuple = DEFAULTS.FAR_RING_COLOR) -> np.ndarray:
    """
    Creates a (rows, 3) uint8 colour LUT indexed by row.

    Row 0 (outer) gets near_color, the last row (inner) gets far_color.
    """
    if rows <= 0:
        return np.zeros((0, 3), dtype=np.uint8)
    t = np.linspace(0.0, 1.0, rows)[..., np.newaxis]
    c1 = np.array(near_color, dtype=np.float64)
    c2 = np.array(far_color, dtype=np.float64)
    colors = c1 * (1 - t) + c2 * t
    return np.clip(np.round(colors), 0, 255).astype(np.uint8)


def color_at(palette: np.ndarray, row: int) -> tuple:
    """Returns the RGB tuple for a row, clamping out-of-range rows."""
    if len(palette) == 0:
        return DEFAULTS.NEAR_RING_COLOR
    row = min(max(row, 0), len(palette) - 1)
    return tuple(int(c) for c in palette[row])
