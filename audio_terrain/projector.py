# audio_terrain/projector.py

"""
================================================================================
POLAR PROJECTOR
================================================================================
Turns the height grid into one closed ring polyline per row and strokes
those rings onto a DrawSurface.

Data Contract:
---------------
- Inputs:
    - grid (HeightGrid): Elevations indexed [column, row].
    - config (ProjectionConfig): Centre, zoom, radius, hollow radius, rotation.
- Outputs:
    - project(): one list of (x, y) points per row, in local coordinates
      (before the surface transform is applied).
- Side Effects: project_and_draw() clears the surface and draws on it. The
  surface transform is always reset afterwards.
- Invariants: Each ring has cols + 1 candidate vertices, the last sharing
  the angle of the first. Candidates with r < hollow_radius are skipped.
================================================================================
"""
import math
from dataclasses import dataclass

import numpy as np

from . import config as DEFAULTS
from .errors import InvalidGeometryError
from .palette import color_at


@dataclass(frozen=True)
class ProjectionConfig:
    """Screen placement of the polar terrain."""
    center_x: float
    center_y: float
    zoom: float = DEFAULTS.DEFAULT_ZOOM
    radius: float = 0.0
    hollow_radius: float = 0.0
    rotation: float = 0.0  # radians

    @classmethod
    def for_viewport(cls, width: int, height: int, zoom: float = DEFAULTS.DEFAULT_ZOOM,
                     rotation: float = 0.0,
                     hollow_fraction: float = DEFAULTS.HOLLOW_FRACTION) -> 'ProjectionConfig':
        """
        Centres the terrain in a width x height viewport. The base radius is
        a third of the shorter side; the hollow is hollow_fraction of that.
        """
        if width <= 0 or height <= 0:
            raise InvalidGeometryError(f"Viewport must be positive, got {width}x{height}.")
        radius = min(width, height) / DEFAULTS.RADIUS_DIVISOR
        return cls(
            center_x=width / 2,
            center_y=height / 2,
            zoom=zoom,
            radius=radius,
            hollow_radius=radius * hollow_fraction,
            rotation=rotation,
        )


def ring_candidates(cols: int, rows: int, row: int, radius: float) -> list:
    """
    Returns the cols + 1 (theta, r) candidates of a ring. The last candidate
    wraps back to column 0 to close the loop.
    """
    r = (rows - 1 - row) / rows * radius
    return [((k % cols) / cols * 2 * math.pi, r) for k in range(cols + 1)]


class PolarProjector:
    """Projects a HeightGrid into rings and draws them."""

    def __init__(self, palette: np.ndarray = None):
        self.palette = palette

    def project_row(self, grid, row: int, config: ProjectionConfig) -> list:
        """
        Builds the polyline for one row. Elevation lifts a point upwards on
        screen (y - elevation), giving the tilted-plane illusion.
        """
        cols, rows = grid.cols, grid.rows
        elevations = grid.elevations
        points = []
        for k, (theta, r) in enumerate(ring_candidates(cols, rows, row, config.radius)):
            if r < config.hollow_radius:
                continue
            pos_x = math.cos(theta) * r
            pos_y = math.sin(theta) * r
            points.append((pos_x, pos_y - float(elevations[k % cols, row])))
        return points

    def project(self, grid, config: ProjectionConfig) -> list:
        """One polyline per row, outer ring (row 0) first."""
        return [self.project_row(grid, row, config) for row in range(grid.rows)]

    def project_and_draw(self, grid, surface, config: ProjectionConfig) -> list:
        """
        Clears the surface and strokes every ring under a single
        translate + scale + rotate transform. Returns the projected rings.
        """
        rings = self.project(grid, config)
        surface.clear()
        surface.set_transform((config.center_x, config.center_y), config.zoom, config.rotation)
        try:
            set_color = getattr(surface, 'set_stroke_color', None)
            for row, points in enumerate(rings):
                if set_color is not None and self.palette is not None:
                    set_color(color_at(self.palette, row))
                surface.begin_path()
                for x, y in points:
                    surface.line_to(x, y)
                surface.stroke()
        finally:
            surface.reset_transform()
        return rings
