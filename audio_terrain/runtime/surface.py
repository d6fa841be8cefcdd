# audio_terrain/runtime/surface.py

"""
================================================================================
DRAW SURFACES
================================================================================
The projector draws through a small canvas-like interface so it can target
a Pygame window, an off-screen Surface, or a recorder in tests.

Data Contract:
---------------
- DrawSurface: clear(), begin_path(), line_to(x, y), stroke(),
  set_transform(translate, scale, rotate), reset_transform().
  set_stroke_color(rgb) is optional.
- PygameDrawSurface applies the transform in canvas order: a local point is
  rotated, then scaled, then translated.
- Side Effects: Draws on the wrapped pygame.Surface.
================================================================================
"""
import math
from typing import Protocol

import pygame

from .. import config as DEFAULTS


class DrawSurface(Protocol):
    """
    A protocol defining the drawing calls the projector makes. Any object
    providing these methods can be drawn on.
    """

    def clear(self) -> None: ...
    def begin_path(self) -> None: ...
    def line_to(self, x: float, y: float) -> None: ...
    def stroke(self) -> None: ...
    def set_transform(self, translate: tuple[float, float], scale: float, rotate: float) -> None: ...
    def reset_transform(self) -> None: ...


class PygameDrawSurface:
    """Strokes polylines onto a pygame.Surface."""

    def __init__(self, screen: pygame.Surface,
                 background: tuple = DEFAULTS.BACKGROUND_COLOR,
                 line_width: int = DEFAULTS.LINE_WIDTH,
                 antialias: bool = DEFAULTS.ANTIALIAS):
        self.screen = screen
        self.background = background
        self.line_width = max(1, int(line_width))
        self.antialias = antialias
        self.color = DEFAULTS.NEAR_RING_COLOR
        self._path = []
        self.reset_transform()

    def set_screen(self, screen: pygame.Surface):
        """Points the surface at a new target, e.g. after the window was resized."""
        self.screen = screen

    def set_stroke_color(self, color: tuple):
        self.color = color

    def set_transform(self, translate, scale, rotate):
        self._tx, self._ty = translate
        self._scale = scale
        self._cos = math.cos(rotate)
        self._sin = math.sin(rotate)

    def reset_transform(self):
        self.set_transform((0.0, 0.0), 1.0, 0.0)

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        """Maps a local point through the current transform."""
        rx = self._cos * x - self._sin * y
        ry = self._sin * x + self._cos * y
        return self._tx + self._scale * rx, self._ty + self._scale * ry

    def clear(self):
        self.screen.fill(self.background)

    def begin_path(self):
        self._path = []

    def line_to(self, x, y):
        self._path.append(self.to_screen(x, y))

    def stroke(self):
        # A single point has no segment to draw.
        if len(self._path) < 2:
            return
        if self.antialias and self.line_width == 1:
            pygame.draw.aalines(self.screen, self.color, False, self._path)
        else:
            pygame.draw.lines(self.screen, self.color, False, self._path, self.line_width)
