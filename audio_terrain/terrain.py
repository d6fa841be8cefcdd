# audio_terrain/terrain.py

"""
================================================================================
POLAR HEIGHT GRID
================================================================================
This module owns the per-frame elevation data of the terrain, along with the
small pieces of state that decide which slice of the noise field is sampled.

Data Contract:
---------------
- Inputs (per update):
    - noise (NoiseField): The coherent noise generator.
    - scroll (ScrollState): Flying and depth offsets.
    - spectrum: A sequence of intensities in [0, 1]. May be empty.
- Outputs:
    - HeightGrid.elevations, a (cols, rows) float64 array indexed
      [column, row].
- Side Effects: update() advances scroll.flying and overwrites every cell.
- Invariants: After update() every cell holds a finite number. Row 0 is the
  outer ring, the last row is the inner ring.
================================================================================
"""
import logging
from dataclasses import dataclass

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .errors import InvalidGeometryError, ensure_finite
from .noise import NoiseField, simplex_noise_2d
from .spectrum import normalize_snapshot


@njit
def _fill_elevations(p, out, flying, depth_offset, spectrum,
                     noise_step, noise_amplitude, spectrum_gain):
    """
    Recomputes every cell. Rows are visited from last (inner) to first
    (outer); the first visited row samples noise at yoff = flying.
    """
    cols, rows = out.shape
    n_bins = spectrum.shape[0]
    yoff = flying
    for row in range(rows - 1, -1, -1):
        xoff = 0.0
        for col in range(cols):
            height = simplex_noise_2d(p, xoff, yoff + depth_offset) * noise_amplitude
            out[col, row] = height + spectrum[col % n_bins] * spectrum_gain
            xoff += noise_step
        yoff += noise_step


@dataclass
class ScrollState:
    """Selects the slice of the infinite noise field sampled this frame."""
    flying: float = 0.0
    depth: float = 0.0

    def reset(self):
        self.flying = 0.0
        self.depth = 0.0


class SpeedState:
    """The per-frame depth advance, driven by user input."""

    def __init__(self, initial: float = DEFAULTS.INITIAL_SPEED,
                 minimum: float = DEFAULTS.SPEED_MINIMUM,
                 step: float = DEFAULTS.SPEED_STEP):
        self.minimum = minimum
        self.step = step
        self.value = max(minimum, initial)

    def increase(self) -> float:
        self.value += self.step
        return self.value

    def decrease(self) -> float:
        self.value = max(self.minimum, self.value - self.step)
        return self.value


class HeightGrid:
    """
    A COLS x ROWS grid of elevations, recomputed in full every frame from
    noise plus the current spectrum.
    """

    def __init__(self, cols: int = DEFAULTS.DEFAULT_COLS, rows: int = DEFAULTS.DEFAULT_ROWS,
                 settings: dict = None, logger: logging.Logger = None):
        """
        Args:
            cols (int): Number of columns (angular resolution of a ring).
            rows (int): Number of rows (number of rings).
            settings (dict, optional): Consolidated settings; only the noise and
                spectrum scale keys are read.
            logger (logging.Logger, optional): Defaults to the module logger.
        """
        self.logger = logger or logging.getLogger(__name__)
        settings = settings or {}
        self.noise_step = settings.get('noise_step', DEFAULTS.NOISE_STEP)
        self.noise_amplitude = settings.get('noise_amplitude', DEFAULTS.NOISE_AMPLITUDE)
        self.spectrum_gain = settings.get('spectrum_gain', DEFAULTS.SPECTRUM_GAIN)
        self.flying_step = settings.get('flying_step', DEFAULTS.FLYING_STEP)
        self.depth_divisor = settings.get('depth_divisor', DEFAULTS.DEPTH_DIVISOR)

        self._cells = None
        self.reset(cols, rows)

    @property
    def cols(self) -> int:
        return self._cells.shape[0]

    @property
    def rows(self) -> int:
        return self._cells.shape[1]

    @property
    def elevations(self) -> np.ndarray:
        """Read-only view of the cells, indexed [column, row]."""
        view = self._cells.view()
        view.setflags(write=False)
        return view

    def elevation(self, column: int, row: int) -> float:
        return float(self._cells[column, row])

    def reset(self, cols: int, rows: int):
        """
        Zeroes every cell, reallocating when the dimensions change.
        Non-positive dimensions are rejected and the grid is left as it was.
        """
        if cols <= 0 or rows <= 0:
            raise InvalidGeometryError(f"Grid dimensions must be positive, got {cols}x{rows}.")
        self._cells = np.zeros((int(cols), int(rows)), dtype=np.float64)
        self.logger.debug(f"Height grid reset to {cols}x{rows}.")

    def update(self, noise: NoiseField, scroll: ScrollState, spectrum):
        """
        Overwrites every cell with
        noise(xoff, yoff + depth / divisor) * amplitude + spectrum * gain,
        sampled at the advanced scroll.flying. flying is only stored once
        the cells are filled. An empty spectrum contributes nothing.
        """
        snapshot = normalize_snapshot(spectrum)
        flying = scroll.flying + self.flying_step

        _fill_elevations(
            noise.permutation_table, self._cells,
            float(flying), float(scroll.depth) / self.depth_divisor, snapshot,
            float(self.noise_step), float(self.noise_amplitude), float(self.spectrum_gain),
        )
        scroll.flying = flying
        ensure_finite(self._cells, self.logger)
