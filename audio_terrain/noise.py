# audio_terrain/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides 2D simplex noise for the terrain. The kernels are pure,
stateless functions; NoiseField wraps them together with the permutation
table they read from.

Data Contract:
---------------
- Inputs:
    - p: A pre-shuffled, doubled NumPy permutation table (512 ints).
    - x, y: Floats (or NumPy arrays of floats for the grid variant).
- Outputs:
    - Noise values, approximately in the range [-1, 1].
- Side Effects: None.
- Invariants: Lattice indices are reduced modulo 256 before every lookup, so
  any finite coordinate is valid input. The same table and coordinate always
  produce a bit-identical value.
================================================================================
"""

import math

import numpy as np
from numba import njit

from . import config as DEFAULTS

# Skew and unskew factors for two dimensions.
_F2 = 0.5 * (math.sqrt(3.0) - 1.0)
_G2 = (3.0 - math.sqrt(3.0)) / 6.0

# The 12 edge directions of a cube, projected onto the xy plane.
_GRADIENT_VECTORS = np.array([
    [1.0, 1.0], [-1.0, 1.0], [1.0, -1.0], [-1.0, -1.0],
    [1.0, 0.0], [-1.0, 0.0], [1.0, 0.0], [-1.0, 0.0],
    [0.0, 1.0], [0.0, -1.0], [0.0, 1.0], [0.0, -1.0],
])

# Scales the summed corner contributions into roughly [-1, 1].
_OUTPUT_SCALE = 70.0


@njit
def _wrap(v):
    "floor(v) mod 256, computed in float space so huge values cannot overflow."
    return int(v - 256.0 * np.floor(v / 256.0)) & 255


@njit
def _corner(g_index, dx, dy):
    """Radial falloff contribution of one simplex corner."""
    t = 0.5 - dx * dx - dy * dy
    if t < 0.0:
        return 0.0
    g = _GRADIENT_VECTORS[g_index]
    t *= t
    return t * t * (g[0] * dx + g[1] * dy)


@njit
def simplex_noise_2d(p, x, y):
    """
    Samples 2D simplex noise at a single point.
    This function is JIT-compiled with Numba so it can be called per cell
    from other compiled loops.
    """
    # Skew the input space to find the containing simplex cell.
    s = (x + y) * _F2
    i = np.floor(x + s)
    j = np.floor(y + s)

    # Unskew the cell origin back to (x, y) space.
    t = (i + j) * _G2
    x0 = x - (i - t)
    y0 = y - (j - t)

    # Lower or upper triangle of the rhombus.
    if x0 > y0:
        i1 = 1
        j1 = 0
    else:
        i1 = 0
        j1 = 1

    x1 = x0 - i1 + _G2
    y1 = y0 - j1 + _G2
    x2 = x0 - 1.0 + 2.0 * _G2
    y2 = y0 - 1.0 + 2.0 * _G2

    ii = _wrap(i)
    jj = _wrap(j)
    gi0 = p[ii + p[jj]] % 12
    gi1 = p[ii + i1 + p[jj + j1]] % 12
    gi2 = p[ii + 1 + p[jj + 1]] % 12

    n = _corner(gi0, x0, y0) + _corner(gi1, x1, y1) + _corner(gi2, x2, y2)
    return _OUTPUT_SCALE * n


@njit
def simplex_noise_grid(p, x, y):
    """Samples simplex noise for every element of two same-shaped 2D arrays."""
    rows, cols = x.shape
    out = np.zeros((rows, cols))
    for r in range(rows):
        for c in range(cols):
            out[r, c] = simplex_noise_2d(p, x[r, c], y[r, c])
    return out


def make_permutation_table(seed: int) -> np.ndarray:
    """Shuffles 0..255 with the given seed and doubles it to 512 entries."""
    p = np.arange(DEFAULTS.PERMUTATION_SIZE, dtype=np.int64)
    rng = np.random.default_rng(seed)
    rng.shuffle(p)
    return np.stack([p, p]).flatten()


class NoiseField:
    """
    A seeded-once 2D coherent noise generator.

    The permutation table is built at construction and frozen afterwards.
    To re-seed, build a new NoiseField.
    """

    def __init__(self, seed: int = None, permutation_table: np.ndarray = None):
        """
        Args:
            seed (int, optional): Seed for the shuffle. Defaults to DEFAULT_SEED.
            permutation_table (np.ndarray, optional): A pre-computed table of
                256 (doubled automatically) or 512 entries. Takes precedence
                over the seed.
        """
        if permutation_table is not None:
            p = np.asarray(permutation_table, dtype=np.int64).ravel()
            if p.size == DEFAULTS.PERMUTATION_SIZE:
                p = np.concatenate([p, p])
            if p.size != 2 * DEFAULTS.PERMUTATION_SIZE:
                raise ValueError(f"Permutation table must have 256 or 512 entries, got {p.size}.")
            if not np.array_equal(np.sort(p[:DEFAULTS.PERMUTATION_SIZE]), np.arange(DEFAULTS.PERMUTATION_SIZE)):
                raise ValueError("Permutation table must be a permutation of 0..255.")
            self.seed = seed
        else:
            self.seed = DEFAULTS.DEFAULT_SEED if seed is None else seed
            p = make_permutation_table(self.seed)

        self._p = np.ascontiguousarray(p)
        self._p.setflags(write=False)

    @property
    def permutation_table(self) -> np.ndarray:
        return self._p

    @property
    def gradients(self) -> np.ndarray:
        return _GRADIENT_VECTORS.copy()

    def sample(self, x: float, y: float) -> float:
        """Returns the noise value at (x, y), approximately in [-1, 1]."""
        return float(simplex_noise_2d(self._p, float(x), float(y)))

    def sample_grid(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Vectorised sample() over two arrays of the same shape."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if xs.shape != ys.shape:
            raise ValueError(f"Coordinate arrays differ in shape: {xs.shape} vs {ys.shape}")
        # The kernel works on 2D arrays; flatten to a single row and back.
        out = simplex_noise_grid(self._p, xs.reshape(1, -1), ys.reshape(1, -1))
        return out.reshape(xs.shape)
