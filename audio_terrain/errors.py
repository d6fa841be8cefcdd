# audio_terrain/errors.py

"""
Exception types raised by the terrain pipeline.

None of these are meant to stop the render loop. The frame driver catches
them at the edge of a frame and degrades (silent audio, rejected resize,
flattened cells) instead.
"""
import logging

import numpy as np


class AudioTerrainError(Exception):
    """Base class for all errors raised by audio_terrain."""


class MissingAudioError(AudioTerrainError):
    """The spectrum collaborator is unavailable or produced nothing usable."""


class InvalidGeometryError(AudioTerrainError, ValueError):
    """Grid or viewport dimensions are not strictly positive."""


class NumericOverflowError(AudioTerrainError, ArithmeticError):
    """A noise or elevation computation produced NaN or infinity."""


def ensure_finite(values: np.ndarray, logger: logging.Logger = None, strict: bool = False) -> int:
    """
    Replaces every non-finite entry of `values` with 0.0, in place.

    Returns the number of entries that were replaced. With strict=True the
    array is left untouched and NumericOverflowError is raised instead.
    """
    bad = ~np.isfinite(values)
    count = int(np.count_nonzero(bad))
    if count == 0:
        return 0

    if strict:
        raise NumericOverflowError(f"{count} non-finite value(s) in array of shape {values.shape}")

    values[bad] = 0.0
    if logger is not None:
        logger.warning(f"Clamped {count} non-finite value(s) to 0.")
    return count
