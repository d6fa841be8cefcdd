# audio_terrain/spectrum.py

"""
================================================================================
SPECTRUM SOURCES
================================================================================
The terrain only ever consumes spectra; it never analyses audio itself. This
module defines what a spectrum source looks like and provides the sources
that do not need an audio device.

Data Contract:
---------------
- SpectrumSource.latest() returns an ordered sequence of intensities. It must
  not block and must return the same data until new audio arrives.
- normalize_snapshot() turns whatever a source returned into a read-only
  float64 array in [0, 1] with at least one element.
- Invariants: a normalized snapshot never contains NaN or infinity.
================================================================================
"""
import math
import time
from typing import Callable, Protocol, Sequence

import numpy as np


class SpectrumSource(Protocol):
    """
    A protocol for anything that can hand the terrain a spectrum.
    Microphone, file and simulated sources all satisfy it.
    """

    def latest(self) -> Sequence[float]: ...


_SILENCE = np.zeros(1)
_SILENCE.setflags(write=False)


def _is_snapshot(values) -> bool:
    """True for a read-only, self-owned 1-D float64 array already in [0, 1]."""
    return (
        isinstance(values, np.ndarray)
        and values.ndim == 1
        and values.size > 0
        and values.dtype == np.float64
        and not values.flags.writeable
        and values.flags.owndata
        and bool(np.all((values >= 0.0) & (values <= 1.0)))
    )


def normalize_snapshot(values) -> np.ndarray:
    """
    Converts raw intensities into a read-only snapshot.

    None or an empty sequence becomes a single zero. NaN and infinities are
    replaced with 0 and everything is clipped to [0, 1]. A snapshot this
    function already produced is returned as is.
    """
    if values is None:
        return _SILENCE
    if _is_snapshot(values):
        return values
    snapshot = np.array(values, dtype=np.float64).ravel()
    if snapshot.size == 0:
        return _SILENCE
    snapshot = np.nan_to_num(snapshot, nan=0.0, posinf=0.0, neginf=0.0)
    np.clip(snapshot, 0.0, 1.0, out=snapshot)
    snapshot.setflags(write=False)
    return snapshot


class SpectrumBuffer:
    """
    Holds the most recent snapshot published by an audio callback.

    publish() may be called from the capture thread and latest() from the
    frame tick. Both only swap or read a single reference, so neither side
    ever waits on the other.
    """

    def __init__(self, bins: int = 1):
        self._snapshot = normalize_snapshot(np.zeros(max(1, bins)))
        self.published_count = 0

    def publish(self, values):
        self._snapshot = normalize_snapshot(values)
        self.published_count += 1

    def latest(self) -> np.ndarray:
        return self._snapshot


class SilentSpectrum:
    """All-zero spectrum, used when no audio is available."""

    def __init__(self, bins: int = 1):
        self._snapshot = normalize_snapshot(np.zeros(max(1, bins)))

    def latest(self) -> np.ndarray:
        return self._snapshot


class SimulatedSpectrum:
    """
    Deterministic, music-like spectrum for demos and headless runs.

    Each bucket is a slow sine with its own frequency and phase, blended with
    a shared "beat" so the whole ring breathes together. Higher buckets are
    attenuated, roughly like real program material.
    """

    def __init__(self, bins: int, clock: Callable[[], float] = time.perf_counter):
        self.bins = max(1, bins)
        self._clock = clock
        self._start = clock()

    def frame(self, t: float) -> np.ndarray:
        i = np.arange(self.bins, dtype=np.float64)
        freqs = 0.20 + i * (1.5 / self.bins)
        bands = 0.5 + 0.5 * np.sin(2.0 * math.pi * freqs * t + i * 0.6)
        beat = 0.5 + 0.5 * math.sin(2.0 * math.pi * 0.33 * t)
        rolloff = 1.0 - 0.6 * (i / self.bins)
        return normalize_snapshot((0.65 * bands + 0.35 * beat) * rolloff)

    def latest(self) -> np.ndarray:
        return self.frame(self._clock() - self._start)
