# audio_terrain/audio.py

"""
================================================================================
AUDIO CAPTURE
================================================================================
Spectrum sources backed by real audio: a live input device (sounddevice) and
a decoded WAV file (scipy). Both reduce PCM blocks to a normalised spectrum
with SpectrumAnalyser, which relies on numpy's FFT.

Data Contract:
---------------
- Inputs: PCM blocks (any numeric dtype, mono or multi-channel).
- Outputs: latest() returns a `bins`-long float64 array in [0, 1].
- Side Effects: MicrophoneSpectrum runs a capture thread owned by
  sounddevice between start() and stop().
- Invariants: latest() never blocks on audio. Failure to open a device or
  file raises MissingAudioError.
================================================================================
"""
import logging
import time
from typing import Callable

import numpy as np
from scipy.io import wavfile

from . import config as DEFAULTS
from .errors import MissingAudioError
from .spectrum import SpectrumBuffer, normalize_snapshot


def to_float_mono(data: np.ndarray) -> np.ndarray:
    """Converts integer or float PCM of any channel count to mono in [-1, 1]."""
    data = np.asarray(data)
    if np.issubdtype(data.dtype, np.unsignedinteger):
        half = (np.iinfo(data.dtype).max + 1) / 2.0
        samples = (data.astype(np.float64) - half) / half
    elif np.issubdtype(data.dtype, np.integer):
        samples = data.astype(np.float64) / -float(np.iinfo(data.dtype).min)
    else:
        samples = data.astype(np.float64)
    if samples.ndim > 1:
        samples = samples.mean(axis=1)
    return samples


class SpectrumAnalyser:
    """
    Reduces a block of samples to `bins` normalised intensities:
    Blackman window, FFT magnitude, smoothing against the previous block,
    decibels, then a linear map of [min_db, max_db] onto [0, 1].
    """

    def __init__(self, bins: int, sample_rate: int = DEFAULTS.AUDIO_SAMPLE_RATE,
                 smoothing: float = DEFAULTS.AUDIO_SMOOTHING,
                 min_db: float = DEFAULTS.AUDIO_MIN_DB,
                 max_db: float = DEFAULTS.AUDIO_MAX_DB):
        if bins <= 0:
            raise ValueError(f"bins must be positive, got {bins}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        if max_db <= min_db:
            raise ValueError(f"max_db ({max_db}) must be greater than min_db ({min_db})")
        self.bins = bins
        self.sample_rate = sample_rate
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db
        self._previous = None

    def reset(self):
        self._previous = None

    def analyse(self, samples) -> np.ndarray:
        samples = to_float_mono(samples)
        if samples.size < 2:
            return np.zeros(self.bins)

        magnitude = np.abs(np.fft.rfft(samples * np.blackman(samples.size))) / samples.size
        if self._previous is not None and self._previous.shape == magnitude.shape:
            magnitude = self.smoothing * self._previous + (1.0 - self.smoothing) * magnitude
        self._previous = magnitude

        with np.errstate(divide='ignore'):
            db = 20.0 * np.log10(magnitude)
        db = np.nan_to_num(db, nan=self.min_db, neginf=self.min_db, posinf=self.max_db)
        levels = np.clip((db - self.min_db) / (self.max_db - self.min_db), 0.0, 1.0)
        return self._bucket(levels)

    def _bucket(self, levels: np.ndarray) -> np.ndarray:
        """Averages FFT bins into `bins` buckets, repeating bins if there are too few."""
        n = levels.size
        if n < self.bins:
            return levels[(np.arange(self.bins) * n) // self.bins]
        starts = np.linspace(0, n, self.bins + 1).astype(int)[:-1]
        counts = np.diff(np.append(starts, n))
        return np.add.reduceat(levels, starts) / counts


class MicrophoneSpectrum:
    """
    Live input spectrum. The sounddevice callback analyses each block and
    publishes it; latest() just reads whatever was published last.
    """

    def __init__(self, bins: int, sample_rate: int = DEFAULTS.AUDIO_SAMPLE_RATE,
                 block_size: int = DEFAULTS.AUDIO_BLOCK_SIZE, device=None,
                 analyser: SpectrumAnalyser = None, logger: logging.Logger = None):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.device = device
        self.analyser = analyser or SpectrumAnalyser(bins, sample_rate)
        self.buffer = SpectrumBuffer(bins)
        self.logger = logger or logging.getLogger(__name__)
        self._stream = None

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def _audio_callback(self, indata, frames, time_info, status):
        if status:
            self.logger.debug(f"Audio input status: {status}")
        self.buffer.publish(self.analyser.analyse(indata))

    def start(self):
        """Opens and starts the input stream."""
        if self._stream is not None:
            return
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise MissingAudioError(f"sounddevice is not usable: {e}") from e

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                device=self.device,
                channels=1,
                dtype="float32",
                callback=self._audio_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise MissingAudioError(f"Could not open audio input device {self.device!r}: {e}") from e

        self._stream = stream
        self.logger.info(f"Microphone capture started ({self.sample_rate} Hz, block {self.block_size}).")

    def stop(self):
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None
        self.logger.info("Microphone capture stopped.")

    def latest(self) -> np.ndarray:
        return self.buffer.latest()


class WavFileSpectrum:
    """
    Spectrum of a decoded WAV file, played back against a wall clock and
    looped at the end. The analysis window sits at the current play head.
    """

    def __init__(self, path: str, bins: int, block_size: int = DEFAULTS.AUDIO_BLOCK_SIZE,
                 clock: Callable[[], float] = time.perf_counter,
                 smoothing: float = DEFAULTS.AUDIO_SMOOTHING,
                 min_db: float = DEFAULTS.AUDIO_MIN_DB,
                 max_db: float = DEFAULTS.AUDIO_MAX_DB,
                 logger: logging.Logger = None):
        self.path = path
        self.block_size = block_size
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._start = None
        self._last_position = None
        self._last_snapshot = normalize_snapshot(np.zeros(bins))

        try:
            self.sample_rate, data = wavfile.read(path)
        except (OSError, ValueError) as e:
            raise MissingAudioError(f"Could not read audio file '{path}': {e}") from e

        self.samples = to_float_mono(data)
        if self.samples.size == 0:
            raise MissingAudioError(f"Audio file '{path}' contains no samples.")

        self.analyser = SpectrumAnalyser(bins, self.sample_rate, smoothing, min_db, max_db)
        duration = self.samples.size / self.sample_rate
        self.logger.info(f"Loaded audio file '{path}' ({self.sample_rate} Hz, {duration:.1f} s).")

    def start(self):
        self._start = self._clock()
        self._last_position = None
        self.analyser.reset()

    def stop(self):
        self._start = None

    def play_head(self) -> int:
        """Index of the first sample of the current analysis window."""
        if self._start is None:
            self.start()
        elapsed = self._clock() - self._start
        return int(elapsed * self.sample_rate) % self.samples.size

    def latest(self) -> np.ndarray:
        position = self.play_head()
        if position == self._last_position:
            return self._last_snapshot
        window = np.take(self.samples, np.arange(position, position + self.block_size), mode='wrap')
        self._last_snapshot = normalize_snapshot(self.analyser.analyse(window))
        self._last_position = position
        return self._last_snapshot
