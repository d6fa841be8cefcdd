"""shared test configuration - headless pygame and common fixtures."""

import os
import sys

# pygame must never try to open a real window or audio device in tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

# visualizer.py lives at the repository root, next to the package.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from audio_terrain import config as DEFAULTS  # noqa: E402
from audio_terrain.noise import NoiseField  # noqa: E402
from audio_terrain.runtime.scheduler import ManualScheduler  # noqa: E402

FIXED_SEED = 42


class RecordingSurface:
    """DrawSurface that records every call instead of drawing."""

    def __init__(self):
        self.calls = []

    def clear(self):
        self.calls.append(("clear",))

    def begin_path(self):
        self.calls.append(("begin_path",))

    def line_to(self, x, y):
        self.calls.append(("line_to", x, y))

    def stroke(self):
        self.calls.append(("stroke",))

    def set_transform(self, translate, scale, rotate):
        self.calls.append(("set_transform", tuple(translate), scale, rotate))

    def reset_transform(self):
        self.calls.append(("reset_transform",))

    def names(self):
        return [call[0] for call in self.calls]

    def points(self):
        return [(call[1], call[2]) for call in self.calls if call[0] == "line_to"]


class StaticSpectrum:
    """Spectrum source that always returns the same values."""

    def __init__(self, values):
        self.values = values
        self.calls = 0

    def latest(self):
        self.calls += 1
        return self.values


class BrokenSpectrum:
    """Spectrum source whose device has gone away."""

    def latest(self):
        raise OSError("input device unplugged")


@pytest.fixture
def fixed_table():
    """a fixed, seed-independent permutation table."""
    rng = np.random.default_rng(FIXED_SEED)
    return rng.permutation(256)


@pytest.fixture
def noise(fixed_table):
    return NoiseField(permutation_table=fixed_table)


@pytest.fixture
def recording_surface():
    return RecordingSurface()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def settings():
    return DEFAULTS.build_settings({"terrain": {"seed": FIXED_SEED}})


@pytest.fixture
def static_spectrum():
    """factory for spectrum sources returning fixed values."""
    return StaticSpectrum


@pytest.fixture
def broken_spectrum():
    return BrokenSpectrum()


@pytest.fixture
def surface_factory():
    """factory for additional recording surfaces."""
    return RecordingSurface


@pytest.fixture(scope="session", autouse=True)
def pygame_session():
    """initialise pygame once against the dummy drivers."""
    import pygame
    pygame.init()
    yield
    pygame.quit()
