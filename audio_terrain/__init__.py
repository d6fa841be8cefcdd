# audio_terrain/__init__.py

# The core pipeline: noise -> height grid -> polar projection.
# Pygame-dependent pieces live in the 'runtime' subpackage.

from .noise import NoiseField
from .projector import PolarProjector, ProjectionConfig, ring_candidates
from .spectrum import SpectrumBuffer, normalize_snapshot
from .terrain import HeightGrid, ScrollState, SpeedState

__all__ = [
    "NoiseField", "HeightGrid", "ScrollState", "SpeedState",
    "PolarProjector", "ProjectionConfig", "ring_candidates",
    "SpectrumBuffer", "normalize_snapshot",
]
