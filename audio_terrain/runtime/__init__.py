# audio_terrain/runtime/__init__.py

# This file makes the 'runtime' directory a Python package.
# It also defines the public API of the package.

from .driver import DriverState, FrameDriver, TerrainContext, build_context
from .scheduler import FrameScheduler, ManualScheduler, PygameScheduler
from .surface import DrawSurface, PygameDrawSurface

__all__ = [
    "DriverState", "FrameDriver", "TerrainContext", "build_context",
    "FrameScheduler", "ManualScheduler", "PygameScheduler",
    "DrawSurface", "PygameDrawSurface",
]
