# audio_terrain/runtime/driver.py

"""
================================================================================
FRAME DRIVER
================================================================================
This module provides the `FrameDriver`, which ties the terrain pipeline to a
display refresh: every tick it reads the newest spectrum, advances depth by
the current speed, recomputes the height grid and redraws the rings.

All of the state that used to be global (noise, grid, scroll, speed,
projection) lives in a `TerrainContext` owned by the driver.

Data Contract:
---------------
- Inputs (on initialization):
    - context (TerrainContext): Built with build_context().
    - spectrum_source: Any object with a non-blocking latest() method.
    - surface: A DrawSurface.
    - scheduler: A FrameScheduler.
- Public Methods:
    - start(), stop(), tick(), resize(width, height), speed_up(), slow_down().
- Invariants: A failing frame is logged and the next one is still
  scheduled. Missing audio degrades to silence. Invalid resizes are rejected.
================================================================================
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum

from .. import config as DEFAULTS
from ..errors import InvalidGeometryError
from ..noise import NoiseField
from ..palette import ring_palette
from ..projector import PolarProjector, ProjectionConfig
from ..spectrum import normalize_snapshot
from ..terrain import HeightGrid, ScrollState, SpeedState


class DriverState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class TerrainContext:
    """Everything one running terrain owns."""
    noise: NoiseField
    grid: HeightGrid
    scroll: ScrollState
    speed: SpeedState
    projector: PolarProjector
    projection: ProjectionConfig
    settings: dict

    def projection_for(self, width: int, height: int) -> ProjectionConfig:
        return ProjectionConfig.for_viewport(
            width, height,
            zoom=self.settings['zoom'],
            rotation=math.radians(self.settings['rotation_degrees']),
            hollow_fraction=self.settings['hollow_fraction'],
        )


def build_context(settings: dict, width: int, height: int,
                  logger: logging.Logger = None) -> TerrainContext:
    """
    Creates a fresh terrain for a width x height viewport from consolidated
    settings (see config.build_settings).
    """
    logger = logger or logging.getLogger(__name__)
    settings = dict(settings)
    settings.setdefault('zoom', DEFAULTS.DEFAULT_ZOOM)
    settings.setdefault('rotation_degrees', DEFAULTS.DEFAULT_ROTATION_DEGREES)
    settings.setdefault('hollow_fraction', DEFAULTS.HOLLOW_FRACTION)

    noise = NoiseField(seed=settings.get('seed', DEFAULTS.DEFAULT_SEED))
    cols = settings.get('cols', DEFAULTS.DEFAULT_COLS)
    rows = settings.get('rows', DEFAULTS.DEFAULT_ROWS)
    grid = HeightGrid(cols, rows, settings=settings, logger=logger)
    speed = SpeedState(
        initial=settings.get('initial_speed', DEFAULTS.INITIAL_SPEED),
        minimum=settings.get('speed_minimum', DEFAULTS.SPEED_MINIMUM),
        step=settings.get('speed_step', DEFAULTS.SPEED_STEP),
    )
    palette = ring_palette(
        rows,
        settings.get('near_color', DEFAULTS.NEAR_RING_COLOR),
        settings.get('far_color', DEFAULTS.FAR_RING_COLOR),
    )

    context = TerrainContext(
        noise=noise,
        grid=grid,
        scroll=ScrollState(),
        speed=speed,
        projector=PolarProjector(palette),
        projection=None,
        settings=settings,
    )
    context.projection = context.projection_for(width, height)
    logger.info(f"Terrain context built: {cols}x{rows} grid, seed {noise.seed}, "
                f"radius {context.projection.radius:.1f}px.")
    return context


class FrameDriver:
    """
    Runs the terrain one frame at a time on whatever scheduler it is given.
    """

    def __init__(self, context: TerrainContext, spectrum_source, surface, scheduler,
                 logger: logging.Logger = None):
        self.context = context
        self.spectrum_source = spectrum_source
        self.surface = surface
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)

        self._state = DriverState.STOPPED
        self._frame_count = 0
        self._audio_missing = False

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def start(self):
        if self._state is DriverState.RUNNING:
            return
        self._state = DriverState.RUNNING
        self.logger.info("Frame driver started.")
        self.scheduler.request_next_tick(self.tick)

    def stop(self):
        if self._state is DriverState.STOPPED:
            return
        self._state = DriverState.STOPPED
        self.logger.info(f"Frame driver stopped after {self._frame_count} frames.")

    def tick(self):
        """Computes and draws one frame, then schedules the next one."""
        if self._state is not DriverState.RUNNING:
            return

        ctx = self.context
        try:
            spectrum = self._read_spectrum()
            ctx.scroll.depth += ctx.speed.value
            ctx.grid.update(ctx.noise, ctx.scroll, spectrum)
            ctx.projector.project_and_draw(ctx.grid, self.surface, ctx.projection)
            self._frame_count += 1
        except Exception:
            # One bad frame must not end the visualisation.
            self.logger.exception(f"Frame {self._frame_count + 1} failed; continuing with the next one.")

        if self._state is DriverState.RUNNING:
            self.scheduler.request_next_tick(self.tick)

    def _read_spectrum(self):
        """Latest snapshot from the source, or silence if the source fails."""
        try:
            # A payload numpy cannot coerce is treated like a missing source.
            snapshot = normalize_snapshot(self.spectrum_source.latest())
        except Exception as e:
            if not self._audio_missing:
                self.logger.warning(f"Spectrum source failed ({e}); rendering without audio.")
            self._audio_missing = True
            return normalize_snapshot(None)

        if self._audio_missing:
            self.logger.info("Spectrum source recovered.")
            self._audio_missing = False
        return snapshot

    def resize(self, width: int, height: int) -> bool:
        """
        Resets the grid and recomputes the projection for a new viewport.
        Returns False, keeping the current grid, if the size is invalid.
        """
        ctx = self.context
        try:
            projection = ctx.projection_for(width, height)
        except InvalidGeometryError as e:
            self.logger.warning(f"Rejected resize: {e}")
            return False

        ctx.grid.reset(ctx.grid.cols, ctx.grid.rows)
        ctx.projection = projection
        self.logger.info(f"Resized to {width}x{height}; radius {projection.radius:.1f}px, "
                         f"hollow {projection.hollow_radius:.1f}px.")
        return True

    def speed_up(self) -> float:
        speed = self.context.speed.increase()
        self.logger.debug(f"Speed increased to {speed}.")
        return speed

    def slow_down(self) -> float:
        speed = self.context.speed.decrease()
        self.logger.debug(f"Speed decreased to {speed}.")
        return speed
