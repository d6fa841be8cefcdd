# audio_terrain/runtime/scheduler.py

"""
================================================================================
FRAME SCHEDULERS
================================================================================
The frame driver never loops by itself: at the end of each tick it asks a
scheduler for the next one. Swapping the scheduler is what lets the same
driver run in a window, headless, or step by step inside a test.

Data Contract:
---------------
- Public Methods:
    - request_next_tick(callback): Queues exactly one future call.
- ManualScheduler fires callbacks only when step() or run() is called.
- PygameScheduler fires at most one callback per display refresh, capped to
  the configured FPS, and tracks elapsed real time.
- Invariants: A callback never runs while another one is still running.
================================================================================
"""
import logging
from typing import Callable, Protocol

import pygame


class FrameScheduler(Protocol):
    """Anything that can schedule the next frame callback."""

    def request_next_tick(self, callback: Callable[[], None]) -> None: ...


class ManualScheduler:
    """Fires the pending callback only when asked to. Used by tests and headless runs."""

    def __init__(self):
        self._pending = None
        self.ticks_fired = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def request_next_tick(self, callback):
        self._pending = callback

    def step(self) -> bool:
        """Fires the pending callback once. Returns False if nothing was pending."""
        callback, self._pending = self._pending, None
        if callback is None:
            return False
        callback()
        self.ticks_fired += 1
        return True

    def run(self, frames: int) -> int:
        """Steps up to `frames` times, stopping early if nothing is pending."""
        fired = 0
        while fired < frames and self.step():
            fired += 1
        return fired


class PygameScheduler:
    """
    Drives the display loop. Each iteration pumps events, fires the pending
    frame callback, presents the frame and then waits for the next refresh.
    """

    def __init__(self, fps: int, on_frame_start: Callable[[], None] = None,
                 on_frame_end: Callable[[], None] = None, logger: logging.Logger = None):
        self.fps = fps
        self.on_frame_start = on_frame_start
        self.on_frame_end = on_frame_end or pygame.display.flip
        self.logger = logger or logging.getLogger(__name__)
        self.clock = pygame.time.Clock()
        self.is_running = False
        self.elapsed_seconds = 0.0
        self._pending = None

    def request_next_tick(self, callback):
        self._pending = callback

    def stop(self):
        self.is_running = False

    def run(self):
        """Runs until stop() is called or no frame is pending."""
        self.is_running = True
        self.logger.info(f"Entering frame loop (target {self.fps} FPS).")
        while self.is_running:
            if self.on_frame_start is not None:
                self.on_frame_start()
            if not self.is_running:
                break

            callback, self._pending = self._pending, None
            if callback is None:
                self.logger.info("No frame pending; leaving frame loop.")
                break
            callback()
            self.on_frame_end()

            delta_ms = self.clock.tick(self.fps)
            self.elapsed_seconds += delta_ms / 1000.0
        self.is_running = False

    def get_fps(self) -> float:
        return self.clock.get_fps()
