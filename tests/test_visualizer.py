"""Tests for the launcher: source selection, event handling and headless runs."""

import logging

import numpy as np
import pygame
import pytest
from scipy.io import wavfile

import visualizer
from audio_terrain import config as DEFAULTS
from audio_terrain.audio import WavFileSpectrum
from audio_terrain.runtime.driver import DriverState
from audio_terrain.spectrum import SilentSpectrum, SimulatedSpectrum


@pytest.fixture
def small_settings():
    return DEFAULTS.build_settings({
        "display": {"screen_width": 160, "screen_height": 120},
        "terrain": {"cols": 12, "rows": 10},
        "audio": {"source": "simulated"},
    })


class TestCreateSpectrumSource:
    """Tests for create_spectrum_source."""

    @pytest.mark.parametrize("source, expected", [
        ("silent", SilentSpectrum),
        ("simulated", SimulatedSpectrum),
        ("bogus", SilentSpectrum),
    ])
    def test_named_sources(self, small_settings, source, expected) -> None:
        small_settings['audio_source'] = source
        assert isinstance(visualizer.create_spectrum_source(small_settings, logging.getLogger()), expected)

    def test_file_without_path_falls_back(self, small_settings, caplog) -> None:
        """test that a misconfigured file source degrades to silence with a warning."""
        small_settings['audio_source'] = 'file'
        source = visualizer.create_spectrum_source(small_settings, logging.getLogger())
        assert isinstance(source, SilentSpectrum)
        assert "Audio unavailable" in caplog.text

    def test_file_source(self, small_settings, tmp_path) -> None:
        # given
        path = tmp_path / "hum.wav"
        wavfile.write(str(path), 8000, np.zeros(4000, dtype=np.int16))
        small_settings['audio_source'] = 'file'
        small_settings['audio_file_path'] = str(path)

        # when
        source = visualizer.create_spectrum_source(small_settings, logging.getLogger())

        # then
        assert isinstance(source, WavFileSpectrum)


class TestHeadless:
    """Tests for run_headless."""

    def test_renders_requested_frames(self, small_settings, tmp_path) -> None:
        shot = tmp_path / "frame.bmp"
        frames = visualizer.run_headless(small_settings, 4, logging.getLogger(), str(shot))
        assert frames == 4
        assert shot.exists()


class TestParseArgs:
    def test_overrides(self) -> None:
        args = visualizer.parse_args(["--source", "simulated", "--seed", "5", "--frames", "10"])
        assert (args.source, args.seed, args.frames) == ("simulated", 5, 10)


@pytest.fixture
def app(small_settings):
    small_settings['audio_source'] = 'silent'
    return visualizer.VisualizerApp(small_settings, logging.getLogger())


@pytest.fixture
def feed_events(monkeypatch, app):
    """replace the pygame event queue with a fixed batch and handle it."""
    def feed(*events):
        monkeypatch.setattr(pygame.event, "get", lambda: list(events))
        app.handle_events()
        return app.context.speed.value
    return feed


class TestHandleEvents:
    """Tests for VisualizerApp.handle_events."""

    def test_key_hold_speeds_up_and_release_slows(self, feed_events) -> None:
        assert feed_events(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_SPACE)) == 2.0
        assert feed_events(pygame.event.Event(pygame.KEYUP, key=pygame.K_SPACE)) == 1.0

    def test_touch_tap_counts_once(self, feed_events) -> None:
        """test that the mouse event SDL mirrors from a finger is ignored."""
        # when
        pressed = feed_events(
            pygame.event.Event(pygame.FINGERDOWN, finger_id=0, x=0.5, y=0.5),
            pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(80, 60), touch=True),
        )
        released = feed_events(
            pygame.event.Event(pygame.FINGERUP, finger_id=0, x=0.5, y=0.5),
            pygame.event.Event(pygame.MOUSEBUTTONUP, button=1, pos=(80, 60), touch=True),
        )

        # then
        assert pressed == 2.0
        assert released == 1.0

    def test_mouse_click_speeds_up(self, feed_events) -> None:
        assert feed_events(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(10, 10), touch=False)) == 2.0

    def test_slow_down_key_stops_at_floor(self, feed_events) -> None:
        assert feed_events(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_DOWN)) == 1.0

    def test_escape_stops_driver(self, app, feed_events) -> None:
        app.driver.start()
        feed_events(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE))
        assert app.driver.state is DriverState.STOPPED

    def test_resize_event(self, app, feed_events) -> None:
        """test that a valid resize is applied and an empty one is ignored."""
        # when
        feed_events(pygame.event.Event(pygame.VIDEORESIZE, w=200, h=100, size=(200, 100)))
        feed_events(pygame.event.Event(pygame.VIDEORESIZE, w=0, h=100, size=(0, 100)))

        # then
        assert (app.screen_width, app.screen_height) == (200, 100)
        assert app.context.projection.radius == pytest.approx(100 / 3)
