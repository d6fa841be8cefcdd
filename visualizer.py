# FOLDER: /

# visualizer.py

import argparse
import json
import logging
import logging.config
import os
import sys

import pygame

from audio_terrain import config as DEFAULTS
from audio_terrain.audio import MicrophoneSpectrum, SpectrumAnalyser, WavFileSpectrum
from audio_terrain.errors import MissingAudioError
from audio_terrain.runtime import FrameDriver, ManualScheduler, PygameDrawSurface, PygameScheduler, build_context
from audio_terrain.spectrum import SilentSpectrum, SimulatedSpectrum

# --- Application Constants (Rule 1) ---
APP_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_PATH = os.path.join(APP_DIR, 'config.json')
LOG_CONFIG_PATH = os.path.join(APP_DIR, 'logging_config.json')
LOG_DIR = 'logs'
WINDOW_TITLE = "Audio Terrain"

SPEED_UP_KEYS = (pygame.K_UP, pygame.K_SPACE, pygame.K_w)
SLOW_DOWN_KEYS = (pygame.K_DOWN, pygame.K_s)


def setup_logging() -> logging.Logger:
    """Initializes the logging system from logging_config.json."""
    if not os.path.exists(LOG_DIR):
        os.makedirs(LOG_DIR)

    with open(LOG_CONFIG_PATH, 'rt') as f:
        log_config = json.load(f)

    # Keep the log file next to the working directory, whatever the JSON says.
    log_config['handlers']['file']['filename'] = os.path.join(LOG_DIR, 'visualizer.log')
    logging.config.dictConfig(log_config)
    return logging.getLogger(__name__)


def load_config(config_path: str, logger: logging.Logger) -> dict:
    """Loads session parameters from a JSON file. Exits on failure."""
    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.critical(f"Configuration file not found at {config_path}. Exiting.")
        sys.exit(1)
    except json.JSONDecodeError:
        logger.critical(f"Error decoding JSON from {config_path}. Exiting.")
        sys.exit(1)


def create_spectrum_source(settings: dict, logger: logging.Logger):
    """
    Builds the spectrum source named in the settings. Audio that cannot be
    opened falls back to silence so the terrain still renders.
    """
    bins = settings['cols']
    source = settings['audio_source']
    try:
        if source == 'microphone':
            mic = MicrophoneSpectrum(
                bins,
                sample_rate=settings['sample_rate'],
                block_size=settings['block_size'],
                device=settings['audio_device'],
                analyser=SpectrumAnalyser(
                    bins, settings['sample_rate'],
                    settings['smoothing'], settings['min_db'], settings['max_db'],
                ),
                logger=logger,
            )
            mic.start()
            return mic
        if source == 'file':
            if not settings['audio_file_path']:
                raise MissingAudioError("Audio source 'file' needs audio.file_path (or --file).")
            wav = WavFileSpectrum(
                settings['audio_file_path'], bins,
                block_size=settings['block_size'],
                smoothing=settings['smoothing'],
                min_db=settings['min_db'],
                max_db=settings['max_db'],
                logger=logger,
            )
            wav.start()
            return wav
        if source == 'simulated':
            return SimulatedSpectrum(bins)
        if source != 'silent':
            logger.warning(f"Unknown audio source '{source}'; using silence.")
    except MissingAudioError as e:
        logger.warning(f"Audio unavailable, rendering without it: {e}")
    return SilentSpectrum(bins)


class VisualizerApp:
    """The main application class for the audio terrain visualizer."""

    def __init__(self, settings: dict, logger: logging.Logger):
        self.settings = settings
        self.logger = logger

        self._setup_pygame()
        self.context = build_context(settings, self.screen_width, self.screen_height, logger=self.logger)
        self.spectrum_source = create_spectrum_source(settings, self.logger)
        self.surface = PygameDrawSurface(
            self.screen,
            background=settings['background_color'],
            line_width=settings['line_width'],
            antialias=settings['antialias'],
        )
        self.scheduler = PygameScheduler(
            settings['fps'],
            on_frame_start=self.handle_events,
            on_frame_end=self._present,
            logger=self.logger,
        )
        self.driver = FrameDriver(self.context, self.spectrum_source, self.surface, self.scheduler, logger=self.logger)

    def _setup_pygame(self):
        """Initializes Pygame and the display window."""
        pygame.init()
        if self.settings['fullscreen']:
            self.logger.info("Initializing display in Fullscreen mode.")
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            width, height = self.settings['screen_width'], self.settings['screen_height']
            self.logger.info(f"Initializing display in Windowed mode ({width}x{height}).")
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        self.screen_width, self.screen_height = self.screen.get_size()
        pygame.display.set_caption(WINDOW_TITLE)
        self.logger.info("Pygame initialized successfully.")

    def run(self):
        """The main application loop."""
        try:
            self.driver.start()
            self.scheduler.run()
        except Exception:
            self.logger.critical("An unhandled exception occurred!", exc_info=True)
        finally:
            self.driver.stop()
            stop_audio = getattr(self.spectrum_source, 'stop', None)
            if stop_audio is not None:
                stop_audio()
            self.logger.info("Exiting visualizer.")
            pygame.quit()

    def _quit(self):
        self.driver.stop()
        self.scheduler.stop()

    def handle_events(self):
        """Processes user input and window events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit()
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.logger.info("Event: ESC key pressed. Exiting.")
                    self._quit()
                elif event.key in SPEED_UP_KEYS:
                    self.driver.speed_up()
                elif event.key in SLOW_DOWN_KEYS:
                    self.driver.slow_down()
            elif event.type == pygame.KEYUP and event.key in SPEED_UP_KEYS:
                self.driver.slow_down()
            elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP) and getattr(event, 'touch', False):
                # SDL mirrors every finger event as a mouse event; the FINGER* one already counted.
                continue
            elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
                self.driver.speed_up()
            elif event.type in (pygame.MOUSEBUTTONUP, pygame.FINGERUP):
                self.driver.slow_down()
            elif event.type == pygame.VIDEORESIZE:
                self._resize(event.w, event.h)

    def _resize(self, width: int, height: int):
        if not self.driver.resize(width, height):
            return
        if not self.settings['fullscreen']:
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
            self.surface.set_screen(self.screen)
        self.screen_width, self.screen_height = width, height

    def _present(self):
        pygame.display.set_caption(
            f"{WINDOW_TITLE} | Speed: {self.context.speed.value:.0f} | FPS: {self.scheduler.get_fps():.0f}"
        )
        pygame.display.flip()


def run_headless(settings: dict, frames: int, logger: logging.Logger, screenshot: str = None) -> int:
    """
    Renders a fixed number of frames into an off-screen surface, without a
    window. Returns the number of frames drawn.
    """
    width, height = settings['screen_width'], settings['screen_height']
    screen = pygame.Surface((width, height))
    context = build_context(settings, width, height, logger=logger)
    source = create_spectrum_source(settings, logger)
    surface = PygameDrawSurface(screen, settings['background_color'], settings['line_width'], settings['antialias'])
    scheduler = ManualScheduler()
    driver = FrameDriver(context, source, surface, scheduler, logger=logger)

    driver.start()
    scheduler.run(frames)
    driver.stop()
    stop_audio = getattr(source, 'stop', None)
    if stop_audio is not None:
        stop_audio()

    if screenshot:
        pygame.image.save(screen, screenshot)
        logger.info(f"Saved last frame to {screenshot}")
    logger.info(f"Headless run complete: {driver.frame_count} frames.")
    return driver.frame_count


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Audio-reactive polar terrain visualizer.")
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help="Path to config.json.")
    parser.add_argument('--source', choices=['microphone', 'file', 'simulated', 'silent'],
                        help="Override the audio source.")
    parser.add_argument('--file', help="WAV file to visualise (implies --source file).")
    parser.add_argument('--seed', type=int, help="Noise seed.")
    parser.add_argument('--frames', type=int, help="Render N frames headless and exit.")
    parser.add_argument('--screenshot', help="With --frames, save the last frame to this path.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger = setup_logging()
    logger.info("Visualizer starting.")

    settings = DEFAULTS.build_settings(load_config(args.config, logger))
    if args.seed is not None:
        settings['seed'] = args.seed
    if args.file:
        settings['audio_source'] = 'file'
        settings['audio_file_path'] = args.file
    if args.source:
        settings['audio_source'] = args.source

    if args.frames is not None:
        run_headless(settings, args.frames, logger, args.screenshot)
        return

    app = VisualizerApp(settings, logger)
    app.run()


if __name__ == '__main__':
    main()
