# audio_terrain/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
visualizer. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC SESSION.
Instead, pass a configuration dictionary to build_settings() (the launcher
reads it from config.json).
================================================================================
"""

# --- Noise Generation ---
DEFAULT_SEED = 1337
# Size of the shuffled lattice table before it is doubled to 512 entries.
PERMUTATION_SIZE = 256

# --- Height Grid ---
DEFAULT_COLS = 50
DEFAULT_ROWS = 50

# Step through noise space between neighbouring columns and rows.
NOISE_STEP = 0.2
# Peak-to-peak influence of the noise layer on a cell's elevation.
NOISE_AMPLITUDE = 20.0
# Elevation added by a spectrum bucket at full intensity (1.0).
SPECTRUM_GAIN = 50.0
# How far the terrain "flies" through noise space every update.
FLYING_STEP = 0.01
# Depth is divided by this before being added to the noise y coordinate.
DEPTH_DIVISOR = 100.0

# --- Speed Control ---
# The depth advance per frame. Input nudges it up and down by SPEED_STEP,
# but it never drops below SPEED_MINIMUM.
INITIAL_SPEED = 1.0
SPEED_MINIMUM = 1.0
SPEED_STEP = 1.0

# --- Polar Projection ---
# The base radius is the shorter viewport side divided by this.
RADIUS_DIVISOR = 3.0
# Fraction of the base radius kept empty around the centre (the "tunnel").
HOLLOW_FRACTION = 1.0 / 3.0
DEFAULT_ZOOM = 1.0
DEFAULT_ROTATION_DEGREES = 0.0

# --- Colours ---
BACKGROUND_COLOR = (0, 0, 0)
# Outer rings are drawn in the near colour and fade towards the far colour.
NEAR_RING_COLOR = (255, 255, 255)
FAR_RING_COLOR = (60, 60, 90)

# --- Display ---
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 720
TARGET_FPS = 60
LINE_WIDTH = 1
ANTIALIAS = True

# --- Audio Capture ---
# 'microphone', 'file', 'simulated' or 'silent'.
AUDIO_SOURCE = 'microphone'
AUDIO_SAMPLE_RATE = 44100
# Samples per analysis block. 2048 mirrors a typical analyser FFT size.
AUDIO_BLOCK_SIZE = 2048
# Exponential smoothing between consecutive spectra (0 = none, <1 required).
AUDIO_SMOOTHING = 0.8
# Decibel window mapped onto the normalised [0, 1] intensity range.
AUDIO_MIN_DB = -100.0
AUDIO_MAX_DB = -30.0


def build_settings(config: dict) -> dict:
    """
    Consolidates a user configuration dictionary with the internal defaults.

    The user dictionary uses the same section layout as config.json
    ('display', 'terrain', 'projection', 'speed', 'audio'). Missing sections
    and keys fall back to the constants above.
    """
    config = config or {}
    display = config.get('display', {})
    terrain = config.get('terrain', {})
    projection = config.get('projection', {})
    speed = config.get('speed', {})
    audio = config.get('audio', {})

    return {
        'screen_width': display.get('screen_width', SCREEN_WIDTH),
        'screen_height': display.get('screen_height', SCREEN_HEIGHT),
        'fullscreen': display.get('fullscreen', False),
        'fps': display.get('fps', TARGET_FPS),
        'background_color': tuple(display.get('background_color', BACKGROUND_COLOR)),
        'line_width': display.get('line_width', LINE_WIDTH),
        'antialias': display.get('antialias', ANTIALIAS),

        'seed': terrain.get('seed', DEFAULT_SEED),
        'cols': terrain.get('cols', DEFAULT_COLS),
        'rows': terrain.get('rows', DEFAULT_ROWS),
        'noise_step': terrain.get('noise_step', NOISE_STEP),
        'noise_amplitude': terrain.get('noise_amplitude', NOISE_AMPLITUDE),
        'spectrum_gain': terrain.get('spectrum_gain', SPECTRUM_GAIN),
        'flying_step': terrain.get('flying_step', FLYING_STEP),
        'depth_divisor': terrain.get('depth_divisor', DEPTH_DIVISOR),

        'zoom': projection.get('zoom', DEFAULT_ZOOM),
        'rotation_degrees': projection.get('rotation_degrees', DEFAULT_ROTATION_DEGREES),
        'hollow_fraction': projection.get('hollow_fraction', HOLLOW_FRACTION),
        'near_color': tuple(projection.get('near_color', NEAR_RING_COLOR)),
        'far_color': tuple(projection.get('far_color', FAR_RING_COLOR)),

        'initial_speed': speed.get('initial', INITIAL_SPEED),
        'speed_minimum': speed.get('minimum', SPEED_MINIMUM),
        'speed_step': speed.get('step', SPEED_STEP),

        'audio_source': audio.get('source', AUDIO_SOURCE),
        'audio_file_path': audio.get('file_path'),
        'audio_device': audio.get('device'),
        'sample_rate': audio.get('sample_rate', AUDIO_SAMPLE_RATE),
        'block_size': audio.get('block_size', AUDIO_BLOCK_SIZE),
        'smoothing': audio.get('smoothing', AUDIO_SMOOTHING),
        'min_db': audio.get('min_db', AUDIO_MIN_DB),
        'max_db': audio.get('max_db', AUDIO_MAX_DB),
    }
