"""Simulation-wide constants and default settings."""

import math

import numpy as np

# --- Physics ---
MU_SUN = 1.32712440018e20  # m^3 / s^2
AU = 149597870700.0
DAY_TO_S = 86400.0
SIDEREAL_YEAR_S = 3.15581498e7
MIN_ORBIT_RADIUS = 1.0e6  # m; closer approaches are treated as degenerate

# --- Time ---
DEFAULT_TIME_SCALE = 1.0e5
MIN_TIME_SCALE = 1.0e3
MAX_TIME_SCALE = 1.0e6
DEFAULT_INTEGRATOR = "Symplectic"
MAX_SUBSTEPS = 1000

# --- Render space ---
DISTANCE_SCALE = 1.0e9  # metres per render unit
WIDTH, HEIGHT = 1280, 800
FOV_DEG = 75.0
NEAR_PLANE = 0.1
FAR_PLANE = 2000.0
FPS = 60
ORBIT_SAMPLES = 128  # points per drawn orbit path

# --- Camera ---
DEFAULT_CAMERA_POSITION = np.array([0.0, 50.0, 100.0])
DRAG_SENSITIVITY = 0.005  # rad per pixel
WHEEL_SENSITIVITY = 0.05  # render units per wheel unit
WHEEL_PIXELS_PER_NOTCH = 100.0
CAMERA_MIN_RADIUS = 10.0
CAMERA_MAX_RADIUS = 800.0
CAMERA_SMOOTHING = 0.05
CAMERA_ARRIVAL_EPSILON = 0.1
FOCUS_DISTANCE_FACTOR = 4.0
PITCH_LIMIT = math.pi / 2

# --- Input ---
CLICK_SLOP_PIXELS = 4

# --- UI ---
UI_SIDEBAR_WIDTH = 300

# --- Colors ---
BLACK = (0, 0, 5)
WHITE = (255, 255, 255)
DARK_GRAY = (60, 60, 60)
ORBIT_COLOR = (45, 45, 70)
SELECTION_COLOR = (120, 200, 255)
