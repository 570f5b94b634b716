# terrain_synth/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for terrain
synthesis and surface shading. These values are used if they are not
explicitly provided by the caller's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC WORLD.
Instead, pass a configuration dictionary to TerrainOptions.from_config() or
to the material constructors.
================================================================================
"""

# --- Terrain Generation ---
DEFAULT_SEED = "1337"
DEFAULT_TERRAIN_WIDTH = 128   # Grid cells along X
DEFAULT_TERRAIN_DEPTH = 128   # Grid cells along Z
DEFAULT_HEIGHT_SCALE = 35.0
DEFAULT_NOISE_SCALE = 80.0
DEFAULT_OCTAVES = 8
DEFAULT_LACUNARITY = 2.2
DEFAULT_PERSISTENCE = 0.5
DEFAULT_WATER_LEVEL = 5.0

# Shaping exponent applied to the normalized fBm value. Values > 1.0 flatten
# the lowlands and sharpen the highlands. Visual tuning constant, keep as is.
HEIGHT_SHAPING_EXPONENT = 2.2

# Vertical component of the unnormalized heightfield normal. Lower values make
# the shading more sensitive to slope. Visual tuning constant, keep as is.
NORMAL_STEEPNESS_SENSITIVITY = 2.0

# Height reported for heightfield neighbours outside the grid.
OUT_OF_BOUNDS_HEIGHT = 0.0

# --- Simplex Noise ---
PERMUTATION_SIZE = 256
NOISE_OUTPUT_SCALE = 70.0
SIMPLEX_CORNER_RADIUS_SQ = 0.5

# --- Liquid Surface Waves ---
MAX_WAVES = 4

# The editor's default liquid wave set, largest swell first.
DEFAULT_WAVES = [
    {"direction": (0.707, 0.707), "frequency": 0.2, "amplitude": 0.2, "speed": 1.5, "steepness": 0.5},
    {"direction": (1.0, 0.0), "frequency": 0.4, "amplitude": 0.1, "speed": 2.0, "steepness": 0.3},
    {"direction": (0.5, -0.5), "frequency": 0.8, "amplitude": 0.05, "speed": 1.0, "steepness": 0.2},
    {"direction": (0.0, -1.0), "frequency": 1.6, "amplitude": 0.025, "speed": 3.0, "steepness": 0.1},
]

# --- Ripples ---
MAX_RIPPLES = 100
RIPPLE_LIFETIME_S = 3.0
RIPPLE_WAVE_SPEED = 2.0      # Ring expansion speed, world units per second
RIPPLE_WAVE_FREQUENCY = 40.0
RIPPLE_WAVE_WIDTH = 0.3      # Half-width of the moving ring
RIPPLE_NORMAL_SCALE = 0.1

# --- Liquid Material ---
LIQUID_DEFAULTS = {
    "base_color": (0.1, 0.3, 0.5),
    "deep_color": (0.05, 0.1, 0.2),
    "depth_distance": 10.0,
    "specular_color": (1.0, 1.0, 1.0),
    "shininess": 150.0,
    "sss_color": (0.1, 0.4, 0.5),
    "sss_power": 10.0,
    "foam_color": (0.9, 0.9, 0.9),
    "foam_crest_min": 0.6,
    "foam_crest_max": 0.9,
}

# Schlick fresnel for water.
FRESNEL_BASE = 0.02
FRESNEL_EXPONENT = 5.0

SKY_HORIZON_COLOR = (0.9, 0.9, 0.9)
SKY_ZENITH_COLOR = (0.5, 0.7, 1.0)

FOAM_NOISE_FREQUENCY = 2.0
FOAM_NOISE_AMPLITUDE = 0.1

# --- Terrain Material ---
# Exponent used to sharpen the triplanar weights so one axis dominates.
TRIPLANAR_SHARPNESS = 8.0

# World-space texture tiling for each layer.
TERRAIN_TEXTURE_TILING = {
    "grass": 0.05,
    "rock": 0.05,
    "snow": 0.1,
    "sand": 0.2,
}

# Smoothstep edges for the layer blend. Heights are absolute world units,
# slopes are 1 - normal.y.
TERRAIN_BLEND_THRESHOLDS = {
    "sand_below_water": 1.0,
    "sand_above_water": 2.5,
    "sand_slope_min": 0.25,
    "sand_slope_max": 0.4,
    "rock_slope_min": 0.45,
    "rock_slope_max": 0.7,
    "snow_height_min": 18.0,
    "snow_height_max": 25.0,
    "snow_slope_min": 0.3,
    "snow_slope_max": 0.5,
}

TERRAIN_SPECULAR_EXPONENT = 16.0
TERRAIN_SPECULAR_INTENSITY = 0.2

# Fallback layer colours when no texture lookup is supplied.
TERRAIN_LAYER_COLORS = {
    "grass": (0.29, 0.49, 0.2),
    "rock": (0.45, 0.43, 0.41),
    "snow": (0.95, 0.96, 0.98),
    "sand": (0.84, 0.77, 0.55),
}

# --- Standard Material & Lighting ---
AMBIENT_STRENGTH = 0.2
STANDARD_SHININESS = 32.0
CHECKER_TILING = 8.0
CHECKER_COLOR_A = (0.7, 0.7, 0.7)
CHECKER_COLOR_B = (0.9, 0.9, 0.9)

DEFAULT_LIGHT_DIRECTION = (0.5, 1.0, 0.3)
DEFAULT_LIGHT_COLOR = (1.0, 1.0, 1.0)

# --- Underwater Caustics ---
CAUSTICS_DEFAULTS = {
    "caustics_tiling": 10.0,
    "caustics_speed": 0.1,
    "caustics_brightness": 0.5,
}
CAUSTICS_SECOND_LAYER_TILING = 0.7
CAUSTICS_SCROLL_A = (0.5, 0.3)
CAUSTICS_SCROLL_B = (0.2, 0.4)
UNDERWATER_TINT = (0.4, 0.8, 1.0)

# Water height used when a scene has no water surface at all.
NO_WATER_HEIGHT = -10000.0

# --- Baking ---
DEFAULT_BAKE_OUTPUT_DIR = "baked_terrains"
PREVIEW_SCALE = 4  # Output pixels per heightfield vertex in preview images
