# terrain_synth/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides seeded 2D simplex noise and the fractal Brownian motion
(fBm) sum built on top of it. The kernels are pure functions of a permutation
table and the input coordinates, and are JIT-compiled with Numba.

Data Contract:
---------------
- Inputs:
    - perm, perm_mod12: 512-entry permutation tables owned by a SimplexNoise.
    - x, y: Scalars or NumPy arrays of coordinates.
    - octaves, lacunarity, persistence: Standard fBm parameters.
- Outputs:
    - sample(): noise values in [-1, 1].
    - fbm(): normalized fractal values in [0, 1].
- Side Effects: None.
- Invariants: The same seed always yields the same permutation table, and
  therefore the same noise field. Output arrays match the input shape.
================================================================================
"""

import math

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .random_stream import AleaRandom

# Gradients are the midpoints of a cube's edges; only (x, y) are used in 2D.
_GRAD3 = np.array([
    [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
    [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
    [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1]
], dtype=np.float64)

# Skewing and unskewing factors for 2D.
F2 = 0.5 * (math.sqrt(3.0) - 1.0)
G2 = (3.0 - math.sqrt(3.0)) / 6.0

_CORNER_RADIUS_SQ = DEFAULTS.SIMPLEX_CORNER_RADIUS_SQ
_OUTPUT_SCALE = DEFAULTS.NOISE_OUTPUT_SCALE


def build_permutation_table(seed):
    """
    Builds the doubled permutation table and its mod-12 gradient index table.

    The identity permutation of 0..255 is shuffled Fisher-Yates style over
    positions 0..254 using an AleaRandom stream keyed by the seed.
    """
    size = DEFAULTS.PERMUTATION_SIZE
    random = AleaRandom(seed)
    p = list(range(size))
    for i in range(size - 1):
        r = i + int(random() * (size - i))
        p[i], p[r] = p[r], p[i]

    perm = np.array(p + p, dtype=np.int64)
    perm_mod12 = perm % 12
    perm.flags.writeable = False
    perm_mod12.flags.writeable = False
    return perm, perm_mod12


@njit
def _corner(gi, x, y):
    """Contribution of a single simplex corner."""
    t = _CORNER_RADIUS_SQ - x * x - y * y
    if t < 0.0:
        return 0.0
    t *= t
    return t * t * (_GRAD3[gi, 0] * x + _GRAD3[gi, 1] * y)


@njit
def simplex_noise_2d(perm, perm_mod12, xin, yin):
    """Evaluates 2D simplex noise at a single point. Result is in [-1, 1]."""
    # Skew the input space to find the containing simplex cell.
    s = (xin + yin) * F2
    i = int(math.floor(xin + s))
    j = int(math.floor(yin + s))
    t = (i + j) * G2
    x0 = xin - (i - t)
    y0 = yin - (j - t)

    # Lower triangle (x0 > y0) is (0,0)->(1,0)->(1,1), upper is (0,0)->(0,1)->(1,1).
    if x0 > y0:
        i1 = 1
        j1 = 0
    else:
        i1 = 0
        j1 = 1

    x1 = x0 - i1 + G2
    y1 = y0 - j1 + G2
    x2 = x0 - 1.0 + 2.0 * G2
    y2 = y0 - 1.0 + 2.0 * G2

    ii = i & 255
    jj = j & 255
    gi0 = perm_mod12[ii + perm[jj]]
    gi1 = perm_mod12[ii + i1 + perm[jj + j1]]
    gi2 = perm_mod12[ii + 1 + perm[jj + 1]]

    n0 = _corner(gi0, x0, y0)
    n1 = _corner(gi1, x1, y1)
    n2 = _corner(gi2, x2, y2)
    return _OUTPUT_SCALE * (n0 + n1 + n2)


@njit
def _simplex_noise_flat(perm, perm_mod12, x, y):
    out = np.empty(x.shape[0])
    for k in range(x.shape[0]):
        out[k] = simplex_noise_2d(perm, perm_mod12, x[k], y[k])
    return out


@njit
def fbm_2d(perm, perm_mod12, x, y, octaves, lacunarity, persistence):
    """
    Fractal Brownian motion at a single point.

    Each octave is remapped from [-1, 1] to [0, 1] before weighting, and the
    sum is divided by the total amplitude, so the result stays in [0, 1]
    whatever the octave count or persistence.
    """
    total = 0.0
    frequency = 1.0
    amplitude = 1.0
    max_value = 0.0
    for _ in range(octaves):
        n = simplex_noise_2d(perm, perm_mod12, x * frequency, y * frequency)
        total += ((n + 1.0) / 2.0) * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / max_value


@njit
def _fbm_flat(perm, perm_mod12, x, y, octaves, lacunarity, persistence):
    out = np.empty(x.shape[0])
    for k in range(x.shape[0]):
        out[k] = fbm_2d(perm, perm_mod12, x[k], y[k], octaves, lacunarity, persistence)
    return out


def _check_octaves(octaves):
    if octaves < 1:
        raise ValueError(f"octaves must be >= 1, got {octaves}")


class SimplexNoise:
    """
    A seeded 2D simplex noise field.

    The permutation table is built once from the seed and never shared or
    mutated afterwards, so independent instances can be used from separate
    processes without coordination.
    """

    def __init__(self, seed):
        self.seed = str(seed)
        self.perm, self.perm_mod12 = build_permutation_table(self.seed)

    def sample(self, x: float, y: float) -> float:
        """Noise value in [-1, 1] at (x, y)."""
        return simplex_noise_2d(self.perm, self.perm_mod12, float(x), float(y))

    noise2d = sample

    def sample_grid(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Evaluates the field for arrays of coordinates of matching shape."""
        x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        flat = _simplex_noise_flat(self.perm, self.perm_mod12, x.ravel(), y.ravel())
        return flat.reshape(x.shape)


def fbm(noise: SimplexNoise, x: float, y: float, octaves: int, lacunarity: float, persistence: float) -> float:
    """Normalized fBm in [0, 1] at a single point. Requires octaves >= 1."""
    _check_octaves(octaves)
    return fbm_2d(noise.perm, noise.perm_mod12, float(x), float(y),
                  int(octaves), float(lacunarity), float(persistence))


def fbm_grid(noise: SimplexNoise, x: np.ndarray, y: np.ndarray, octaves: int,
             lacunarity: float, persistence: float) -> np.ndarray:
    """Array version of fbm(); the output has the broadcast shape of x and y."""
    _check_octaves(octaves)
    x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
    flat = _fbm_flat(noise.perm, noise.perm_mod12, x.ravel(), y.ravel(),
                     int(octaves), float(lacunarity), float(persistence))
    return flat.reshape(x.shape)
