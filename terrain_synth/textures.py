# terrain_synth/textures.py

"""
Texture lookups used by the shading evaluator.

A lookup is any callable mapping projected 2D coordinates of shape (..., 2)
to colors of shape (..., 3), or to scalars of shape (...) for single-channel
maps such as caustics. The shader never cares how a lookup is implemented;
these are the stock ones.
"""

import numpy as np

from . import config as DEFAULTS


class SolidTexture:
    """A constant color everywhere."""

    def __init__(self, color):
        self.color = np.asarray(color, dtype=np.float64)

    def __call__(self, uv):
        uv = np.asarray(uv, dtype=np.float64)
        return np.broadcast_to(self.color, uv.shape[:-1] + self.color.shape).copy()


class CheckerTexture:
    """Two-color checkerboard with one square per unit of UV."""

    def __init__(self, color_a=DEFAULTS.CHECKER_COLOR_A, color_b=DEFAULTS.CHECKER_COLOR_B):
        self.color_a = np.asarray(color_a, dtype=np.float64)
        self.color_b = np.asarray(color_b, dtype=np.float64)

    def __call__(self, uv):
        uv = np.asarray(uv, dtype=np.float64)
        checker = np.mod(np.floor(uv[..., 0]) + np.floor(uv[..., 1]), 2.0)[..., np.newaxis]
        return self.color_a * (1.0 - checker) + self.color_b * checker


class ArrayTexture:
    """
    Samples an already-decoded image array with repeat wrapping.

    The array is (height, width, channels) with values in [0, 1] (uint8 data
    is rescaled). UV (0, 0) is the first texel; lookups use the nearest texel.
    """

    def __init__(self, pixels):
        pixels = np.asarray(pixels)
        if pixels.ndim == 2:
            pixels = pixels[..., np.newaxis]
        if pixels.ndim != 3:
            raise ValueError(f"Texture data must be 2D or 3D, got shape {pixels.shape}.")
        if pixels.dtype == np.uint8:
            pixels = pixels.astype(np.float64) / 255.0
        self.pixels = pixels.astype(np.float64)
        self.height, self.width = self.pixels.shape[:2]

    def _texels(self, uv):
        uv = np.asarray(uv, dtype=np.float64)
        u = np.mod(uv[..., 0], 1.0)
        v = np.mod(uv[..., 1], 1.0)
        col = np.minimum((u * self.width).astype(int), self.width - 1)
        row = np.minimum((v * self.height).astype(int), self.height - 1)
        return self.pixels[row, col]

    def __call__(self, uv):
        texels = self._texels(uv)
        if texels.shape[-1] == 1:
            return np.repeat(texels, 3, axis=-1)
        return texels[..., :3]

    def channel(self, index: int = 0):
        """A scalar lookup reading a single channel, e.g. for caustics maps."""
        def lookup(uv):
            return self._texels(uv)[..., index]
        return lookup
