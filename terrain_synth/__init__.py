# terrain_synth/__init__.py

# This file makes the 'terrain_synth' directory a Python package.
# We also use it to define the public API of the package.

from .random_stream import AleaRandom
from .noise import SimplexNoise, fbm, fbm_grid
from .mesh import MeshData, create_plane
from .terrain import TerrainOptions, TerrainGenerator, create_terrain
from .waves import Wave, WaveState, default_waves, displace_surface, ripple_contribution
from .shading import (
    Light, WaterEnvironment, LiquidMaterial, TerrainMaterial, StandardMaterial,
    shade, shade_mesh, triplanar_weights,
)
from .textures import SolidTexture, CheckerTexture, ArrayTexture

__all__ = [
    "AleaRandom", "SimplexNoise", "fbm", "fbm_grid",
    "MeshData", "create_plane",
    "TerrainOptions", "TerrainGenerator", "create_terrain",
    "Wave", "WaveState", "default_waves", "displace_surface", "ripple_contribution",
    "Light", "WaterEnvironment", "LiquidMaterial", "TerrainMaterial", "StandardMaterial",
    "shade", "shade_mesh", "triplanar_weights",
    "SolidTexture", "CheckerTexture", "ArrayTexture",
]
