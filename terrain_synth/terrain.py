# terrain_synth/terrain.py

"""
================================================================================
TERRAIN MESH GENERATOR
================================================================================
This module contains TerrainOptions and the TerrainGenerator class, which turn
a seed and a handful of shaping parameters into a renderable terrain mesh.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict | TerrainOptions): Parameters which override the internal
      defaults. Expected keys include 'seed', 'width', 'noise_scale', etc.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from methods):
    - build(): A new MeshData with vertices, normals and triangle indices.
    - get_heightfield(): The (depth+1, width+1) array of heights.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same options, the output is bit-identical.
================================================================================
"""

import logging
import numbers
import time
from dataclasses import asdict, dataclass

import numpy as np
from scipy.ndimage import correlate1d

from . import config as DEFAULTS
from . import noise
from .mesh import MeshData, grid_indices

# Central difference (left - right) with the far neighbours weighted +1/-1.
_CENTRAL_DIFFERENCE = np.array([1.0, 0.0, -1.0])


@dataclass(frozen=True)
class TerrainOptions:
    """Immutable set of parameters that fully determines a terrain mesh."""

    width: int = DEFAULTS.DEFAULT_TERRAIN_WIDTH
    depth: int = DEFAULTS.DEFAULT_TERRAIN_DEPTH
    height_scale: float = DEFAULTS.DEFAULT_HEIGHT_SCALE
    noise_scale: float = DEFAULTS.DEFAULT_NOISE_SCALE
    seed: str = DEFAULTS.DEFAULT_SEED
    octaves: int = DEFAULTS.DEFAULT_OCTAVES
    lacunarity: float = DEFAULTS.DEFAULT_LACUNARITY
    persistence: float = DEFAULTS.DEFAULT_PERSISTENCE
    # Carried for shading only; does not change the mesh.
    water_level: float = DEFAULTS.DEFAULT_WATER_LEVEL

    def __post_init__(self) -> None:
        if not isinstance(self.width, numbers.Integral) or not isinstance(self.depth, numbers.Integral):
            raise ValueError(f"Terrain width and depth must be integers, got {self.width}x{self.depth}.")
        if self.width < 1 or self.depth < 1:
            raise ValueError(f"Terrain must be at least 1x1 cells, got {self.width}x{self.depth}.")
        if not isinstance(self.octaves, numbers.Integral) or self.octaves < 1:
            raise ValueError(f"octaves must be an integer >= 1, got {self.octaves}.")
        if self.noise_scale == 0:
            raise ValueError("noise_scale must be non-zero.")

    @classmethod
    def from_config(cls, config: dict) -> "TerrainOptions":
        """Builds options from a user dictionary, falling back to the internal defaults."""
        return cls(
            width=config.get('width', DEFAULTS.DEFAULT_TERRAIN_WIDTH),
            depth=config.get('depth', DEFAULTS.DEFAULT_TERRAIN_DEPTH),
            height_scale=float(config.get('height_scale', DEFAULTS.DEFAULT_HEIGHT_SCALE)),
            noise_scale=float(config.get('noise_scale', DEFAULTS.DEFAULT_NOISE_SCALE)),
            seed=str(config.get('seed', DEFAULTS.DEFAULT_SEED)),
            octaves=config.get('octaves', DEFAULTS.DEFAULT_OCTAVES),
            lacunarity=float(config.get('lacunarity', DEFAULTS.DEFAULT_LACUNARITY)),
            persistence=float(config.get('persistence', DEFAULTS.DEFAULT_PERSISTENCE)),
            water_level=float(config.get('water_level', DEFAULTS.DEFAULT_WATER_LEVEL)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def heightfield_normals(heights: np.ndarray) -> np.ndarray:
    """
    Per-vertex normals of a heightfield, shape (depth+1, width+1, 3).

    Neighbours outside the grid count as height 0, which bevels the outer
    ring of the terrain down towards the ground plane.
    """
    # Axis 1 runs along X (left/right), axis 0 along Z (down/up).
    dx = correlate1d(heights, _CENTRAL_DIFFERENCE, axis=1, mode='constant',
                     cval=DEFAULTS.OUT_OF_BOUNDS_HEIGHT)
    dz = correlate1d(heights, _CENTRAL_DIFFERENCE, axis=0, mode='constant',
                     cval=DEFAULTS.OUT_OF_BOUNDS_HEIGHT)
    dy = np.full(heights.shape, DEFAULTS.NORMAL_STEEPNESS_SENSITIVITY)

    normals = np.stack([dx, dy, dz], axis=-1)
    return normals / np.linalg.norm(normals, axis=-1, keepdims=True)


class TerrainGenerator:
    """
    Generates terrain meshes from a seeded fractal noise field.
    This class is backend-only and does not handle any rendering.
    """
    def __init__(self, config, logger: logging.Logger = None):
        """
        Initializes the terrain generator.

        Args:
            config (dict | TerrainOptions): User-defined parameters to override defaults.
            logger (logging.Logger, optional): The logger instance for all output.
        """
        self.logger = logger or logging.getLogger(__name__)
        if isinstance(config, TerrainOptions):
            self.options = config
        else:
            self.options = TerrainOptions.from_config(config)

        self.noise = noise.SimplexNoise(self.options.seed)
        self.logger.debug(f"Permutation table built for seed '{self.options.seed}'.")
        self.logger.info(
            f"TerrainGenerator initialized: {self.options.width}x{self.options.depth} cells, "
            f"seed '{self.options.seed}', {self.options.octaves} octaves"
        )

    def get_heightfield(self) -> np.ndarray:
        """
        Samples the shaped height of every grid vertex.

        Returns a (depth+1, width+1) array, row-major by depth then width.
        """
        opts = self.options
        x_coords, z_coords = np.meshgrid(
            np.arange(opts.width + 1, dtype=np.float64),
            np.arange(opts.depth + 1, dtype=np.float64),
        )

        # 1. Normalized fBm in [0, 1].
        fractal = noise.fbm_grid(
            self.noise,
            x_coords / opts.noise_scale,
            z_coords / opts.noise_scale,
            opts.octaves,
            opts.lacunarity,
            opts.persistence,
        )

        # 2. Bias towards flat lowlands and sharp highlands, then scale to world units.
        return np.power(fractal, DEFAULTS.HEIGHT_SHAPING_EXPONENT) * opts.height_scale

    def build(self) -> MeshData:
        """Builds the terrain mesh. The heightfield is discarded afterwards."""
        start_time = time.perf_counter()
        opts = self.options

        heights = self.get_heightfield()

        x_coords, z_coords = np.meshgrid(
            np.arange(opts.width + 1, dtype=np.float64),
            np.arange(opts.depth + 1, dtype=np.float64),
        )
        vertices = np.stack([
            x_coords - opts.width / 2,
            heights,
            z_coords - opts.depth / 2,
        ], axis=-1).reshape(-1, 3)

        normals = heightfield_normals(heights).reshape(-1, 3)
        indices = grid_indices(opts.width, opts.depth)

        mesh = MeshData(vertices, normals, indices)
        elapsed = time.perf_counter() - start_time
        self.logger.info(
            f"Terrain built: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles "
            f"in {elapsed:.3f} seconds."
        )
        return mesh


def create_terrain(options, logger: logging.Logger = None) -> MeshData:
    """One-shot helper: builds the mesh for a TerrainOptions instance or config dict."""
    return TerrainGenerator(options, logger=logger).build()
