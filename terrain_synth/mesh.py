# terrain_synth/mesh.py

"""
Mesh containers and simple grid mesh factories.

MeshData stores everything as NumPy arrays that are frozen on construction,
so a mesh handed to the renderer can never be modified behind its back.
"""

import numpy as np

_EMPTY_COLORS = np.zeros((0, 4), dtype=np.float32)
_EMPTY_TEX_COORDS = np.zeros((0, 2), dtype=np.float32)
_EMPTY_COLORS.flags.writeable = False
_EMPTY_TEX_COORDS.flags.writeable = False


def _frozen(array, dtype, columns=None):
    array = np.array(array, dtype=dtype, copy=True)
    if columns is not None:
        array = array.reshape(-1, columns)
    array.flags.writeable = False
    return array


class MeshData:
    """
    An indexed triangle mesh.

    Attributes:
        vertices (np.ndarray): (N, 3) positions.
        normals (np.ndarray): (N, 3) unit normals, same order as vertices.
        indices (np.ndarray): (3T,) vertex ordinals, counter-clockwise seen from above.
        colors (np.ndarray): (N, 4) RGBA vertex colors, or empty.
        tex_coords (np.ndarray): (N, 2) UVs, or empty.
    """

    __slots__ = ("vertices", "normals", "indices", "colors", "tex_coords")

    def __init__(self, vertices, normals, indices, colors=None, tex_coords=None):
        self.vertices = _frozen(vertices, np.float64, 3)
        self.normals = _frozen(normals, np.float64, 3)
        self.indices = _frozen(indices, np.uint32).ravel()
        self.colors = _EMPTY_COLORS if colors is None else _frozen(colors, np.float32, 4)
        self.tex_coords = _EMPTY_TEX_COORDS if tex_coords is None else _frozen(tex_coords, np.float32, 2)

        if len(self.normals) != len(self.vertices):
            raise ValueError(
                f"Mesh has {len(self.vertices)} vertices but {len(self.normals)} normals."
            )
        if len(self.indices) % 3 != 0:
            raise ValueError(f"Index count {len(self.indices)} is not a multiple of 3.")
        if len(self.indices) and int(self.indices.max()) >= len(self.vertices):
            raise ValueError("Mesh index references a vertex that does not exist.")

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def triangles(self) -> np.ndarray:
        """(T, 3) view of the index stream."""
        return self.indices.reshape(-1, 3)

    def __eq__(self, other):
        if not isinstance(other, MeshData):
            return NotImplemented
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in self.__slots__
        )

    def __repr__(self):
        return f"MeshData(vertices={self.vertex_count}, triangles={self.triangle_count})"


def grid_indices(width_segments: int, depth_segments: int) -> np.ndarray:
    """
    Triangle indices for a (width_segments+1) x (depth_segments+1) vertex grid.

    Each cell with corners a=(x,z), b=(x+1,z), c=(x,z+1), d=(x+1,z+1) emits
    (a, c, b) and (b, c, d). The order fixes the front-face winding.
    """
    row = width_segments + 1
    x, z = np.meshgrid(np.arange(width_segments), np.arange(depth_segments))
    a = (z * row + x).ravel()
    b = a + 1
    c = a + row
    d = c + 1
    return np.stack([a, c, b, b, c, d], axis=1).ravel().astype(np.uint32)


def create_plane(width: float, depth: float, width_segments: int, depth_segments: int) -> MeshData:
    """
    Builds a flat, subdivided plane centred on the origin, facing +Y.

    Used as the base surface for liquids, whose vertices are displaced by the
    wave model every frame.
    """
    if width_segments < 1 or depth_segments < 1:
        raise ValueError("Plane needs at least one segment along each axis.")

    u = np.arange(width_segments + 1) / width_segments
    v = np.arange(depth_segments + 1) / depth_segments
    uu, vv = np.meshgrid(u, v)

    vertex_count = uu.size
    vertices = np.column_stack([
        uu.ravel() * width - width / 2,
        np.zeros(vertex_count),
        vv.ravel() * depth - depth / 2,
    ])
    normals = np.tile([0.0, 1.0, 0.0], (vertex_count, 1))
    colors = np.ones((vertex_count, 4))
    tex_coords = np.column_stack([uu.ravel(), vv.ravel()])

    return MeshData(vertices, normals, grid_indices(width_segments, depth_segments),
                    colors=colors, tex_coords=tex_coords)
