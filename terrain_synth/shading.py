# terrain_synth/shading.py

"""
================================================================================
SURFACE SHADING EVALUATOR
================================================================================
This module computes the final color of a surface point from its position,
normal, the elapsed time, the camera, the light and a material. It is a pure
function of its inputs: materials, lights and environments are read-only
parameter bags supplied by the caller on every call.

Data Contract:
---------------
- Inputs:
    - material: Exactly one of LiquidMaterial, TerrainMaterial or
      StandardMaterial. The material type selects the shading model; models
      are never blended within one evaluation.
    - position, normal: (3,) for a single point or (..., 3) for a batch.
    - time (float), camera_pos (3,), light (Light), environment
      (WaterEnvironment), plus optional per-point ripples, vertex colors
      and texture coordinates.
- Outputs:
    - RGB colors, shape (3,) or (..., 3). Values are not clamped.
- Side Effects: None.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS
from .textures import CheckerTexture, SolidTexture
from .waves import ripple_normal_perturbation

# --- Vector helpers (all operate on the last axis) ---

def _vec(value):
    return np.asarray(value, dtype=np.float64)


def _dot(a, b):
    return np.sum(a * b, axis=-1, keepdims=True)


def _normalize(v):
    return v / np.linalg.norm(v, axis=-1, keepdims=True)


def mix(a, b, t):
    """GLSL-style linear interpolation."""
    return a * (1.0 - t) + b * t


def smoothstep(edge0, edge1, x):
    """Hermite interpolation between two edges, clamped to [0, 1]."""
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def reflect(incident, normal):
    return incident - 2.0 * _dot(normal, incident) * normal


def hash_noise(st):
    """Cheap per-point pseudo-random value in [0, 1) from 2D coordinates."""
    st = _vec(st)
    value = np.sin(st[..., 0] * 12.9898 + st[..., 1] * 78.233) * 43758.5453123
    return np.asarray(value - np.floor(value))


def triplanar_weights(normal):
    """
    Blend weights for the X, Y and Z texture projections.

    |normal| is raised to TRIPLANAR_SHARPNESS so the dominant axis wins
    decisively, then renormalized so the weights sum to 1.
    """
    weights = np.power(np.abs(_normalize(_vec(normal))), DEFAULTS.TRIPLANAR_SHARPNESS)
    return weights / np.sum(weights, axis=-1, keepdims=True)


# --- Scene Parameters ---

class Light:
    """A directional light. `direction` points from the surface towards the light."""

    def __init__(self, direction=DEFAULTS.DEFAULT_LIGHT_DIRECTION, color=DEFAULTS.DEFAULT_LIGHT_COLOR):
        self.direction = _normalize(_vec(direction))
        self.color = _vec(color)

    @classmethod
    def from_config(cls, config: dict) -> "Light":
        return cls(config.get('direction', DEFAULTS.DEFAULT_LIGHT_DIRECTION),
                   config.get('color', DEFAULTS.DEFAULT_LIGHT_COLOR))


class WaterEnvironment:
    """
    Scene-wide water parameters shared by every material.

    Args:
        water_height (float): World height of the water surface.
        is_underwater (bool): Enables caustics on standard materials below the surface.
        caustics (callable, optional): Scalar lookup from 2D coordinates.
    """
    def __init__(self, water_height=DEFAULTS.NO_WATER_HEIGHT, is_underwater=False, caustics=None,
                 caustics_tiling=DEFAULTS.CAUSTICS_DEFAULTS['caustics_tiling'],
                 caustics_speed=DEFAULTS.CAUSTICS_DEFAULTS['caustics_speed'],
                 caustics_brightness=DEFAULTS.CAUSTICS_DEFAULTS['caustics_brightness']):
        self.water_height = float(water_height)
        self.is_underwater = bool(is_underwater)
        self.caustics = caustics
        self.caustics_tiling = float(caustics_tiling)
        self.caustics_speed = float(caustics_speed)
        self.caustics_brightness = float(caustics_brightness)

    @classmethod
    def from_config(cls, config: dict, caustics=None) -> "WaterEnvironment":
        return cls(
            water_height=config.get('water_height', DEFAULTS.NO_WATER_HEIGHT),
            is_underwater=config.get('is_underwater', False),
            caustics=caustics,
            caustics_tiling=config.get('caustics_tiling', DEFAULTS.CAUSTICS_DEFAULTS['caustics_tiling']),
            caustics_speed=config.get('caustics_speed', DEFAULTS.CAUSTICS_DEFAULTS['caustics_speed']),
            caustics_brightness=config.get('caustics_brightness', DEFAULTS.CAUSTICS_DEFAULTS['caustics_brightness']),
        )


# --- Materials ---

class LiquidMaterial:
    """Water-like surface: ripples, fresnel sky reflection, specular, SSS, depth tint and foam."""

    def __init__(self, config: dict = None):
        config = config or {}
        settings = {key: config.get(key, default) for key, default in DEFAULTS.LIQUID_DEFAULTS.items()}
        self.base_color = _vec(settings['base_color'])
        self.deep_color = _vec(settings['deep_color'])
        self.depth_distance = float(settings['depth_distance'])
        self.specular_color = _vec(settings['specular_color'])
        self.shininess = float(settings['shininess'])
        self.sss_color = _vec(settings['sss_color'])
        self.sss_power = float(settings['sss_power'])
        self.foam_color = _vec(settings['foam_color'])
        self.foam_crest_min = float(settings['foam_crest_min'])
        self.foam_crest_max = float(settings['foam_crest_max'])


class TerrainMaterial:
    """
    Height/slope blended grass, rock, snow and sand layers.

    Each layer is a color lookup of projected world coordinates. Missing
    layers fall back to a flat color.
    """
    def __init__(self, grass=None, rock=None, snow=None, sand=None,
                 thresholds: dict = None):
        colors = DEFAULTS.TERRAIN_LAYER_COLORS
        self.grass = grass or SolidTexture(colors['grass'])
        self.rock = rock or SolidTexture(colors['rock'])
        self.snow = snow or SolidTexture(colors['snow'])
        self.sand = sand or SolidTexture(colors['sand'])
        self.thresholds = dict(DEFAULTS.TERRAIN_BLEND_THRESHOLDS)
        self.thresholds.update(thresholds or {})


class StandardMaterial:
    """Textured, vertex-colored or checker-patterned surface with Blinn-Phong lighting."""

    def __init__(self, texture=None, tint=(1.0, 1.0, 1.0), emissive=(0.0, 0.0, 0.0),
                 shininess=DEFAULTS.STANDARD_SHININESS, tiling=(1.0, 1.0), offset=(0.0, 0.0)):
        self.texture = texture
        self.tint = _vec(tint)
        self.emissive = _vec(emissive)
        self.shininess = float(shininess)
        self.tiling = _vec(tiling)
        self.offset = _vec(offset)


# --- Shading Models ---

def _blinn_phong(base_color, normal, light_dir, view_dir, light, shininess):
    """Ambient + diffuse + Blinn specular, returned separately for the specular term."""
    ambient = DEFAULTS.AMBIENT_STRENGTH * base_color
    diffuse = np.maximum(_dot(normal, light_dir), 0.0) * light.color * base_color
    halfway = _normalize(light_dir + view_dir)
    spec = np.power(np.maximum(_dot(normal, halfway), 0.0), shininess)
    return ambient + diffuse, spec


def _shade_liquid(material, position, normal, time, camera_pos, light, environment,
                  ripples=None, **_):
    light_dir = light.direction
    view_dir = _normalize(camera_pos - position)

    # 1. Ripples push the normal outward along each ring.
    if ripples is not None and len(ripples):
        normal = normal - ripple_normal_perturbation(ripples, position[..., [0, 2]], time)
    normal = _normalize(normal)

    # 2. Fresnel (Schlick).
    base = DEFAULTS.FRESNEL_BASE
    fresnel = base + (1.0 - base) * np.power(1.0 - _dot(view_dir, normal), DEFAULTS.FRESNEL_EXPONENT)

    # 3. Sky reflection between horizon and zenith.
    reflect_dir = reflect(-view_dir, normal)
    sky_mix = 0.5 * (reflect_dir[..., 1:2] + 1.0)
    sky_color = mix(_vec(DEFAULTS.SKY_HORIZON_COLOR), _vec(DEFAULTS.SKY_ZENITH_COLOR), sky_mix)

    # 4. Specular.
    halfway = _normalize(light_dir + view_dir)
    specular = np.power(np.maximum(_dot(normal, halfway), 0.0), material.shininess)

    # 5. Subsurface scattering when looking towards the light.
    sss_dot = np.power(np.maximum(0.0, _dot(light_dir, -view_dir)), material.sss_power)
    sss = material.sss_color * sss_dot

    # 6. Depth-based color.
    depth = np.linalg.norm(position - camera_pos, axis=-1, keepdims=True)
    depth_factor = np.clip(depth / material.depth_distance, 0.0, 1.0)
    water_color = mix(material.base_color, material.deep_color, depth_factor)

    # 7. Foam on the crests.
    foam_noise = hash_noise(position[..., [0, 2]] * DEFAULTS.FOAM_NOISE_FREQUENCY)[..., np.newaxis]
    foam_amount = smoothstep(material.foam_crest_min, material.foam_crest_max,
                             position[..., 1:2] + foam_noise * DEFAULTS.FOAM_NOISE_AMPLITUDE)
    color = mix(water_color, material.foam_color, foam_amount)

    # 8. Combine.
    color = mix(color, sky_color, fresnel)
    color = color + material.specular_color * specular * light.color
    return color + sss


def _shade_terrain(material, position, normal, time, camera_pos, light, environment, **_):
    normal = _normalize(normal)
    weights = triplanar_weights(normal)
    tiling = DEFAULTS.TERRAIN_TEXTURE_TILING
    x, y, z = position[..., 0], position[..., 1], position[..., 2]
    xz = np.stack([x, z], axis=-1)

    grass_color = material.grass(xz * tiling['grass'])
    rock_color = (material.rock(np.stack([y, z], axis=-1) * tiling['rock']) * weights[..., 0:1]
                  + material.rock(np.stack([x, y], axis=-1) * tiling['rock']) * weights[..., 2:3])
    snow_color = material.snow(xz * tiling['snow'])
    sand_color = material.sand(xz * tiling['sand'])

    height = position[..., 1:2]
    slope = 1.0 - normal[..., 1:2]
    t = material.thresholds
    water_height = environment.water_height

    # 1. Base is grass.
    base_color = grass_color

    # 2. Sand near the water line, thinned out on steep slopes.
    sand_factor = 1.0 - smoothstep(water_height - t['sand_below_water'],
                                   water_height + t['sand_above_water'], height)
    sand_factor = sand_factor * (1.0 - smoothstep(t['sand_slope_min'], t['sand_slope_max'], slope))
    base_color = mix(base_color, sand_color, sand_factor)

    # 3. Rock on steep slopes, never over sand.
    rock_factor = smoothstep(t['rock_slope_min'], t['rock_slope_max'], slope)
    base_color = mix(base_color, rock_color, rock_factor * (1.0 - sand_factor))

    # 4. Snow at altitude, except on cliffs. Applied last so it covers everything.
    snow_factor = smoothstep(t['snow_height_min'], t['snow_height_max'], height)
    snow_factor = snow_factor * (1.0 - smoothstep(t['snow_slope_min'], t['snow_slope_max'], slope))
    base_color = mix(base_color, snow_color, snow_factor)

    view_dir = _normalize(camera_pos - position)
    lit, spec = _blinn_phong(base_color, normal, light.direction, view_dir, light,
                             DEFAULTS.TERRAIN_SPECULAR_EXPONENT)
    return lit + spec * light.color * DEFAULTS.TERRAIN_SPECULAR_INTENSITY


def _shade_standard(material, position, normal, time, camera_pos, light, environment,
                    vertex_color=None, tex_coord=None, **_):
    batch_shape = position.shape[:-1]
    if tex_coord is None:
        tex_coord = np.zeros(batch_shape + (2,))
    uv = _vec(tex_coord) * material.tiling + material.offset

    # 1. Base color: texture, then vertex color, then a checker fallback.
    if material.texture is not None:
        base_color = material.texture(uv) * material.tint
    else:
        checker = CheckerTexture()(uv * DEFAULTS.CHECKER_TILING) * material.tint
        if vertex_color is None:
            base_color = checker
        else:
            vertex_color = np.broadcast_to(_vec(vertex_color), batch_shape + (4,))
            has_color = vertex_color[..., 3:4] > 0.0
            base_color = np.where(has_color, vertex_color[..., :3], checker)

    # 2. Lighting.
    normal = _normalize(normal)
    view_dir = _normalize(camera_pos - position)
    lit, spec = _blinn_phong(base_color, normal, light.direction, view_dir, light, material.shininess)
    color = lit + spec * light.color

    # 3. Underwater caustics: two scrolling layers averaged, over a blue tint.
    if environment.is_underwater:
        below = position[..., 1:2] < environment.water_height
        xz = position[..., [0, 2]]
        if environment.caustics is not None:
            scroll = time * environment.caustics_speed
            uv1 = xz / environment.caustics_tiling + scroll * _vec(DEFAULTS.CAUSTICS_SCROLL_A)
            uv2 = (xz / (environment.caustics_tiling * DEFAULTS.CAUSTICS_SECOND_LAYER_TILING)
                   - scroll * _vec(DEFAULTS.CAUSTICS_SCROLL_B))
            caustics = (_vec(environment.caustics(uv1)) + _vec(environment.caustics(uv2))) * 0.5
            caustics = caustics[..., np.newaxis] * environment.caustics_brightness
        else:
            caustics = np.zeros(batch_shape + (1,))
        color = np.where(below, color * (_vec(DEFAULTS.UNDERWATER_TINT) + caustics), color)

    return color + material.emissive


_SHADERS = {
    LiquidMaterial: _shade_liquid,
    TerrainMaterial: _shade_terrain,
    StandardMaterial: _shade_standard,
}


def shade(material, position, normal, time: float, camera_pos, light: Light = None,
          environment: WaterEnvironment = None, ripples=None, vertex_color=None, tex_coord=None):
    """
    Evaluates the surface color for one point or a batch of points.

    Args:
        material: LiquidMaterial, TerrainMaterial or StandardMaterial.
        position: (3,) or (..., 3) world positions.
        normal: Geometric normals, same shape as position.
        time (float): Elapsed time in seconds.
        camera_pos: (3,) camera world position.
        light (Light, optional): Defaults to the internal default light.
        environment (WaterEnvironment, optional): Defaults to a scene without water.
        ripples (np.ndarray, optional): (R, 4) live ripples, liquid only.
        vertex_color: (4,) or (..., 4) RGBA, standard only. Alpha 0 means "unset".
        tex_coord: (2,) or (..., 2) UVs, standard only.

    Returns:
        np.ndarray: RGB color with the same leading shape as position.
    """
    shader = _SHADERS.get(type(material))
    if shader is None:
        raise TypeError(f"Unsupported material type: {type(material).__name__}")

    light = light or Light()
    environment = environment or WaterEnvironment()
    position = _vec(position)
    normal = np.broadcast_to(_vec(normal), position.shape)
    camera_pos = _vec(camera_pos)

    return shader(material, position, normal, float(time), camera_pos, light, environment,
                  ripples=ripples, vertex_color=vertex_color, tex_coord=tex_coord)


def shade_mesh(material, mesh, time: float, camera_pos, light: Light = None,
               environment: WaterEnvironment = None, ripples=None) -> np.ndarray:
    """Shades every vertex of a MeshData, using its colors and UVs when present."""
    vertex_color = mesh.colors if len(mesh.colors) else None
    tex_coord = mesh.tex_coords if len(mesh.tex_coords) else None
    return shade(material, mesh.vertices, mesh.normals, time, camera_pos, light, environment,
                 ripples=ripples, vertex_color=vertex_color, tex_coord=tex_coord)
