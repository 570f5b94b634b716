"""Tests for the surface shading evaluator."""
import numpy as np
import pytest

from terrain_synth import config as DEFAULTS
from terrain_synth.shading import (
    Light, LiquidMaterial, StandardMaterial, TerrainMaterial, WaterEnvironment,
    hash_noise, mix, shade, shade_mesh, smoothstep, triplanar_weights,
)
from terrain_synth.mesh import create_plane
from terrain_synth.textures import SolidTexture

UP = np.array([0.0, 1.0, 0.0])
OVERHEAD_LIGHT = Light(direction=(0.0, 1.0, 0.0), color=(1.0, 1.0, 1.0))


def test_smoothstep_and_mix():
    assert smoothstep(0.0, 1.0, -1.0) == 0.0
    assert smoothstep(0.0, 1.0, 2.0) == 1.0
    assert smoothstep(0.0, 1.0, 0.5) == pytest.approx(0.5)
    assert mix(2.0, 4.0, 0.25) == pytest.approx(2.5)


def test_hash_noise_is_in_unit_interval():
    values = hash_noise(np.random.default_rng(3).uniform(-100, 100, size=(500, 2)))
    assert values.shape == (500,)
    assert np.all((values >= 0.0) & (values < 1.0))


def test_triplanar_weights_sum_to_one():
    normals = np.random.default_rng(7).normal(size=(1000, 3))
    weights = triplanar_weights(normals)
    np.testing.assert_allclose(weights.sum(axis=1), 1.0)
    assert np.all(weights >= 0.0)


def test_triplanar_weights_favor_the_dominant_axis():
    np.testing.assert_allclose(triplanar_weights(UP), [0.0, 1.0, 0.0])
    np.testing.assert_allclose(triplanar_weights([1.0, 1.0, 0.0]), [0.5, 0.5, 0.0])
    weights = triplanar_weights([0.9, 0.3, 0.1])
    assert weights[0] > 0.99


def test_unknown_material_is_rejected():
    with pytest.raises(TypeError):
        shade(object(), [0.0, 0.0, 0.0], UP, 0.0, [0.0, 5.0, 0.0])


# --- Standard ---

def test_standard_checker_fallback():
    color = shade(StandardMaterial(), [0.0, 0.0, 0.0], UP, 0.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
                  tex_coord=[0.01, 0.01])
    # checker square 0 -> 0.7 grey; ambient 0.2, diffuse 1, specular 1.
    np.testing.assert_allclose(color, [0.2 * 0.7 + 0.7 + 1.0] * 3)


def test_standard_checker_alternates():
    a = shade(StandardMaterial(), [0.0, 0.0, 0.0], UP, 0.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
              tex_coord=[0.01, 0.01])
    b = shade(StandardMaterial(), [0.0, 0.0, 0.0], UP, 0.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
              tex_coord=[0.13, 0.01])
    np.testing.assert_allclose(b, [0.2 * 0.9 + 0.9 + 1.0] * 3)
    assert not np.allclose(a, b)


def test_standard_vertex_color_is_used_when_alpha_is_set():
    color = shade(StandardMaterial(tint=(0.0, 0.0, 0.0)), [0.0, 0.0, 0.0], UP, 0.0, [0.0, 10.0, 0.0],
                  OVERHEAD_LIGHT, vertex_color=[1.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(color, [2.2, 1.0, 1.0])


def test_standard_texture_is_tinted():
    material = StandardMaterial(texture=SolidTexture((0.5, 0.5, 0.5)), tint=(1.0, 0.0, 0.0),
                                emissive=(0.1, 0.2, 0.3))
    color = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
                  vertex_color=[0.0, 1.0, 0.0, 1.0])
    np.testing.assert_allclose(color, [0.6 + 1.0 + 0.1, 1.0 + 0.2, 1.0 + 0.3])


def test_standard_shininess_comes_from_material():
    light = Light(direction=(0.0, 1.0, 0.0))
    camera = [10.0, 10.0, 0.0]  # view direction is 45 degrees off the normal
    dull = shade(StandardMaterial(shininess=2.0), [0.0, 0.0, 0.0], UP, 0.0, camera, light)
    sharp = shade(StandardMaterial(shininess=64.0), [0.0, 0.0, 0.0], UP, 0.0, camera, light)
    assert np.all(dull > sharp)


def _caustics_environment(**overrides):
    settings = dict(water_height=0.0, is_underwater=True, caustics=lambda uv: np.ones(np.shape(uv)[:-1]),
                    caustics_brightness=0.5)
    settings.update(overrides)
    return WaterEnvironment(**settings)


def test_caustics_tint_points_below_water():
    lit = 0.2 * 0.7 + 0.7 + 1.0
    below = shade(StandardMaterial(), [0.0, -1.0, 0.0], UP, 2.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
                  _caustics_environment(), tex_coord=[0.01, 0.01])
    # (1 + 1) * 0.5 * brightness 0.5 = 0.5 on top of the (0.4, 0.8, 1.0) tint.
    np.testing.assert_allclose(below, lit * np.array([0.9, 1.3, 1.5]))


def test_caustics_skip_points_above_water_or_when_not_underwater():
    lit = 0.2 * 0.7 + 0.7 + 1.0
    above = shade(StandardMaterial(), [0.0, 1.0, 0.0], UP, 2.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
                  _caustics_environment(), tex_coord=[0.01, 0.01])
    dry = shade(StandardMaterial(), [0.0, -1.0, 0.0], UP, 2.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT,
                _caustics_environment(is_underwater=False), tex_coord=[0.01, 0.01])
    np.testing.assert_allclose(above, [lit] * 3)
    np.testing.assert_allclose(dry, [lit] * 3)


def test_caustics_layers_scroll_over_time():
    seen = []

    def caustics(uv):
        seen.append(np.array(uv))
        return np.zeros(np.shape(uv)[:-1])

    env = _caustics_environment(caustics=caustics, caustics_tiling=10.0, caustics_speed=0.1)
    shade(StandardMaterial(), [5.0, -1.0, 7.0], UP, 3.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT, env)
    np.testing.assert_allclose(seen[0], [0.5 + 0.3 * 0.5, 0.7 + 0.3 * 0.3])
    np.testing.assert_allclose(seen[1], [5.0 / 7.0 - 0.3 * 0.2, 7.0 / 7.0 - 0.3 * 0.4])


# --- Terrain ---

def _terrain_color(position, normal, light=OVERHEAD_LIGHT, camera=(0.0, 100.0, 0.0), water_height=5.0):
    return shade(TerrainMaterial(), position, normal, 0.0, camera, light,
                 WaterEnvironment(water_height=water_height))


def _lit(base):
    # Ambient 0.2 + full diffuse + specular 0.2 with light and view along the normal.
    return 1.2 * np.asarray(base) + 0.2


def test_terrain_low_flat_ground_is_sand():
    color = _terrain_color([0.0, 3.0, 0.0], UP, camera=(0.0, 100.0, 0.0))
    np.testing.assert_allclose(color, _lit(DEFAULTS.TERRAIN_LAYER_COLORS['sand']))


def test_terrain_mid_flat_ground_is_grass():
    color = _terrain_color([0.0, 12.0, 0.0], UP)
    np.testing.assert_allclose(color, _lit(DEFAULTS.TERRAIN_LAYER_COLORS['grass']))


def test_terrain_high_flat_ground_is_snow():
    color = _terrain_color([0.0, 30.0, 0.0], UP)
    np.testing.assert_allclose(color, _lit(DEFAULTS.TERRAIN_LAYER_COLORS['snow']))


def test_terrain_cliff_is_rock_even_at_altitude():
    light = Light(direction=(1.0, 0.0, 0.0))
    color = _terrain_color([0.0, 30.0, 0.0], [1.0, 0.0, 0.0], light=light, camera=(100.0, 30.0, 0.0))
    np.testing.assert_allclose(color, _lit(DEFAULTS.TERRAIN_LAYER_COLORS['rock']))


def test_terrain_layers_use_their_own_projections():
    seen = {}

    def recorder(name):
        def lookup(uv):
            seen.setdefault(name, []).append(np.array(uv))
            return np.zeros(np.shape(uv)[:-1] + (3,))
        return lookup

    material = TerrainMaterial(grass=recorder('grass'), rock=recorder('rock'),
                               snow=recorder('snow'), sand=recorder('sand'))
    shade(material, [20.0, 10.0, 40.0], UP, 0.0, [0.0, 100.0, 0.0])
    np.testing.assert_allclose(seen['grass'][0], [1.0, 2.0])
    np.testing.assert_allclose(seen['rock'][0], [0.5, 2.0])
    np.testing.assert_allclose(seen['rock'][1], [1.0, 0.5])
    np.testing.assert_allclose(seen['snow'][0], [2.0, 4.0])
    np.testing.assert_allclose(seen['sand'][0], [4.0, 8.0])


def _sloped_normal(slope):
    ny = 1.0 - slope
    return np.array([np.sqrt(1.0 - ny * ny), ny, 0.0])


def _shade_facing(material, position, normal):
    # Light and camera both sit along the normal, so _lit() applies.
    light = Light(direction=normal)
    camera = np.asarray(position) + 100.0 * normal
    return shade(material, position, normal, 0.0, camera, light, WaterEnvironment(water_height=5.0))


def test_terrain_sand_thins_out_on_moderate_slopes():
    colors = DEFAULTS.TERRAIN_LAYER_COLORS
    # Halfway between the sand slope thresholds only half of the sand remains.
    color = _shade_facing(TerrainMaterial(), [0.0, 3.0, 0.0], _sloped_normal(0.325))
    expected = mix(np.asarray(colors['grass']), np.asarray(colors['sand']), 0.5)
    np.testing.assert_allclose(color, _lit(expected))


def test_terrain_rock_never_covers_sand():
    sand = (0.0, 0.0, 1.0)
    # Let sand survive on slopes steep enough to be fully rock.
    material = TerrainMaterial(grass=SolidTexture((1.0, 0.0, 0.0)), rock=SolidTexture((0.0, 1.0, 0.0)),
                               sand=SolidTexture(sand),
                               thresholds={'sand_slope_min': 0.8, 'sand_slope_max': 0.9})
    color = _shade_facing(material, [0.0, 3.0, 0.0], _sloped_normal(0.75))
    np.testing.assert_allclose(color, _lit(sand))


def test_terrain_rock_covers_grass_on_the_same_slope():
    rock = (0.0, 1.0, 0.0)
    material = TerrainMaterial(grass=SolidTexture((1.0, 0.0, 0.0)), rock=SolidTexture(rock),
                               sand=SolidTexture((0.0, 0.0, 1.0)),
                               thresholds={'sand_slope_min': 0.8, 'sand_slope_max': 0.9})
    normal = _sloped_normal(0.75)
    color = _shade_facing(material, [0.0, 12.0, 0.0], normal)
    # Only the X projection contributes for a normal in the XY plane.
    rock_weight = triplanar_weights(normal)[0]
    np.testing.assert_allclose(color, _lit(np.asarray(rock) * rock_weight))


# --- Liquid ---

def _expected_overhead_liquid(material, position, camera_height):
    depth = camera_height - position[1]
    water = mix(material.base_color, material.deep_color, min(depth / material.depth_distance, 1.0))
    foam = smoothstep(material.foam_crest_min, material.foam_crest_max,
                      position[1] + hash_noise(np.array([position[0], position[2]]) * 2.0) * 0.1)
    color = mix(water, material.foam_color, foam)
    color = mix(color, np.array(DEFAULTS.SKY_ZENITH_COLOR), DEFAULTS.FRESNEL_BASE)
    # Light straight overhead: full specular, no subsurface term.
    return color + material.specular_color


def test_liquid_viewed_from_above():
    material = LiquidMaterial()
    color = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [0.0, 5.0, 0.0], OVERHEAD_LIGHT)
    np.testing.assert_allclose(color, _expected_overhead_liquid(material, [0.0, 0.0, 0.0], 5.0))


def test_liquid_crest_is_foam():
    material = LiquidMaterial()
    color = shade(material, [0.0, 2.0, 0.0], UP, 0.0, [0.0, 7.0, 0.0], OVERHEAD_LIGHT)
    expected = mix(material.foam_color, np.array(DEFAULTS.SKY_ZENITH_COLOR), DEFAULTS.FRESNEL_BASE) + 1.0
    np.testing.assert_allclose(color, expected)


def test_liquid_grazing_view_reflects_more_sky():
    material = LiquidMaterial({'specular_color': (0.0, 0.0, 0.0), 'sss_color': (0.0, 0.0, 0.0)})
    overhead = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [0.0, 5.0, 0.0], OVERHEAD_LIGHT)
    grazing = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [50.0, 0.5, 0.0], OVERHEAD_LIGHT)
    sky = mix(np.array(DEFAULTS.SKY_HORIZON_COLOR), np.array(DEFAULTS.SKY_ZENITH_COLOR), 0.5)
    assert np.linalg.norm(grazing - sky) < np.linalg.norm(overhead - sky)


def test_liquid_subsurface_scattering_when_facing_the_light():
    material = LiquidMaterial({'specular_color': (0.0, 0.0, 0.0)})
    light = Light(direction=(-1.0, 0.0, 0.0))
    # Mirrored cameras see identical fresnel, sky and depth terms.
    toward = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [10.0, 1.0, 0.0], light)
    away = shade(material, [0.0, 0.0, 0.0], UP, 0.0, [-10.0, 1.0, 0.0], light)
    sss_dot = (10.0 / np.sqrt(101.0)) ** material.sss_power
    np.testing.assert_allclose(toward - away, material.sss_color * sss_dot, atol=1e-9)


def test_liquid_ripples_change_the_color_only_while_live():
    material = LiquidMaterial()
    point = [3.0125, 0.0, 1.0]
    camera = [0.0, 5.0, 0.0]
    live = np.array([[1.0, 1.0, 0.0, 5.0]])
    calm = shade(material, point, UP, 1.0, camera, OVERHEAD_LIGHT)
    rippled = shade(material, point, UP, 1.0, camera, OVERHEAD_LIGHT, ripples=live)
    expired = shade(material, point, UP, 10.0, camera, OVERHEAD_LIGHT, ripples=live)
    calm_later = shade(material, point, UP, 10.0, camera, OVERHEAD_LIGHT)
    assert not np.allclose(calm, rippled)
    np.testing.assert_allclose(expired, calm_later)


# --- Batches ---

@pytest.mark.parametrize("material", [LiquidMaterial(), TerrainMaterial(), StandardMaterial()])
def test_batch_matches_single_point(material):
    positions = np.array([[0.0, 0.0, 0.0], [3.0, 6.0, -2.0], [-4.0, 20.0, 5.0]])
    normals = np.array([[0.0, 1.0, 0.0], [0.3, 0.9, 0.1], [-0.8, 0.5, 0.2]])
    camera = [1.0, 30.0, 2.0]
    env = _caustics_environment(water_height=10.0)
    ripples = np.array([[0.0, 0.0, 0.0, 1.0]])
    batch = shade(material, positions, normals, 0.7, camera, OVERHEAD_LIGHT, env, ripples=ripples)
    assert batch.shape == (3, 3)
    for i in range(3):
        single = shade(material, positions[i], normals[i], 0.7, camera, OVERHEAD_LIGHT, env, ripples=ripples)
        np.testing.assert_allclose(batch[i], single)


def test_shade_mesh_uses_vertex_colors():
    plane = create_plane(4, 4, 2, 2)
    colors = shade_mesh(StandardMaterial(), plane, 0.0, [0.0, 10.0, 0.0], OVERHEAD_LIGHT)
    assert colors.shape == (plane.vertex_count, 3)
    # White vertex colors: ambient 0.2 + diffuse + specular, all close to overhead.
    assert np.all(colors > 1.0)
