"""Tests for simplex noise and the fBm sum."""
import numpy as np
import pytest

from terrain_synth.noise import SimplexNoise, build_permutation_table, fbm, fbm_grid


def test_permutation_table_is_a_doubled_permutation():
    perm, perm_mod12 = build_permutation_table("abc")
    assert perm.shape == (512,)
    assert sorted(perm[:256].tolist()) == list(range(256))
    np.testing.assert_array_equal(perm[256:], perm[:256])
    np.testing.assert_array_equal(perm_mod12, perm % 12)


def test_permutation_table_is_read_only():
    noise = SimplexNoise("abc")
    with pytest.raises(ValueError):
        noise.perm[0] = 1


def test_same_seed_same_table_different_seed_different_table():
    a, _ = build_permutation_table("abc")
    b, _ = build_permutation_table("abc")
    c, _ = build_permutation_table("xyz")
    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, c)


def test_noise_is_zero_on_lattice_origin():
    # Every corner either sits on the sample point or is out of range.
    assert SimplexNoise("anything").sample(0.0, 0.0) == 0.0


def test_sample_is_deterministic():
    a = SimplexNoise("abc")
    b = SimplexNoise("abc")
    for x, y in [(0.3, 0.7), (-12.5, 3.25), (1000.1, -999.9)]:
        assert a.sample(x, y) == b.sample(x, y)


def test_sample_range():
    noise = SimplexNoise("range")
    xs, ys = np.meshgrid(np.linspace(-20, 20, 301), np.linspace(-20, 20, 301))
    values = noise.sample_grid(xs, ys)
    assert values.min() >= -1.0
    assert values.max() <= 1.0
    # The field is not degenerate.
    assert values.std() > 0.1


def test_sample_is_continuous_across_cell_edges():
    noise = SimplexNoise("continuity")
    # Crosses many skewed cell boundaries and the x == y triangle split.
    t = np.arange(0.0, 4.0, 1e-4)
    along_diagonal = noise.sample_grid(t, t + 1e-9)
    along_axis = noise.sample_grid(t, np.full_like(t, 0.37))
    assert np.max(np.abs(np.diff(along_diagonal))) < 0.01
    assert np.max(np.abs(np.diff(along_axis))) < 0.01


def test_sample_grid_matches_scalar_sample():
    noise = SimplexNoise("grid")
    xs = np.array([[0.1, 2.5], [-3.3, 7.75]])
    ys = np.array([[4.2, -1.0], [0.0, 12.125]])
    grid = noise.sample_grid(xs, ys)
    assert grid.shape == (2, 2)
    for idx in np.ndindex(xs.shape):
        assert grid[idx] == noise.sample(xs[idx], ys[idx])


@pytest.mark.parametrize("octaves,lacunarity,persistence", [
    (1, 2.0, 0.5),
    (3, 2.0, 0.5),
    (8, 2.2, 0.5),
    (5, 3.0, 0.9),
    (4, 1.5, 1.5),
])
def test_fbm_is_normalized(octaves, lacunarity, persistence):
    noise = SimplexNoise("fbm")
    xs, ys = np.meshgrid(np.linspace(-5, 5, 80), np.linspace(-5, 5, 80))
    values = fbm_grid(noise, xs, ys, octaves, lacunarity, persistence)
    assert values.min() >= 0.0
    assert values.max() <= 1.0


def test_single_octave_fbm_is_remapped_noise():
    noise = SimplexNoise("one")
    for x, y in [(0.25, 0.5), (3.0, -2.0)]:
        expected = (noise.sample(x, y) + 1.0) / 2.0
        assert fbm(noise, x, y, 1, 2.0, 0.5) == pytest.approx(expected)


def test_fbm_rejects_zero_octaves():
    noise = SimplexNoise("zero")
    with pytest.raises(ValueError):
        fbm(noise, 0.5, 0.5, 0, 2.0, 0.5)
    with pytest.raises(ValueError):
        fbm_grid(noise, np.zeros(3), np.zeros(3), 0, 2.0, 0.5)


def test_fbm_grid_matches_scalar_fbm():
    noise = SimplexNoise("match")
    xs = np.array([0.1, 0.2, 0.3])
    ys = np.array([1.0, -1.0, 0.5])
    grid = fbm_grid(noise, xs, ys, 4, 2.0, 0.5)
    for i in range(3):
        assert grid[i] == fbm(noise, xs[i], ys[i], 4, 2.0, 0.5)


def test_noise2d_is_the_sample_method():
    noise = SimplexNoise("alias")
    assert noise.noise2d(0.4, -2.6) == noise.sample(0.4, -2.6)
