"""Tests for the archetype registry and position synthesis."""

import math

import numpy as np
import pytest

from engine import shapes
from engine.determinism import SeededRng, draw_angles
from engine.dna import ShapeDNA, draw_color_dna, draw_shape_dna
from engine.shapes import (
    TORUS_KNOT_DRAWS_PER_PARTICLE,
    Archetype,
    apply_global_transform,
    select_archetype,
    superformula,
    synthesize,
)

pytestmark = pytest.mark.smoke


def _dna(archetype: float, **overrides) -> ShapeDNA:
    fields = dict(
        archetype=archetype,
        mod_a=3,
        mod_b=4,
        twist=0.0,
        spikes=False,
        global_scale=1.0,
        sf_m=6,
        sf_n1=1.0,
        sf_n2=1.0,
        sf_n3=1.0,
    )
    fields.update(overrides)
    return ShapeDNA(**fields)


def _angles(count: int, seed: int = 5):
    return draw_angles(np.random.default_rng(seed), count)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.0, Archetype.SUPER_SPHERE),
        (0.2499999, Archetype.SUPER_SPHERE),
        (0.25, Archetype.TORUS_KNOT),
        (0.4999999, Archetype.TORUS_KNOT),
        (0.5, Archetype.RIBBON),
        (0.7499999, Archetype.RIBBON),
        (0.75, Archetype.CHAOTIC_SHELL),
        (0.9999999, Archetype.CHAOTIC_SHELL),
    ],
)
def test_archetype_bands(value, expected):
    assert select_archetype(value) == expected


def test_registry_lists_all_four_in_band_order():
    listed = shapes.list_all()
    assert [a["id"] for a in listed] == [
        "super_sphere",
        "torus_knot",
        "ribbon",
        "chaotic_shell",
    ]
    assert listed[0]["band"] == (0.0, 0.25)
    assert listed[-1]["band"] == (0.75, 1.0)


def test_registry_get():
    info = shapes.get(Archetype.RIBBON)
    assert info is not None
    assert info["name"] == "Ribbon"
    assert callable(info["fn"])


def test_superformula_m_zero_is_unit_radius():
    # m=0: cos term is 1, sin term is 0, base 1 -> r = 1
    r = superformula(np.array([0.0, 1.0, 2.0]), 0, 1.0, 1.0, 1.0)
    np.testing.assert_allclose(r, 1.0)


def test_superformula_zero_base_is_zero():
    # cos/sin terms raised to huge n2/n3 underflow to a zero base
    r = superformula(np.array([math.pi / 2]), 2, 1.0, 5000.0, 5000.0)
    assert r[0] == 0.0


def test_superformula_scalar_input():
    r = superformula(0.0, 4, 2.0, 2.0, 2.0)
    assert np.isfinite(r)


@pytest.mark.parametrize("archetype", [0.1, 0.3, 0.6, 0.9])
def test_synthesize_shape_and_dtype(archetype):
    count = 500
    rng = SeededRng.from_seed("shape")
    positions = synthesize(count, 4.0, _dna(archetype), rng, _angles(count))
    assert positions.shape == (count, 3)
    assert positions.dtype == np.float64


@pytest.mark.parametrize("archetype", [0.3, 0.6, 0.9])
def test_non_sphere_archetypes_are_finite(archetype):
    count = 500
    rng = SeededRng.from_seed("finite")
    positions = synthesize(count, 4.0, _dna(archetype), rng, _angles(count))
    assert np.all(np.isfinite(positions))


def test_only_torus_knot_consumes_seeded_draws():
    count = 200
    for archetype in (0.1, 0.6, 0.9):
        rng = SeededRng.from_seed("draws")
        synthesize(count, 4.0, _dna(archetype), rng, _angles(count))
        assert rng.draws == 0

    rng = SeededRng.from_seed("draws")
    synthesize(count, 4.0, _dna(0.3), rng, _angles(count))
    assert rng.draws == count * TORUS_KNOT_DRAWS_PER_PARTICLE


def test_torus_knot_total_stream_usage_after_dna():
    count = 100
    rng = SeededRng.from_seed("knot")
    draw_shape_dna(rng)
    draw_color_dna(rng)
    synthesize(count, 4.0, _dna(0.3), rng, _angles(count))
    assert rng.draws == 14 + 3 * count


def test_torus_knot_deterministic_for_same_seed_and_angles():
    count = 300
    angles = _angles(count)
    a = synthesize(count, 4.0, _dna(0.3), SeededRng.from_seed("k"), angles)
    b = synthesize(count, 4.0, _dna(0.3), SeededRng.from_seed("k"), angles)
    np.testing.assert_array_equal(a, b)


def test_synthesize_rejects_angle_length_mismatch():
    with pytest.raises(ValueError, match="angles"):
        synthesize(10, 4.0, _dna(0.1), SeededRng.from_seed("x"), _angles(9))


def test_chaotic_shell_matches_formula():
    dna = _dna(0.9, mod_a=2, mod_b=4, twist=0.0)
    u = np.array([0.5])
    v = np.array([1.0])
    pos = synthesize(1, 4.0, dna, SeededRng.from_seed("s"), (u, v))
    x = 4.0 * math.sin(0.5) * math.cos(1.0)
    y = 4.0 * math.cos(0.5) * math.sin(1.0) * (1 + 0.4 * math.sin(1.0 * 0.5))
    z = 4.0 * math.cos(1.0) + math.sin(2.0 * 0.5)
    np.testing.assert_allclose(pos[0], [x, y, z])


def test_ribbon_matches_formula():
    dna = _dna(0.6, mod_a=2, mod_b=3)
    u, v = np.array([0.4]), np.array([2.0])
    pos = synthesize(1, 4.0, dna, SeededRng.from_seed("s"), (u, v))
    t = 0.8
    width = 0.5
    band_r = 4.0 * (0.8 + 0.2 * math.cos(2 * t))
    tw = t * 3 * 0.5
    x = (band_r + width * math.cos(tw)) * math.cos(t)
    y = (band_r + width * math.cos(tw)) * math.sin(t)
    z = width * math.sin(tw) + math.sin(t * 2)
    np.testing.assert_allclose(pos[0], [x, y, z])


def test_spikes_perturb_super_sphere():
    count = 200
    angles = _angles(count)
    smooth = synthesize(count, 4.0, _dna(0.1), SeededRng.from_seed("s"), angles)
    spiky = synthesize(count, 4.0, _dna(0.1, spikes=True), SeededRng.from_seed("s"), angles)
    assert not np.allclose(smooth, spiky)


def test_global_transform_zero_twist_is_pure_scale():
    x, y, z = np.array([1.0, 2.0]), np.array([3.0, 4.0]), np.array([5.0, 6.0])
    out = apply_global_transform(x, y, z, 0.0, 2.0)
    np.testing.assert_allclose(out, [[2, 6, 10], [4, 8, 12]])


def test_global_transform_twist_rotates_about_z():
    out = apply_global_transform(
        np.array([1.0]), np.array([0.0]), np.array([10.0]), twist=math.pi / 2, scale=1.0
    )
    # angle = z * twist * 0.1 = pi/2: (1, 0) -> (0, 1), z unchanged
    np.testing.assert_allclose(out[0], [0.0, 1.0, 10.0], atol=1e-12)


def test_global_transform_preserves_xy_radius():
    rng = np.random.default_rng(0)
    x, y, z = rng.normal(size=(3, 100))
    out = apply_global_transform(x, y, z, twist=1.7, scale=1.0)
    np.testing.assert_allclose(np.hypot(out[:, 0], out[:, 1]), np.hypot(x, y))
    np.testing.assert_allclose(out[:, 2], z)
