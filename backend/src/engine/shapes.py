"""Shape synthesizer — archetype registry and per-particle position synthesis.

Each archetype builder is a vectorized function of the surface angles:

    fn(u, v, radius, dna, rng) -> (x, y, z)

``rng`` is the seeded stream. Only the torus knot draws from it, three
values per particle in index order; those draws are materialized up front
so the math itself stays a pure array computation.
"""

from enum import Enum
from typing import Callable

import numpy as np

from engine.determinism import SeededRng
from engine.dna import ShapeDNA

TORUS_KNOT_DRAWS_PER_PARTICLE = 3


class Archetype(Enum):
    SUPER_SPHERE = "super_sphere"
    TORUS_KNOT = "torus_knot"
    RIBBON = "ribbon"
    CHAOTIC_SHELL = "chaotic_shell"


ShapeFn = Callable[..., tuple[np.ndarray, np.ndarray, np.ndarray]]

_REGISTRY: dict[Archetype, dict] = {}


def register(archetype: Archetype, fn: ShapeFn, name: str, band: tuple[float, float]):
    """Register an archetype builder for the [low, high) selector band."""
    _REGISTRY[archetype] = {"fn": fn, "name": name, "band": band}


def get(archetype: Archetype) -> dict | None:
    return _REGISTRY.get(archetype)


def list_all() -> list[dict]:
    """List registered archetypes, ordered by band."""
    return [
        {"id": a.value, "name": info["name"], "band": info["band"]}
        for a, info in sorted(_REGISTRY.items(), key=lambda kv: kv[1]["band"][0])
    ]


def select_archetype(value: float) -> Archetype:
    """Map the archetype draw to its family. Four equal-width bands over [0, 1)."""
    if value < 0.25:
        return Archetype.SUPER_SPHERE
    if value < 0.5:
        return Archetype.TORUS_KNOT
    if value < 0.75:
        return Archetype.RIBBON
    return Archetype.CHAOTIC_SHELL


def superformula(theta, m: float, n1: float, n2: float, n3: float) -> np.ndarray:
    """Gielis superformula radius with a = b = 1.

    A zero base raised to the negative exponent is defined as 0 (policy,
    not a domain error). A tiny positive base may still overflow to inf.
    """
    theta = np.asarray(theta, dtype=np.float64)
    t1 = np.abs(np.cos(m * theta / 4))
    t2 = np.abs(np.sin(m * theta / 4))
    base = np.power(t1, n2) + np.power(t2, n3)
    positive = base > 0
    with np.errstate(over="ignore"):
        r = np.power(np.where(positive, base, 1.0), -1.0 / n1)
    return np.where(positive, r, 0.0)


def _super_sphere(u, v, radius, dna: ShapeDNA, rng):
    r1 = superformula(u, dna.sf_m, dna.sf_n1, dna.sf_n2, dna.sf_n3)
    r2 = superformula(v, dna.sf_m, dna.sf_n1, dna.sf_n2, dna.sf_n3)
    with np.errstate(invalid="ignore", over="ignore"):
        r = radius * r1 * r2
        if dna.spikes:
            r = r + np.sin(u * 20) * np.cos(v * 20) * 0.2
        x = r * np.sin(v) * np.cos(u)
        y = r * np.sin(v) * np.sin(u)
        z = r * np.cos(v)
    return x, y, z


def _torus_knot(u, v, radius, dna: ShapeDNA, rng: SeededRng):
    count = len(u)
    draws = rng.take(count * TORUS_KNOT_DRAWS_PER_PARTICLE).reshape(
        count, TORUS_KNOT_DRAWS_PER_PARTICLE
    )
    p = np.floor(draws[:, 0] * 5) + 2
    q = np.floor(draws[:, 1] * 5) + 1
    tubular_r = 1 + draws[:, 2]

    r_knot = radius * 0.6 + np.cos(q * u) * 1.5
    x = r_knot * np.cos(p * u)
    y = r_knot * np.sin(p * u)
    z = np.sin(q * u) * 2

    theta = v * 2
    x = x + tubular_r * np.cos(theta) * np.cos(p * u)
    y = y + tubular_r * np.cos(theta) * np.sin(p * u)
    z = z + tubular_r * np.sin(theta)
    return x, y, z


def _ribbon(u, v, radius, dna: ShapeDNA, rng):
    t = u * 2
    width = v - 1.5
    band_r = radius * (0.8 + 0.2 * np.cos(dna.mod_a * t))
    twisting = t * dna.mod_b * 0.5

    x = (band_r + width * np.cos(twisting)) * np.cos(t)
    y = (band_r + width * np.cos(twisting)) * np.sin(t)
    z = width * np.sin(twisting) + np.sin(t * 2)
    return x, y, z


def _chaotic_shell(u, v, radius, dna: ShapeDNA, rng):
    a = dna.mod_a / 2
    b = dna.mod_b / 2

    x = radius * np.sin(u) * np.cos(v + u * dna.twist * 0.1)
    y = radius * np.cos(u) * np.sin(v) * (1 + 0.4 * np.sin(a * u))
    z = radius * np.cos(v) + np.sin(b * u)
    return x, y, z


def apply_global_transform(
    x: np.ndarray, y: np.ndarray, z: np.ndarray, twist: float, scale: float
) -> np.ndarray:
    """Twist around Z by an angle proportional to z, then scale uniformly."""
    with np.errstate(invalid="ignore", over="ignore"):
        twist_amt = z * twist * 0.1
        cos_t = np.cos(twist_amt)
        sin_t = np.sin(twist_amt)
        tx = x * cos_t - y * sin_t
        ty = x * sin_t + y * cos_t
        return np.stack([tx, ty, z], axis=1) * scale


def synthesize(
    count: int,
    radius: float,
    dna: ShapeDNA,
    rng: SeededRng,
    angles: tuple[np.ndarray, np.ndarray],
) -> np.ndarray:
    """Compute one position per particle for the archetype chosen by dna.

    Args:
        count:  Number of particles.
        radius: Base radius from the config.
        dna:    Shape DNA for this cycle.
        rng:    Seeded stream, positioned right after the 14 DNA draws.
        angles: (u, v) arrays from the unseeded angle source, length count.

    Returns:
        (count, 3) float64 positions.
    """
    u, v = angles
    if len(u) != count or len(v) != count:
        raise ValueError(f"expected {count} angles, got {len(u)}/{len(v)}")

    info = _REGISTRY[select_archetype(dna.archetype)]
    x, y, z = info["fn"](u, v, radius, dna, rng)
    return apply_global_transform(x, y, z, dna.twist, dna.global_scale)


def _auto_register():
    register(Archetype.SUPER_SPHERE, _super_sphere, "Super-Sphere", (0.0, 0.25))
    register(Archetype.TORUS_KNOT, _torus_knot, "Torus Knot", (0.25, 0.5))
    register(Archetype.RIBBON, _ribbon, "Ribbon", (0.5, 0.75))
    register(Archetype.CHAOTIC_SHELL, _chaotic_shell, "Chaotic Shell", (0.75, 1.0))


_auto_register()
