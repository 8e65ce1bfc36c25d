"""Shape and color DNA — the scalar parameters drawn once per generation cycle.

Draw order is part of the seed format. ``draw_shape_dna`` takes 10 draws and
``draw_color_dna`` the next 4; reordering any of them changes every shape
ever shared.
"""

import math
from dataclasses import asdict, dataclass

from engine.colors import Color, hsl_to_rgb
from engine.determinism import SeededRng

SHAPE_DNA_DRAWS = 10
COLOR_DNA_DRAWS = 4
DNA_DRAWS = SHAPE_DNA_DRAWS + COLOR_DNA_DRAWS

COLOR_PATTERNS = ("linear_y", "linear_xz", "radial", "stripes", "trig_product")


@dataclass(frozen=True)
class ShapeDNA:
    archetype: float
    mod_a: int
    mod_b: int
    twist: float
    spikes: bool
    global_scale: float
    sf_m: int
    sf_n1: float
    sf_n2: float
    sf_n3: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ColorDNA:
    hue_base: float
    hue_variance: float
    pattern: int
    frequency: float
    col1: Color
    col2: Color
    col3: Color

    @property
    def pattern_name(self) -> str:
        return COLOR_PATTERNS[self.pattern]

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("col1", "col2", "col3"):
            d[key] = list(d[key])
        return d


def draw_shape_dna(rng: SeededRng) -> ShapeDNA:
    """Take the 10 shape draws, in seed-format order."""
    archetype = rng.next()
    mod_a = math.floor(rng.next() * 10) + 1
    mod_b = math.floor(rng.next() * 10) + 1
    twist = (rng.next() - 0.5) * 5
    spikes = rng.next() > 0.7
    global_scale = 0.8 + rng.next() * 0.4
    sf_m = math.floor(rng.next() * 20)
    sf_n1 = 0.2 + rng.next() * 5
    sf_n2 = 0.2 + rng.next() * 5
    sf_n3 = 0.2 + rng.next() * 5
    return ShapeDNA(
        archetype=archetype,
        mod_a=mod_a,
        mod_b=mod_b,
        twist=twist,
        spikes=spikes,
        global_scale=global_scale,
        sf_m=sf_m,
        sf_n1=sf_n1,
        sf_n2=sf_n2,
        sf_n3=sf_n3,
    )


def draw_color_dna(rng: SeededRng) -> ColorDNA:
    """Take the 4 color draws that follow the shape draws."""
    hue_base = rng.next()
    hue_variance = rng.next() * 0.5
    pattern = math.floor(rng.next() * 5)
    frequency = 0.5 + rng.next() * 2
    return ColorDNA(
        hue_base=hue_base,
        hue_variance=hue_variance,
        pattern=pattern,
        frequency=frequency,
        col1=hsl_to_rgb(hue_base, 0.8, 0.5),
        col2=hsl_to_rgb((hue_base + 0.3 + hue_variance) % 1, 0.9, 0.6),
        col3=hsl_to_rgb((hue_base + 0.6 + hue_variance) % 1, 0.5, 0.5),
    )


def shape_dna_from_dict(data: dict) -> ShapeDNA:
    return ShapeDNA(
        archetype=float(data["archetype"]),
        mod_a=int(data["mod_a"]),
        mod_b=int(data["mod_b"]),
        twist=float(data["twist"]),
        spikes=bool(data["spikes"]),
        global_scale=float(data["global_scale"]),
        sf_m=int(data["sf_m"]),
        sf_n1=float(data["sf_n1"]),
        sf_n2=float(data["sf_n2"]),
        sf_n3=float(data["sf_n3"]),
    )


def color_dna_from_dict(data: dict) -> ColorDNA:
    return ColorDNA(
        hue_base=float(data["hue_base"]),
        hue_variance=float(data["hue_variance"]),
        pattern=int(data["pattern"]),
        frequency=float(data["frequency"]),
        col1=tuple(float(c) for c in data["col1"]),
        col2=tuple(float(c) for c in data["col2"]),
        col3=tuple(float(c) for c in data["col3"]),
    )
