"""Color synthesizer — per-particle RGB from position, pattern and three base hues."""

import colorsys
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from engine.dna import ColorDNA

Color = tuple[float, float, float]


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> Color:
    """HSL (all components 0-1) to RGB 0-1. Hue wraps, saturation/lightness clamp."""
    saturation = min(1.0, max(0.0, saturation))
    lightness = min(1.0, max(0.0, lightness))
    r, g, b = colorsys.hls_to_rgb(hue % 1.0, lightness, saturation)
    return (r, g, b)


def pattern_mix(
    positions: np.ndarray,
    radius: float,
    pattern: int,
    frequency: float,
    angles_u: np.ndarray,
) -> np.ndarray:
    """Scalar blend factor per particle, clamped to [0, 1]."""
    norm = positions / (radius * 2)
    px, py, pz = norm[:, 0], norm[:, 1], norm[:, 2]

    if pattern == 0:
        mix = py + 0.5
    elif pattern == 1:
        mix = (px + pz + 1) / 2
    elif pattern == 2:
        mix = np.sqrt(px * px + py * py + pz * pz) * 1.5
    elif pattern == 3:
        mix = (np.sin(angles_u * frequency) + 1) / 2
    elif pattern == 4:
        # Raw (unnormalized) x, y on purpose
        x, y = positions[:, 0], positions[:, 1]
        mix = (np.sin(x * frequency) * np.cos(y * frequency) + 1) / 2
    else:
        raise ValueError(f"unknown color pattern: {pattern}")

    # NaN can only come from a non-finite position; pin it to the first color
    return np.clip(np.nan_to_num(mix, nan=0.0), 0.0, 1.0)


def blend(mix: np.ndarray, col1: Color, col2: Color, col3: Color) -> np.ndarray:
    """Two-segment gradient: col1→col2 over [0, 0.5), col2→col3 over [0.5, 1]."""
    c1 = np.asarray(col1, dtype=np.float64)
    c2 = np.asarray(col2, dtype=np.float64)
    c3 = np.asarray(col3, dtype=np.float64)

    low = mix < 0.5
    t = np.where(low, mix * 2, (mix - 0.5) * 2)[:, np.newaxis]
    start = np.where(low[:, np.newaxis], c1, c2)
    end = np.where(low[:, np.newaxis], c2, c3)
    return start + (end - start) * t


def colorize(
    positions: np.ndarray,
    radius: float,
    dna: "ColorDNA",
    angles_u: np.ndarray,
) -> np.ndarray:
    """Compute one RGB color per particle. Reads positions, never mutates them.

    Args:
        positions: (N, 3) final particle positions.
        radius:    Base radius from the config (normalizes positions).
        dna:       Color DNA for this cycle.
        angles_u:  (N,) per-particle u angle, used by the stripe pattern.

    Returns:
        (N, 3) float32 colors, every channel in [0, 1].
    """
    mix = pattern_mix(positions, radius, dna.pattern, dna.frequency, angles_u)
    colors = blend(mix, dna.col1, dna.col2, dna.col3)
    return np.clip(colors, 0.0, 1.0).astype(np.float32)
