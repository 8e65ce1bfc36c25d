"""Seeded determinism — sfc32 stream for shape DNA, plus the unseeded angle source.

Two sources of randomness exist on purpose:

* ``SeededRng`` (sfc32 over a cyrb128 digest) drives every DNA draw and the
  per-particle torus-knot parameters. Same seed text = same stream, always.
* ``make_angle_rng`` hands out a numpy Generator for the (u, v) surface
  angles. It is NOT derived from the seed text: a seed pins the shape family
  and its parameters, not where each individual particle lands.
"""

import math

import numpy as np

from engine.hashing import MASK32, Digest, digest

_TWO_32 = 4294967296.0


class SeededRng:
    """sfc32 small-state generator. Each draw returns a float in [0, 1)."""

    __slots__ = ("_a", "_b", "_c", "_d", "draws")

    def __init__(self, a: int, b: int, c: int, d: int):
        self._a = a & MASK32
        self._b = b & MASK32
        self._c = c & MASK32
        self._d = d & MASK32
        self.draws = 0

    @classmethod
    def from_digest(cls, d: Digest) -> "SeededRng":
        if len(d) != 4:
            raise ValueError(f"digest must have 4 words, got {len(d)}")
        return cls(*d)

    @classmethod
    def from_seed(cls, seed: str) -> "SeededRng":
        return cls.from_digest(digest(seed))

    @property
    def state(self) -> Digest:
        return (self._a, self._b, self._c, self._d)

    def next(self) -> float:
        a, b, c, d = self._a, self._b, self._c, self._d
        t = (a + b) & MASK32
        a = b ^ (b >> 9)
        b = (c + (c << 3)) & MASK32
        c = ((c << 21) | (c >> 11)) & MASK32
        d = (d + 1) & MASK32
        t = (t + d) & MASK32
        c = (c + t) & MASK32
        self._a, self._b, self._c, self._d = a, b, c, d
        self.draws += 1
        return t / _TWO_32

    def take(self, n: int) -> np.ndarray:
        """Draw n values in order into a float64 array."""
        out = np.empty(n, dtype=np.float64)
        for i in range(n):
            out[i] = self.next()
        return out

    def __iter__(self):
        return self

    def __next__(self) -> float:
        return self.next()


def make_angle_rng(seed: int | None = None) -> np.random.Generator:
    """Unseeded (OS entropy) generator for surface angles.

    Pass an explicit integer only to pin particle placement, e.g. for
    golden-file dumps.
    """
    return np.random.default_rng(seed)


def draw_angles(rng: np.random.Generator, count: int) -> tuple[np.ndarray, np.ndarray]:
    """Draw u in [0, 2π) and v in [0, π) for count particles."""
    u = rng.random(count) * (math.pi * 2)
    v = rng.random(count) * math.pi
    return u, v
