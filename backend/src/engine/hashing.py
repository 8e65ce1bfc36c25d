"""String seeder — cyrb128 digest of seed text into four 32-bit words.

The mixing sequence is a compatibility contract: shared seed strings must
keep producing the same shapes on every client, so every step below is
bit-exact: UTF-16 code units in, 32-bit wrapping multiplies throughout.
"""

import struct
from collections.abc import Iterable

MASK32 = 0xFFFFFFFF

_H1, _H2, _H3, _H4 = 1779033703, 3144134277, 1013904242, 2773480762
_M1, _M2, _M3, _M4 = 597399067, 2869860233, 951274213, 2716044179

Digest = tuple[int, int, int, int]


def imul(a: int, b: int) -> int:
    """32-bit wrapping multiply, returned unsigned."""
    return ((a & MASK32) * (b & MASK32)) & MASK32


def code_units(text: str) -> list[int]:
    """UTF-16 code units of text (astral chars become surrogate pairs)."""
    raw = text.encode("utf-16-le", "surrogatepass")
    return list(struct.unpack(f"<{len(raw) // 2}H", raw))


def seed_length(text: str) -> int:
    """Length in UTF-16 code units, the unit the 32-character seed limit is counted in."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def digest_code_units(units: Iterable[int]) -> Digest:
    """cyrb128 over an already-split sequence of UTF-16 code units."""
    h1, h2, h3, h4 = _H1, _H2, _H3, _H4
    for k in units:
        h1 = h2 ^ imul(h1 ^ k, _M1)
        h2 = h3 ^ imul(h2 ^ k, _M2)
        h3 = h4 ^ imul(h3 ^ k, _M3)
        # h4 folds in the h1 computed on this same step
        h4 = h1 ^ imul(h4 ^ k, _M4)

    h1 = imul(h3 ^ (h1 >> 18), _M1)
    h2 = imul(h4 ^ (h2 >> 22), _M2)
    h3 = imul(h1 ^ (h3 >> 17), _M3)
    h4 = imul(h2 ^ (h4 >> 19), _M4)
    return (h1 & MASK32, h2 & MASK32, h3 & MASK32, h4 & MASK32)


def digest(seed: str) -> Digest:
    """Hash seed text into four unsigned 32-bit integers. Pure, never fails."""
    return digest_code_units(code_units(seed))
