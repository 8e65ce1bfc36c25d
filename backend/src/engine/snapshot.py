"""Snapshots — dump a generation's DNA and buffers as JSON or CSV for golden comparison."""

import json

import numpy as np

from engine.config import GenerationConfig
from engine.dna import color_dna_from_dict, shape_dna_from_dict
from engine.generator import Generation

SNAPSHOT_VERSION = 1
CSV_HEADER = "x,y,z,r,g,b"


def to_dict(generation: Generation, include_buffers: bool = True) -> dict:
    data = {
        "version": SNAPSHOT_VERSION,
        "seed": generation.seed,
        "digest": list(generation.digest),
        "config": generation.config.to_dict(),
        "archetype": generation.archetype.value,
        "shape_dna": generation.shape_dna.to_dict(),
        "color_dna": generation.color_dna.to_dict(),
        "seeded_draws": generation.seeded_draws,
    }
    if include_buffers:
        # Non-finite floats become null so the file stays strict JSON
        data["positions"] = _finite_list(generation.positions)
        data["colors"] = _finite_list(generation.colors)
    return data


def to_json(generation: Generation, include_buffers: bool = True) -> str:
    return json.dumps(to_dict(generation, include_buffers), indent=2, allow_nan=False)


def from_json(data: str) -> Generation:
    """Rebuild a Generation from a snapshot. Raises ValueError on bad input."""
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    missing = {"seed", "digest", "config", "shape_dna", "color_dna"} - set(raw)
    if missing:
        raise ValueError(f"Missing snapshot keys: {sorted(missing)}")
    if raw.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {raw.get('version')!r}")

    try:
        config = GenerationConfig.from_dict(raw["config"])
        shape_dna = shape_dna_from_dict(raw["shape_dna"])
        color_dna = color_dna_from_dict(raw["color_dna"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid snapshot: {e}") from e

    positions = _array_from_list(raw.get("positions"))
    colors = _array_from_list(raw.get("colors"))
    return Generation(
        seed=raw["seed"],
        config=config,
        digest=tuple(int(w) for w in raw["digest"]),
        shape_dna=shape_dna,
        color_dna=color_dna,
        positions=positions,
        colors=colors,
        seeded_draws=int(raw.get("seeded_draws", 0)),
    )


def write_csv(path: str, positions: np.ndarray, colors: np.ndarray) -> None:
    """One row per particle: x,y,z,r,g,b."""
    table = np.hstack([positions.reshape(-1, 3), colors.reshape(-1, 3)])
    np.savetxt(path, table, delimiter=",", header=CSV_HEADER, comments="", fmt="%.9g")


def read_csv(path: str) -> tuple[np.ndarray, np.ndarray]:
    table = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2, dtype=np.float32)
    if table.shape[1] != 6:
        raise ValueError(f"expected 6 columns ({CSV_HEADER}), got {table.shape[1]}")
    return table[:, :3].copy(), table[:, 3:].copy()


def _finite_list(arr: np.ndarray) -> list:
    flat = arr.reshape(-1).astype(np.float64)
    return [float(v) if np.isfinite(v) else None for v in flat]


def _array_from_list(values: list | None) -> np.ndarray:
    if not values:
        return np.zeros((0, 3), dtype=np.float32)
    flat = np.array([np.nan if v is None else v for v in values], dtype=np.float32)
    if flat.size % 3:
        raise ValueError(f"buffer length {flat.size} is not a multiple of 3")
    return flat.reshape(-1, 3)
