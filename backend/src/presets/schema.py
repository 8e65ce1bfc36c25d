"""Preset file schema — serialize/deserialize .seedform preset files.

A preset is a shareable seed plus the config it was tuned with. It carries
no geometry: the seed regenerates the shape DNA on load.
"""

import json
import time
import uuid

from engine.config import (
    DEFAULT_SEED,
    MAX_SEED_LENGTH,
    ConfigError,
    GenerationConfig,
    validate_config,
)
from engine.hashing import seed_length

CURRENT_VERSION = "1.0.0"

REQUIRED_KEYS = {
    "version",
    "id",
    "created",
    "modified",
    "seed",
    "config",
}


def new_preset(
    seed: str = DEFAULT_SEED, config: GenerationConfig | None = None
) -> dict:
    """Create a new preset with defaults."""
    now = time.time()
    return {
        "version": CURRENT_VERSION,
        "id": str(uuid.uuid4()),
        "created": now,
        "modified": now,
        "seed": seed,
        "config": (config or GenerationConfig()).to_dict(),
    }


def validate(preset: dict) -> list[str]:
    """Validate a preset dict. Returns list of error strings (empty = valid)."""
    errors = []

    missing = REQUIRED_KEYS - set(preset.keys())
    if missing:
        errors.append(f"Missing top-level keys: {sorted(missing)}")
        return errors  # Can't validate further

    if not isinstance(preset["version"], str):
        errors.append("'version' must be a string")

    if not isinstance(preset["id"], str):
        errors.append("'id' must be a string")

    seed = preset["seed"]
    if not isinstance(seed, str):
        errors.append("'seed' must be a string")
    elif seed_length(seed) > MAX_SEED_LENGTH:
        errors.append(f"'seed' exceeds {MAX_SEED_LENGTH} characters")

    config = preset["config"]
    if not isinstance(config, dict):
        errors.append("'config' must be a dict")
    else:
        merged = {**GenerationConfig().to_dict(), **config}
        errors.extend(f"config: {e}" for e in validate_config(merged))

    return errors


def config_of(preset: dict) -> GenerationConfig:
    """GenerationConfig for a validated preset (missing fields take defaults)."""
    try:
        return GenerationConfig.from_dict(preset["config"])
    except ConfigError as e:
        raise ValueError(f"Invalid preset config: {e}") from e


def serialize(preset: dict) -> str:
    """Serialize preset to JSON string."""
    preset["modified"] = time.time()
    return json.dumps(preset, indent=2)


def deserialize(data: str) -> dict:
    """Deserialize JSON string to preset dict. Raises ValueError on invalid JSON or schema."""
    try:
        preset = json.loads(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(preset, dict):
        raise ValueError("Invalid preset: top level must be an object")

    errors = validate(preset)
    if errors:
        raise ValueError(f"Invalid preset: {'; '.join(errors)}")

    return preset
