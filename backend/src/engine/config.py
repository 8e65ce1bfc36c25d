"""Generation config — the read-only parameter set consumed by one generation cycle."""

import dataclasses
import math
from dataclasses import dataclass

DEFAULT_SEED = "oSKNYo_dev"
FALLBACK_SEED = "default"
MAX_SEED_LENGTH = 32

# Hard ceiling well above the UI slider range; protects buffer allocation.
MAX_PARTICLE_COUNT = 1_000_000

# Matches the control panel sliders. morph_speed and radius have no slider.
PARAMS: dict = {
    "particle_count": {
        "type": "int",
        "min": 1000,
        "max": 50000,
        "step": 1000,
        "default": 25000,
        "label": "Particle Count",
        "unit": "",
        "description": "Number of particles in the cloud",
    },
    "particle_size": {
        "type": "float",
        "min": 0.01,
        "max": 0.3,
        "step": 0.01,
        "default": 0.05,
        "label": "Particle Size",
        "unit": "",
        "description": "Sprite size handed to the renderer",
    },
    "noise_strength": {
        "type": "float",
        "min": 0.0,
        "max": 2.0,
        "step": 0.1,
        "default": 0.2,
        "label": "Surface Jitter (Noise)",
        "unit": "",
        "description": "Per-frame positional jitter amplitude",
    },
    "rotation_speed": {
        "type": "float",
        "min": 0.0,
        "max": 5.0,
        "step": 0.1,
        "default": 1.0,
        "label": "Rotation Speed",
        "unit": "",
        "description": "Camera auto-orbit speed",
    },
    "morph_speed": {
        "type": "float",
        "min": 0.0,
        "max": 1.0,
        "default": 0.05,
        "label": "Morph Speed",
        "unit": "",
        "description": "Fraction of the remaining distance covered per tick",
    },
    "radius": {
        "type": "float",
        "min": 0.0,
        "max": 100.0,
        "default": 4.0,
        "label": "Radius",
        "unit": "",
        "description": "Base radius of the generated shape",
    },
}


class ConfigError(ValueError):
    """Configuration rejected at the boundary, before any generation begins."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True)
class GenerationConfig:
    particle_count: int = PARAMS["particle_count"]["default"]
    radius: float = PARAMS["radius"]["default"]
    noise_strength: float = PARAMS["noise_strength"]["default"]
    morph_speed: float = PARAMS["morph_speed"]["default"]
    particle_size: float = PARAMS["particle_size"]["default"]
    rotation_speed: float = PARAMS["rotation_speed"]["default"]

    def validated(self) -> "GenerationConfig":
        """Return self, or raise ConfigError listing every violated precondition."""
        errors = validate_config(dataclasses.asdict(self))
        if errors:
            raise ConfigError(errors)
        return self

    def replace(self, **changes) -> "GenerationConfig":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    def geometry_key(self) -> tuple[int, float]:
        """Fields that change the target buffers; the rest only affect display or ticks."""
        return (self.particle_count, self.radius)

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationConfig":
        """Build a config from loose input (UI payloads, preset files).

        Unknown keys are ignored; NaN/Inf values fall back to defaults.
        Raises ConfigError if the result violates a precondition.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        errors: list[str] = []
        for key, value in data.items():
            if key not in known:
                continue
            if isinstance(value, float) and not math.isfinite(value):
                continue
            try:
                if PARAMS[key]["type"] == "int":
                    if isinstance(value, float) and not value.is_integer():
                        raise ValueError
                    kwargs[key] = int(value)
                else:
                    kwargs[key] = float(value)
            except (TypeError, ValueError):
                errors.append(f"'{key}' must be a number, got {value!r}")
        if errors:
            raise ConfigError(errors)
        return cls(**kwargs).validated()


def validate_config(values: dict) -> list[str]:
    """Validate config values. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    count = values.get("particle_count")
    if isinstance(count, bool) or not isinstance(count, int):
        errors.append(f"particle_count must be an integer, got {count!r}")
    elif count <= 0:
        errors.append(f"particle_count must be positive, got {count}")
    elif count > MAX_PARTICLE_COUNT:
        errors.append(
            f"particle_count {count} exceeds maximum {MAX_PARTICLE_COUNT}"
        )

    radius = values.get("radius")
    if not _is_finite_number(radius) or radius <= 0:
        errors.append(f"radius must be a positive number, got {radius!r}")

    noise = values.get("noise_strength")
    if not _is_finite_number(noise) or noise < 0:
        errors.append(f"noise_strength must be >= 0, got {noise!r}")

    morph = values.get("morph_speed")
    if not _is_finite_number(morph) or not 0 < morph <= 1:
        errors.append(f"morph_speed must be in (0, 1], got {morph!r}")

    size = values.get("particle_size", PARAMS["particle_size"]["default"])
    if not _is_finite_number(size) or size <= 0:
        errors.append(f"particle_size must be positive, got {size!r}")

    speed = values.get("rotation_speed", PARAMS["rotation_speed"]["default"])
    if not _is_finite_number(speed):
        errors.append(f"rotation_speed must be a number, got {speed!r}")

    return errors


def _is_finite_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
