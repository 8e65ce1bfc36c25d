"""Tests for .seedform preset file schema."""

import json

import pytest

from engine.config import GenerationConfig
from presets.schema import (
    CURRENT_VERSION,
    config_of,
    deserialize,
    new_preset,
    serialize,
    validate,
)

pytestmark = pytest.mark.smoke


def test_new_preset_has_required_fields():
    p = new_preset()
    assert p["version"] == CURRENT_VERSION
    assert p["seed"] == "oSKNYo_dev"
    assert p["config"]["particle_count"] == 25000
    assert len(p["id"]) == 36  # UUID


def test_roundtrip_serialize_deserialize():
    p = new_preset("share me", GenerationConfig(particle_count=5000, noise_strength=0.5))
    restored = deserialize(serialize(p))
    assert restored["id"] == p["id"]
    assert restored["seed"] == "share me"
    assert config_of(restored) == GenerationConfig(particle_count=5000, noise_strength=0.5)


def test_serialize_bumps_modified():
    p = new_preset()
    p["modified"] = 0
    serialize(p)
    assert p["modified"] > 0


def test_validate_valid_preset():
    assert validate(new_preset()) == []


def test_validate_missing_keys():
    errors = validate({"version": "1.0.0"})
    assert len(errors) == 1
    assert "Missing top-level keys" in errors[0]


def test_validate_long_seed():
    p = new_preset()
    p["seed"] = "s" * 33
    assert any("32 characters" in e for e in validate(p))


def test_validate_bad_config_values():
    p = new_preset()
    p["config"]["morph_speed"] = 0
    errors = validate(p)
    assert any(e.startswith("config:") and "morph_speed" in e for e in errors)


def test_partial_config_takes_defaults():
    p = new_preset()
    p["config"] = {"radius": 6.0}
    assert validate(p) == []
    config = config_of(p)
    assert config.radius == 6.0
    assert config.particle_count == 25000


def test_deserialize_invalid_json():
    with pytest.raises(ValueError, match="Invalid JSON"):
        deserialize("{not json")


def test_deserialize_non_object():
    with pytest.raises(ValueError, match="top level"):
        deserialize(json.dumps([1, 2, 3]))


def test_deserialize_invalid_schema():
    with pytest.raises(ValueError, match="Invalid preset"):
        deserialize(json.dumps({"version": "1.0.0"}))
