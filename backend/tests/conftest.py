import shutil
import uuid
from pathlib import Path

import numpy as np
import pytest

from engine.config import DEFAULT_SEED, GenerationConfig
from engine.generator import generate


class FakeTime:
    """Manually advanced time source for AnimationClock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def small_config():
    """Config small enough to keep generation and rendering fast."""
    return GenerationConfig(particle_count=1000, radius=4.0)


@pytest.fixture
def default_seed():
    return DEFAULT_SEED


@pytest.fixture
def pinned_rng():
    """Factory for seeded angle generators (pins particle placement)."""

    def _make(seed: int = 1234) -> np.random.Generator:
        return np.random.default_rng(seed)

    return _make


@pytest.fixture
def small_generation(small_config, default_seed, pinned_rng):
    return generate(default_seed, small_config, pinned_rng())


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def home_tmp_path():
    """tmp_path equivalent under ~/ for tests that go through validate_output_path.

    The system temp dir resolves under a blocked prefix on macOS (/private/var).
    """
    base = Path.home() / ".cache" / "seedform" / "test-tmp"
    base.mkdir(parents=True, exist_ok=True)
    d = base / f"test_{uuid.uuid4().hex[:8]}"
    d.mkdir()
    yield d
    shutil.rmtree(d, ignore_errors=True)
