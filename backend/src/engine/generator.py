"""Generation cycle — seed text + config to a complete target particle buffer.

One cycle: digest → sfc32 → shape DNA → color DNA → positions → colors.
Everything is computed into fresh arrays and only handed out once complete,
so a caller never sees a partially written target.

Includes the explicit regenerate command and input debouncer that front the
live animator, plus timing breadcrumbs for slow cycles.
"""

import logging
import threading
import time
from dataclasses import dataclass

import numpy as np
import sentry_sdk

from engine import shapes
from engine.animator import MorphAnimator
from engine.clock import AnimationClock
from engine.colors import colorize
from engine.config import (
    FALLBACK_SEED,
    MAX_SEED_LENGTH,
    ConfigError,
    GenerationConfig,
)
from engine.determinism import SeededRng, draw_angles, make_angle_rng
from engine.dna import ColorDNA, ShapeDNA, draw_color_dna, draw_shape_dna
from engine.hashing import Digest, digest, seed_length

logger = logging.getLogger(__name__)

# Generation timing threshold (milliseconds)
GENERATE_WARN_MS = 250

# Quiet period before a burst of input changes triggers one regeneration
DEFAULT_DEBOUNCE_S = 0.15


@dataclass(frozen=True)
class Generation:
    """A fully resolved target for one (seed, config) pair."""

    seed: str
    config: GenerationConfig
    digest: Digest
    shape_dna: ShapeDNA
    color_dna: ColorDNA
    positions: np.ndarray
    colors: np.ndarray
    seeded_draws: int

    @property
    def archetype(self) -> shapes.Archetype:
        return shapes.select_archetype(self.shape_dna.archetype)

    def dna_dict(self) -> dict:
        return {
            "seed": self.seed,
            "archetype": self.archetype.value,
            "shape": self.shape_dna.to_dict(),
            "color": self.color_dna.to_dict(),
        }


def resolve_seed(seed_text: str | None) -> str:
    """Empty input means the literal "default" seed. Over-long input is rejected."""
    if not seed_text:
        return FALLBACK_SEED
    if seed_length(seed_text) > MAX_SEED_LENGTH:
        raise ConfigError(
            [f"seed text is {seed_length(seed_text)} characters (max {MAX_SEED_LENGTH})"]
        )
    return seed_text


def generate(
    seed_text: str | None,
    config: GenerationConfig,
    angle_rng: np.random.Generator | None = None,
) -> Generation:
    """Run one generation cycle.

    Args:
        seed_text: User seed; empty/None falls back to "default".
        config:    Generation config (validated here, before any allocation).
        angle_rng: Source for the per-particle surface angles. Defaults to an
                   unseeded generator; pass one only to pin placement.

    Raises:
        ConfigError: If the seed text or config violates a precondition.
    """
    seed = resolve_seed(seed_text)
    config.validated()
    if angle_rng is None:
        angle_rng = make_angle_rng()

    t0 = time.monotonic()

    seed_digest = digest(seed)
    rng = SeededRng.from_digest(seed_digest)
    shape_dna = draw_shape_dna(rng)
    color_dna = draw_color_dna(rng)

    count = config.particle_count
    angles = draw_angles(angle_rng, count)
    positions = shapes.synthesize(count, config.radius, shape_dna, rng, angles)
    colors = colorize(positions, config.radius, color_dna, angles[0])

    elapsed_ms = (time.monotonic() - t0) * 1000
    archetype = shapes.select_archetype(shape_dna.archetype)

    # Seed text stays out of logs and breadcrumbs (often a user's name)
    logger.info(
        "Generated %d particles: archetype=%s pattern=%d seed_len=%d in %.1fms",
        count,
        archetype.value,
        color_dna.pattern,
        len(seed),
        elapsed_ms,
    )
    if elapsed_ms > GENERATE_WARN_MS:
        logger.warning(
            "Generation took %.0fms (>%dms warn threshold) for %d particles",
            elapsed_ms,
            GENERATE_WARN_MS,
            count,
        )
        sentry_sdk.add_breadcrumb(
            category="generate",
            message=f"Slow generation ({elapsed_ms:.0f}ms)",
            data={"particle_count": count, "archetype": archetype.value},
            level="warning",
        )

    return Generation(
        seed=seed,
        config=config,
        digest=seed_digest,
        shape_dna=shape_dna,
        color_dna=color_dna,
        positions=positions.astype(np.float32),
        colors=colors,
        seeded_draws=rng.draws,
    )


class RegenerateDebouncer:
    """Collapses bursts of seed/config edits into one regenerate request.

    ``submit`` records the latest request; ``poll`` returns it once no newer
    request arrived for ``delay_s`` seconds, then clears it.
    """

    def __init__(self, delay_s: float = DEFAULT_DEBOUNCE_S):
        self.delay_s = delay_s
        self._pending: tuple[str, GenerationConfig] | None = None
        self._submitted_at = 0.0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def submit(self, seed_text: str, config: GenerationConfig, now: float):
        with self._lock:
            self._pending = (seed_text, config)
            self._submitted_at = now

    def poll(self, now: float) -> tuple[str, GenerationConfig] | None:
        with self._lock:
            if self._pending is None or now - self._submitted_at < self.delay_s:
                return None
            request, self._pending = self._pending, None
            return request


class ParticleEngine:
    """Live engine: a current generation, its animator and the regenerate command.

    The renderer calls ``frame()`` once per display frame; the UI calls
    ``request()`` on every edit.
    """

    def __init__(
        self,
        seed_text: str | None = None,
        config: GenerationConfig | None = None,
        *,
        clock: AnimationClock | None = None,
        angle_rng: np.random.Generator | None = None,
        debounce_s: float = DEFAULT_DEBOUNCE_S,
    ):
        self.config = (config or GenerationConfig()).validated()
        self.clock = clock or AnimationClock()
        self._angle_rng = angle_rng
        self.debouncer = RegenerateDebouncer(debounce_s)
        self.animator = MorphAnimator(self.config.particle_count, rng=angle_rng)
        self.generation: Generation | None = None
        self.regenerate(seed_text, self.config)

    def regenerate(self, seed_text: str | None, config: GenerationConfig) -> Generation:
        """Recompute the target synchronously and install it on the animator."""
        generation = generate(seed_text, config, self._angle_rng)
        self.animator.install_target(generation.positions, generation.colors)
        self.generation = generation
        self.config = config
        sentry_sdk.add_breadcrumb(
            category="generate",
            message="Target installed",
            data={
                "particle_count": config.particle_count,
                "archetype": generation.archetype.value,
            },
        )
        return generation

    def request(self, seed_text: str | None = None, **changes) -> None:
        """Queue a debounced regenerate with a new seed and/or config changes."""
        seed = resolve_seed(seed_text) if seed_text is not None else self.generation.seed
        config = self.config.replace(**changes).validated() if changes else self.config
        self.debouncer.submit(seed, config, self.clock.elapsed_s)

    def frame(self) -> tuple[np.ndarray, np.ndarray]:
        """Apply any settled request, tick once, return flat (positions, colors)."""
        elapsed = self.clock.elapsed_s
        request = self.debouncer.poll(elapsed)
        if request is not None:
            seed, config = request
            if self._needs_regenerate(seed, config):
                self.regenerate(seed, config)
            else:
                # Tick-only settings (noise, morph speed, display) apply live
                self.config = config

        self.animator.tick(elapsed, self.config.morph_speed, self.config.noise_strength)
        return self.animator.flat_buffers()

    def _needs_regenerate(self, seed: str, config: GenerationConfig) -> bool:
        current = self.generation
        if current is None:
            return True
        return (
            resolve_seed(seed) != current.seed
            or config.geometry_key() != current.config.geometry_key()
        )
