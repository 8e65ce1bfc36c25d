"""Morph animator — live particle buffers chasing the latest generated target.

Per tick, every coordinate moves a fixed fraction of the remaining distance
toward its target (exponential decay, so it never quite arrives), then an
optional time-based jitter is added on top. The jitter lands in the live
buffer, so the next blend starts from a jittered position; that partial
compounding is part of the animation's look and is kept as-is.
"""

import logging
import threading
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

COLOR_MORPH_SPEED = 0.03
JITTER_SCALE = 0.02
SCATTER_EXTENT = 20.0


class AnimatorState(Enum):
    IDLE = "idle"
    MORPHING = "morphing"


def scatter_positions(count: int, rng: np.random.Generator) -> np.ndarray:
    """Initial cloud for a fresh buffer: uniform in a 20-unit cube."""
    return ((rng.random((count, 3)) - 0.5) * SCATTER_EXTENT).astype(np.float32)


class MorphAnimator:
    """Owns the current and target position/color buffers.

    All public methods hold one lock, so a tick is never observed half-done
    and a target is never observed half-installed.
    """

    def __init__(self, particle_count: int, rng: np.random.Generator | None = None):
        if particle_count <= 0:
            raise ValueError(f"particle_count must be positive, got {particle_count}")
        self._lock = threading.Lock()
        self._rng = rng if rng is not None else np.random.default_rng()
        self.state = AnimatorState.IDLE
        self.tick_count = 0
        self._reset_current(particle_count)
        self._target_positions = self.positions.copy()
        self._target_colors = self.colors.copy()

    @property
    def particle_count(self) -> int:
        return len(self.positions)

    def _reset_current(self, count: int):
        self.positions = scatter_positions(count, self._rng)
        self.colors = np.ones((count, 3), dtype=np.float32)

    def install_target(self, positions: np.ndarray, colors: np.ndarray):
        """Replace the target wholesale. The current buffer is kept and morphs in.

        A target with a different particle count starts a fresh geometry:
        the current buffer is re-scattered to the new size.
        """
        positions = np.asarray(positions, dtype=np.float32)
        colors = np.asarray(colors, dtype=np.float32)
        if positions.shape != colors.shape or positions.ndim != 2 or positions.shape[1] != 3:
            raise ValueError(
                f"target shapes must be matching (N, 3), got "
                f"{positions.shape} and {colors.shape}"
            )

        with self._lock:
            if len(positions) != len(self.positions):
                logger.debug(
                    "Particle count %d -> %d, rescattering live buffer",
                    len(self.positions),
                    len(positions),
                )
                self._reset_current(len(positions))
            self._target_positions = positions.copy()
            self._target_colors = colors.copy()
            self.state = AnimatorState.MORPHING

    def tick(self, elapsed_s: float, morph_speed: float, noise_strength: float = 0.0):
        """Advance one frame.

        Args:
            elapsed_s:      Seconds since animation start (jitter phase).
            morph_speed:    Position blend factor in (0, 1].
            noise_strength: Jitter amplitude; 0 disables jitter.
        """
        with self._lock:
            pos = self.positions
            if morph_speed >= 1.0:
                np.copyto(pos, self._target_positions)
            else:
                pos += (self._target_positions - pos) * np.float32(morph_speed)

            self.colors += (self._target_colors - self.colors) * np.float32(
                COLOR_MORPH_SPEED
            )

            if noise_strength > 0:
                idx = np.arange(len(pos), dtype=np.float64)
                amp = noise_strength * JITTER_SCALE
                noise = (np.sin(elapsed_s * 2 + idx) * amp).astype(np.float32)
                noise2 = (np.cos(elapsed_s * 1.5 + idx * 0.5) * amp).astype(np.float32)
                pos[:, 0] += noise
                pos[:, 1] -= noise2
                pos[:, 2] += noise

            self.tick_count += 1

    def snapshot(self) -> tuple[np.ndarray, np.ndarray]:
        """Copies of the current (positions, colors) for a renderer."""
        with self._lock:
            return self.positions.copy(), self.colors.copy()

    def target(self) -> tuple[np.ndarray, np.ndarray]:
        with self._lock:
            return self._target_positions.copy(), self._target_colors.copy()

    def max_error(self) -> float:
        """Largest per-coordinate |target - current| over positions."""
        with self._lock:
            return float(np.max(np.abs(self._target_positions - self.positions)))

    def flat_buffers(self) -> tuple[np.ndarray, np.ndarray]:
        """Flat float32 arrays (3 per particle) in renderer layout."""
        positions, colors = self.snapshot()
        return positions.reshape(-1), colors.reshape(-1)
