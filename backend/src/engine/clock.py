"""Animation clocks — elapsed seconds since animation start."""

import time
from typing import Callable


class AnimationClock:
    """Wall clock for live ticks. Jitter phase is derived from elapsed_s.

    The time source is injectable so tests can drive it deterministically.
    """

    def __init__(self, time_fn: Callable[[], float] = time.monotonic) -> None:
        self._time_fn = time_fn
        self._start = time_fn()

    def restart(self) -> None:
        self._start = self._time_fn()

    @property
    def elapsed_s(self) -> float:
        return self._time_fn() - self._start


class FixedStepClock:
    """Frame-locked clock for offline rendering: frame i is at i / fps seconds."""

    def __init__(self, fps: float = 30.0) -> None:
        self._fps = max(1.0, min(240.0, fps))
        self.frame_index = 0

    @property
    def fps(self) -> float:
        return self._fps

    @property
    def elapsed_s(self) -> float:
        return self.frame_index / self._fps

    def advance(self) -> float:
        """Step one frame forward and return the new elapsed time."""
        self.frame_index += 1
        return self.elapsed_s

    def total_frames(self, duration_s: float) -> int:
        return max(1, round(duration_s * self._fps))
