"""Background video export: warm up a private animator, then record frame-locked.

Nothing here touches the live engine's buffers. The export regenerates the
seed, runs its own MorphAnimator on a FixedStepClock and streams rasterized
frames into a VideoWriter on a daemon thread.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum

import sentry_sdk

from engine.animator import MorphAnimator
from engine.clock import FixedStepClock
from engine.config import GenerationConfig
from engine.generator import Generation, generate
from render.camera import OrbitCamera
from render.rasterizer import PointRasterizer
from video.writer import VideoWriter

logger = logging.getLogger(__name__)

DEFAULT_DURATION_S = 10.0
DEFAULT_FPS = 30
DEFAULT_SIZE = (1280, 720)
DEFAULT_WARMUP_FRAMES = 120


class ExportStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


class ExportCancelled(Exception):
    pass


@dataclass
class ExportJob:
    output_path: str = ""
    total_frames: int = 0
    current_frame: int = 0
    status: ExportStatus = ExportStatus.IDLE
    error: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    @property
    def progress(self) -> float:
        return self.current_frame / self.total_frames if self.total_frames else 0.0

    @property
    def running(self) -> bool:
        return self.status is ExportStatus.RUNNING

    def cancel(self):
        self._stop.set()

    def wait(self, timeout: float | None = None) -> bool:
        """True once the worker has exited (or never started)."""
        if self._worker is not None:
            self._worker.join(timeout)
            return not self._worker.is_alive()
        return True

    def _recorded(self, frame: int):
        with self._lock:
            self.current_frame = frame

    def _finish(self, status: ExportStatus, error: str | None = None):
        with self._lock:
            self.status = status
            self.error = error

    def as_dict(self) -> dict:
        with self._lock:
            return {
                "status": self.status.value,
                "progress": round(self.progress, 4),
                "current_frame": self.current_frame,
                "total_frames": self.total_frames,
                "output_path": self.output_path,
                "error": self.error,
            }


def default_output_name(seed_text: str, ext: str = ".mp4") -> str:
    """<seed>-<unix ms><ext>, the browser download naming."""
    return f"{seed_text}-{time.time_ns() // 1_000_000}{ext}"


def _warm_up(generation: Generation, fps: float, ticks: int) -> MorphAnimator:
    config = generation.config
    animator = MorphAnimator(config.particle_count)
    animator.install_target(generation.positions, generation.colors)
    for tick in range(ticks):
        animator.tick(tick / fps, config.morph_speed, config.noise_strength)
    return animator


def _record(job: ExportJob, generation: Generation, clock: FixedStepClock, size, warmup: int):
    config = generation.config
    width, height = size
    animator = _warm_up(generation, clock.fps, warmup)
    rasterizer = PointRasterizer(
        OrbitCamera(width, height, rotation_speed=config.rotation_speed),
        config.particle_size,
    )
    with VideoWriter(job.output_path, width, height, fps=int(clock.fps)) as writer:
        while clock.frame_index < job.total_frames:
            if job._stop.is_set():
                raise ExportCancelled(clock.frame_index)
            # jitter phase picks up where the warmup left off
            animator.tick(
                (warmup + clock.frame_index) / clock.fps,
                config.morph_speed,
                config.noise_strength,
            )
            writer.write_frame(rasterizer.render(*animator.snapshot(), clock.elapsed_s))
            clock.advance()
            job._recorded(clock.frame_index)


def _report_failure(job: ExportJob, generation: Generation, exc: Exception):
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("stage", "export")
        scope.fingerprint = ["export-crash", type(exc).__name__]
        scope.set_context(
            "export",
            {
                "particle_count": generation.config.particle_count,
                "frame": job.current_frame,
                "total_frames": job.total_frames,
            },
        )
        sentry_sdk.capture_exception(exc, scope=scope)
    logger.exception("Export of %d frames failed", job.total_frames)


class ExportManager:
    """Runs at most one ExportJob at a time."""

    def __init__(self):
        self._job: ExportJob | None = None

    @property
    def job(self) -> ExportJob | None:
        return self._job

    def start(
        self,
        seed_text: str,
        config: GenerationConfig,
        output_path: str,
        *,
        duration_s: float = DEFAULT_DURATION_S,
        fps: int = DEFAULT_FPS,
        size: tuple[int, int] = DEFAULT_SIZE,
        warmup_frames: int = DEFAULT_WARMUP_FRAMES,
    ) -> ExportJob:
        """Generate synchronously, then record on a worker thread.

        Seed and config problems raise ConfigError here rather than failing
        the job. RuntimeError if a job is still running.
        """
        if self._job is not None and self._job.running:
            raise RuntimeError("Export already in progress")

        generation = generate(seed_text, config)
        clock = FixedStepClock(fps)
        job = ExportJob(output_path=output_path, total_frames=clock.total_frames(duration_s))
        job.status = ExportStatus.RUNNING
        job._worker = threading.Thread(
            target=self._work,
            args=(job, generation, clock, size, warmup_frames),
            name="seedform-export",
            daemon=True,
        )
        self._job = job
        job._worker.start()
        return job

    @staticmethod
    def _work(job, generation, clock, size, warmup_frames):
        try:
            _record(job, generation, clock, size, warmup_frames)
        except ExportCancelled as stop:
            logger.info("Export cancelled after %s frames", stop.args[0])
            job._finish(ExportStatus.CANCELLED)
        except Exception as e:
            _report_failure(job, generation, e)
            job._finish(ExportStatus.ERROR, f"Export failed: {type(e).__name__}")
        else:
            logger.info("Export complete: %d frames -> %s", job.total_frames, job.output_path)
            job._finish(ExportStatus.COMPLETE)

    def get_status(self) -> dict:
        if self._job is None:
            return {"status": ExportStatus.IDLE.value, "progress": 0.0, "current_frame": 0, "total_frames": 0}
        return self._job.as_dict()

    def cancel(self) -> bool:
        """Signal the running job to stop. False when nothing is running."""
        job = self._job
        if job is None or not job.running:
            return False
        job.cancel()
        return True
