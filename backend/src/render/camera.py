"""Orbit camera — perspective projection of particle positions to pixels."""

import math
from dataclasses import dataclass

import numpy as np

# Orbit speed 1.0 = one full turn per 60 seconds (orbit-controls convention).
ORBIT_RAD_PER_S = 2 * math.pi / 60


@dataclass
class OrbitCamera:
    """Camera on a circle around the Y axis, always looking at the origin."""

    width: int
    height: int
    fov_deg: float = 75.0
    near: float = 0.1
    far: float = 100.0
    eye: tuple[float, float, float] = (0.0, 5.0, 12.0)
    rotation_speed: float = 1.0

    @property
    def aspect(self) -> float:
        return self.width / self.height

    def eye_at(self, elapsed_s: float) -> np.ndarray:
        """Eye position after auto-orbiting for elapsed_s seconds.

        Positive speed decreases the azimuth atan2(x, z), matching orbit-controls
        auto-rotate.
        """
        angle = -elapsed_s * self.rotation_speed * ORBIT_RAD_PER_S
        ex, ey, ez = self.eye
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        return np.array(
            [ex * cos_a + ez * sin_a, ey, -ex * sin_a + ez * cos_a], dtype=np.float64
        )

    def project(
        self, positions: np.ndarray, elapsed_s: float = 0.0
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Project (N, 3) world positions.

        Returns:
            (px, py, depth, visible): pixel coordinates (float), view depth,
            and a mask of points inside the frustum.
        """
        eye = self.eye_at(elapsed_s)
        forward = -eye / np.linalg.norm(eye)
        right = np.cross(forward, np.array([0.0, 1.0, 0.0]))
        right /= np.linalg.norm(right)
        up = np.cross(right, forward)

        rel = positions.astype(np.float64) - eye
        xc = rel @ right
        yc = rel @ up
        depth = rel @ forward

        focal = 1.0 / math.tan(math.radians(self.fov_deg) / 2)
        with np.errstate(divide="ignore", invalid="ignore"):
            ndc_x = focal * xc / (depth * self.aspect)
            ndc_y = focal * yc / depth
        px = (ndc_x + 1) * 0.5 * self.width
        py = (1 - ndc_y) * 0.5 * self.height

        visible = (
            np.isfinite(px)
            & np.isfinite(py)
            & (depth > self.near)
            & (depth < self.far)
            & (px >= 0)
            & (px < self.width)
            & (py >= 0)
            & (py < self.height)
        )
        return px, py, depth, visible

    def point_size_px(self, size: float, depth: np.ndarray) -> np.ndarray:
        """Attenuated sprite size in pixels (size scaled by half-height over depth)."""
        return size * (self.height / 2) / np.maximum(depth, self.near)
