"""Point-cloud rasterizer — additive soft sprites with exponential fog.

CPU renderer for previews and video export.
Splats each visible particle into a float accumulator, then softens the
splats with a Gaussian sized from the median sprite size.
"""

import cv2
import numpy as np

from render.camera import OrbitCamera

FOG_COLOR = np.array([5, 5, 5], dtype=np.float32) / 255.0
FOG_DENSITY = 0.035
SPRITE_OPACITY = 0.8

# Below this sigma the blur is skipped (sprites are ~1px anyway)
MIN_BLUR_SIGMA = 0.35


def fog_factor(depth: np.ndarray, density: float = FOG_DENSITY) -> np.ndarray:
    """Exponential-squared fog amount in [0, 1]."""
    return 1.0 - np.exp(-((density * depth) ** 2))


class PointRasterizer:
    def __init__(self, camera: OrbitCamera, particle_size: float = 0.05):
        self.camera = camera
        self.particle_size = particle_size

    def render(
        self, positions: np.ndarray, colors: np.ndarray, elapsed_s: float = 0.0
    ) -> np.ndarray:
        """Render one RGBA uint8 frame (H, W, 4)."""
        cam = self.camera
        h, w = cam.height, cam.width
        acc = np.zeros((h, w, 3), dtype=np.float32)

        px, py, depth, visible = cam.project(positions, elapsed_s)
        if np.any(visible):
            xs = px[visible].astype(np.int64)
            ys = py[visible].astype(np.int64)
            d = depth[visible]
            col = np.clip(colors[visible], 0.0, 1.0).astype(np.float32)

            f = fog_factor(d).astype(np.float32)[:, np.newaxis]
            col = (col * (1 - f) + FOG_COLOR * f) * SPRITE_OPACITY

            np.add.at(acc, (ys, xs), col)

            sigma = float(np.median(cam.point_size_px(self.particle_size, d))) / 2
            if sigma >= MIN_BLUR_SIGMA:
                acc = cv2.GaussianBlur(acc, (0, 0), sigmaX=sigma, sigmaY=sigma)
                # Keep a lone sprite's peak near its own color
                acc *= 2 * np.pi * sigma * sigma

        rgb = np.clip(acc + FOG_COLOR, 0.0, 1.0)
        frame = np.empty((h, w, 4), dtype=np.uint8)
        frame[:, :, :3] = (rgb * 255 + 0.5).astype(np.uint8)
        frame[:, :, 3] = 255
        return frame
