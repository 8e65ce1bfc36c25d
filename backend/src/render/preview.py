"""Still previews — render one frame of a generation to PNG via Pillow."""

import numpy as np
from PIL import Image

from engine.animator import MorphAnimator
from engine.generator import Generation
from render.camera import OrbitCamera
from render.rasterizer import PointRasterizer


def render_still(
    generation: Generation,
    width: int = 640,
    height: int = 480,
    settle_ticks: int = 0,
) -> np.ndarray:
    """Render a generation as RGBA.

    settle_ticks=0 draws the target directly; otherwise the animator is run
    from its scattered start for that many ticks first.
    """
    config = generation.config
    if settle_ticks > 0:
        animator = MorphAnimator(config.particle_count)
        animator.install_target(generation.positions, generation.colors)
        for i in range(settle_ticks):
            animator.tick(i / 60, config.morph_speed, config.noise_strength)
        positions, colors = animator.snapshot()
    else:
        positions, colors = generation.positions, generation.colors

    camera = OrbitCamera(width, height, rotation_speed=config.rotation_speed)
    return PointRasterizer(camera, config.particle_size).render(positions, colors)


def save_png(frame: np.ndarray, path: str) -> None:
    """Write an RGBA frame to PNG (alpha dropped)."""
    Image.fromarray(frame[:, :, :3]).save(path, format="PNG")
