"""Streaming PyAV encoder for rendered particle frames."""

import os

import av
import numpy as np

# WebM only carries VP8/VP9/AV1; everything else gets H.264
CODEC_BY_EXTENSION = {".webm": "libvpx-vp9"}
DEFAULT_CODEC = "libx264"


class VideoWriter:
    """Encodes RGB(A) uint8 frames one at a time into a yuv420p video.

    Usable as a context manager; close() flushes the encoder and is safe to
    call more than once.
    """

    def __init__(self, path: str, width: int, height: int, fps: int = 30, codec: str | None = None):
        if width % 2 or height % 2:
            raise ValueError(f"yuv420p needs an even frame size, got {width}x{height}")
        self.width, self.height = width, height
        self.frame_count = 0
        self._closed = False

        ext = os.path.splitext(path)[1].lower()
        self.codec = codec or CODEC_BY_EXTENSION.get(ext, DEFAULT_CODEC)
        self.container = av.open(path, mode="w")
        self.stream = self.container.add_stream(self.codec, rate=fps)
        self.stream.width, self.stream.height = width, height
        self.stream.pix_fmt = "yuv420p"

    def _mux(self, frame: av.VideoFrame | None):
        for packet in self.stream.encode(frame):
            self.container.mux(packet)

    def write_frame(self, frame: np.ndarray):
        if frame.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"frame {frame.shape[1]}x{frame.shape[0]} does not match writer "
                f"{self.width}x{self.height}"
            )
        rgb = np.ascontiguousarray(frame[..., :3])
        self._mux(av.VideoFrame.from_ndarray(rgb, format="rgb24"))
        self.frame_count += 1

    def close(self):
        if not self._closed:
            self._closed = True
            self._mux(None)
            self.container.close()

    def __enter__(self) -> "VideoWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
