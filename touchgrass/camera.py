"""
Webcam frame source.
"""
import asyncio
import logging
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig

logger = logging.getLogger(__name__)


class Camera:
    """Thin wrapper around OpenCV VideoCapture."""

    def __init__(self, cfg: CameraConfig):
        self.cfg = cfg
        self.cap = cv2.VideoCapture(cfg.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        self.cap.set(cv2.CAP_PROP_FPS, cfg.fps)

        if not self.cap.isOpened():
            self.cap.release()
            raise RuntimeError(f"Failed to open camera {cfg.index}")

        self.frame_interval = 1.0 / cfg.fps if cfg.fps > 0 else 1.0 / 30
        self._first_frame: Optional[np.ndarray] = None

    async def wait_ready(self, poll_s: float = 0.05, timeout_s: float = 10.0) -> None:
        """Wait until the camera delivers its first frame."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_s
        while True:
            ok, frame = self.cap.read()
            if ok:
                self._first_frame = frame
                logger.info("📷 Camera %d ready (%dx%d)", self.cfg.index, frame.shape[1], frame.shape[0])
                return
            if loop.time() > deadline:
                raise RuntimeError(f"Camera {self.cfg.index} produced no frames")
            await asyncio.sleep(poll_s)

    def read(self) -> Optional[np.ndarray]:
        if self._first_frame is not None:
            frame, self._first_frame = self._first_frame, None
            return frame
        ok, frame = self.cap.read()
        if not ok:
            logger.debug("Failed to read frame from camera")
            return None
        return frame

    def release(self) -> None:
        if self.cap.isOpened():
            self.cap.release()


async def setup_camera(cfg: CameraConfig) -> Camera:
    """Open the camera and wait for the first frame."""
    camera = Camera(cfg)
    await camera.wait_ready()
    return camera
