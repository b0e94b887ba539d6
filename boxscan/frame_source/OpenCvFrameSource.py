"""
OpenCV-based camera source (webcam index, device path or stream URL).
"""

from typing import Union

import cv2
import numpy as np

from boxscan.errors import DeviceUnavailable
from boxscan.frame_source.FrameSource import FrameSource
from boxscan.utils.AppLogging import logger


class OpenCVFrameSource(FrameSource):
    """
    Camera stream opened on demand for a single snapshot.

    A few frames are read and dropped after opening so auto-exposure settles
    before the still image is taken.
    """

    def __init__(self, source: Union[int, str] = 0, warmup_frames: int = 5):
        """
        Args:
            source: Camera index, device path, or stream URL
            warmup_frames: Frames discarded before the first snapshot

        Raises:
            DeviceUnavailable: device missing, busy, or permission denied
        """
        self.source = source
        self.warmup_frames = warmup_frames
        self._warmed_up = False
        self.cap = cv2.VideoCapture(source)

        if not self.cap.isOpened():
            self.cap.release()
            raise DeviceUnavailable(f"Could not open camera: {source}")

        self.frame_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.frame_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(
            f"[OpenCVFrameSource] Camera opened: {source}, "
            f"Size: {self.frame_width}x{self.frame_height}"
        )

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def snapshot(self) -> np.ndarray:
        if not self.is_open:
            raise DeviceUnavailable(f"Camera {self.source} is not open")

        if not self._warmed_up:
            for _ in range(self.warmup_frames):
                self.cap.grab()
            self._warmed_up = True

        ret, frame = self.cap.read()
        if not ret or frame is None:
            raise DeviceUnavailable(f"Camera {self.source} returned no frame")
        return frame

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info(f"[OpenCVFrameSource] Camera released: {self.source}")
