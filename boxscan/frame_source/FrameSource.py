"""
Abstract base class for camera frame sources.
"""

from abc import ABC, abstractmethod

import numpy as np


class FrameSource(ABC):
    """
    A live capture device stream.

    Opening happens in the constructor; ``release()`` must be safe to call
    more than once so every exit path can call it unconditionally.
    """

    @abstractmethod
    def snapshot(self) -> np.ndarray:
        """
        Grab the current frame as a still image.

        Returns:
            BGR image (numpy array)

        Raises:
            DeviceUnavailable: the device stopped delivering frames
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def release(self):
        """Release the device."""
        pass
