"""
Base detector interface for container content detection.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


@dataclass
class Detection:
    """Single detection result."""
    label: str
    confidence: float
    bbox: Optional[Tuple[int, int, int, int]] = None  # (x1, y1, x2, y2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "confidence": self.confidence,
            "bbox": list(self.bbox) if self.bbox is not None else None,
        }


class BaseDetector(ABC):
    """
    Abstract base class for object-detection model backends.

    A backend is one loaded model variant; load/fallback policy lives in
    ``Detector``.
    """

    @abstractmethod
    def detect(self, frame: np.ndarray) -> List[Detection]:
        """
        Detect objects in a frame.

        Args:
            frame: BGR image (numpy array)

        Returns:
            List of Detection objects, in model order
        """
        pass

    @abstractmethod
    def cleanup(self):
        """Release model resources."""
        pass
