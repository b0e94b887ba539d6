"""
Ultralytics YOLO model backend.
"""

import logging
from typing import List, Optional

import numpy as np

from boxscan.detection.BaseDetection import BaseDetector, Detection
from boxscan.utils.AppLogging import logger


class UltralyticsDetector(BaseDetector):
    """
    Ultralytics YOLO detector over a general-purpose (COCO) checkpoint.

    Model names such as ``yolov8n.pt`` are fetched by Ultralytics on first use.
    """

    def __init__(
        self,
        model_path: str,
        confidence_threshold: float = 0.1,
        device: Optional[str] = None,
    ):
        """
        Args:
            model_path: Path or name of the .pt checkpoint
            confidence_threshold: Backend confidence floor; source-specific
                thresholds are applied later by the classifier
            device: 'cpu', 'cuda', ... (None = auto)
        """
        from ultralytics import YOLO

        self.model_path = model_path
        self.confidence_threshold = confidence_threshold

        logger.info(f"[UltralyticsDetector] Loading model: {model_path}")
        self.model = YOLO(model_path)

        if device:
            self.device = device
        else:
            import torch
            self.device = 'cuda' if torch.cuda.is_available() else 'cpu'

        logging.getLogger('ultralytics').setLevel(logging.WARNING)
        logger.info(f"[UltralyticsDetector] Model loaded, device: {self.device}")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self.model(
            frame,
            conf=self.confidence_threshold,
            device=self.device,
            verbose=False
        )

        detections = []
        for result in results:
            boxes = result.boxes
            if boxes is None:
                continue

            for i in range(len(boxes)):
                x1, y1, x2, y2 = map(int, boxes.xyxy[i].cpu().numpy())
                confidence = float(boxes.conf[i].cpu().numpy())
                class_id = int(boxes.cls[i].cpu().numpy())
                label = self.model.names.get(class_id, str(class_id))

                detections.append(Detection(
                    label=label,
                    confidence=confidence,
                    bbox=(x1, y1, x2, y2),
                ))

        return detections

    def cleanup(self):
        self.model = None
        logger.info("[UltralyticsDetector] Cleanup complete")
