"""
Object detection: model backends and the load/fallback-owning Detector.
"""

from boxscan.detection.BaseDetection import BaseDetector, Detection
from boxscan.detection.Detector import Detector, DetectorState

__all__ = ['BaseDetector', 'Detection', 'Detector', 'DetectorState']
