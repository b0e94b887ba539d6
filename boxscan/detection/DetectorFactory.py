"""
Detector factory wiring model variants from configuration.
"""

from typing import Optional

from boxscan.config.settings import AppConfig, get_config
from boxscan.detection.BaseDetection import BaseDetector
from boxscan.detection.Detector import Detector
from boxscan.utils.AppLogging import logger


class DetectorFactory:
    """
    Factory for creating configured detectors.
    """

    @staticmethod
    def create(config: Optional[AppConfig] = None) -> Detector:
        """
        Create an (unloaded) Detector backed by Ultralytics models.

        Args:
            config: Application configuration (optional, global config by default)

        Returns:
            Detector; call ``load()`` before inference
        """
        if config is None:
            config = get_config()

        def load_variant(variant: str) -> BaseDetector:
            from boxscan.detection.UltralyticsDetector import UltralyticsDetector
            return UltralyticsDetector(
                model_path=variant,
                confidence_threshold=config.model_confidence_floor,
                device=config.model_device,
            )

        logger.info(
            f"[DetectorFactory] Creating detector: primary={config.primary_model} "
            f"fallback={config.fallback_model}"
        )
        return Detector(
            loader=load_variant,
            primary_variant=config.primary_model,
            fallback_variant=config.fallback_model,
        )
