"""
Detector: owns the model load/fallback policy and the single inference entry point.

State machine::

    UNLOADED -> LOADING -> READY
                        -> UNAVAILABLE

READY and UNAVAILABLE are terminal. Loading tries the primary variant once,
then the fallback variant once; there is no retry loop.
"""

import threading
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from boxscan.detection.BaseDetection import BaseDetector, Detection
from boxscan.errors import InferenceError, ModelUnavailable
from boxscan.utils.AppLogging import logger

ModelLoader = Callable[[str], BaseDetector]


class DetectorState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class Detector:
    """
    Wraps an opaque object-detection capability.

    Inference is not reentrant: a call made while another is outstanding on
    the same instance fails instead of queueing.
    """

    def __init__(self, loader: ModelLoader, primary_variant: str, fallback_variant: str):
        """
        Args:
            loader: Builds a backend for a variant name; raises on failure
            primary_variant: Higher-accuracy model variant, tried first
            fallback_variant: Lighter variant, tried once if the primary fails
        """
        self._loader = loader
        self.primary_variant = primary_variant
        self.fallback_variant = fallback_variant

        self._state = DetectorState.UNLOADED
        self._state_lock = threading.Lock()
        self._infer_lock = threading.Lock()
        self._model: Optional[BaseDetector] = None
        self.active_variant: Optional[str] = None
        self.load_errors: List[str] = []

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def is_available(self) -> bool:
        """True once a model is loaded; AI capture affordances depend on this."""
        return self._state is DetectorState.READY

    def load(self) -> DetectorState:
        """
        One-shot startup load: primary variant, then exactly one fallback.

        Returns the terminal state. Calling again after a terminal state (or
        while another thread is loading) does not reload.
        """
        with self._state_lock:
            if self._state is not DetectorState.UNLOADED:
                return self._state
            self._state = DetectorState.LOADING

        model = self._try_load(self.primary_variant)
        if model is None:
            logger.warning(f"[Detector] Retrying with fallback model: {self.fallback_variant}")
            model = self._try_load(self.fallback_variant)

        with self._state_lock:
            if model is None:
                self._state = DetectorState.UNAVAILABLE
                logger.error("[Detector] No model could be loaded, AI capture disabled (manual mode only)")
            else:
                self._model = model
                self._state = DetectorState.READY
        return self._state

    def _try_load(self, variant: str) -> Optional[BaseDetector]:
        try:
            model = self._loader(variant)
        except Exception as e:
            self.load_errors.append(f"{variant}: {e}")
            logger.error(f"[Detector] Failed to load model '{variant}': {e}")
            return None
        self.active_variant = variant
        logger.info(f"[Detector] Model '{variant}' loaded")
        return model

    def infer(self, image: np.ndarray) -> List[Detection]:
        """
        Run the model on a decoded image.

        Returns:
            Detections in the order the model produced them

        Raises:
            ModelUnavailable: load() has not succeeded
            InferenceError: empty/zero-dimension image, concurrent call, or
                the backend raised
        """
        if self._state is not DetectorState.READY:
            raise ModelUnavailable(f"Detection model is not ready (state={self._state.value})")

        if not isinstance(image, np.ndarray) or image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
            raise InferenceError("Image has no pixels to analyze")

        if not self._infer_lock.acquire(blocking=False):
            raise InferenceError("Detector is busy with a previous inference")
        try:
            detections = list(self._model.detect(image))
        except Exception as e:
            logger.error(f"[Detector] Inference failed: {e}", exc_info=True)
            raise InferenceError(f"Inference failed: {e}") from e
        finally:
            self._infer_lock.release()

        logger.debug(f"[Detector] {len(detections)} raw detections")
        return detections

    def cleanup(self):
        """Release the loaded model. The detector stays in its terminal state."""
        if self._model is not None:
            self._model.cleanup()
            self._model = None
