"""
Capture pipeline: one end-to-end capture -> detect -> classify -> commit cycle.

State machine::

    IDLE -> CAPTURING -> DETECTING -> COMMITTED     -> IDLE
                                   -> NO_DETECTIONS -> IDLE
                      (any step)   -> FAILED        -> IDLE
    stop_camera() at any point     -> CANCELLED     -> IDLE

Only one cycle runs at a time. Device access, decoding and inference are
blocking calls, each awaited as a single step through ``asyncio.to_thread``.
The store commit runs on the loop so a cancel cannot land mid-commit.
An inference that is still running when the camera is stopped is allowed to
finish; its result is discarded and nothing is committed.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from boxscan.classifier.ItemClassifier import ThresholdProfile, to_items
from boxscan.config.settings import AppConfig, get_config
from boxscan.constants import CONTAINER_ID_DIGITS, CONTAINER_ID_PREFIX
from boxscan.detection.BaseDetection import Detection
from boxscan.detection.Detector import Detector
from boxscan.errors import CaptureBusy, DeviceUnavailable, DuplicateId, InventoryError, ModelUnavailable
from boxscan.frame_source.FrameSource import FrameSource
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.inventory.models import Container, Origin
from boxscan.capture.image_loader import decode_image, validate_upload
from boxscan.utils.AppLogging import logger

CameraFactory = Callable[[], FrameSource]


class CaptureState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    DETECTING = "detecting"
    COMMITTED = "committed"
    NO_DETECTIONS = "no_detections"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class CaptureResult:
    outcome: CaptureState
    container: Optional[Container] = None
    items: List[str] = field(default_factory=list)
    detections: List[Detection] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.outcome is CaptureState.COMMITTED:
            return (
                f"Container {self.container.id} created! "
                f"Detected {len(self.items)} items: {', '.join(self.items)}"
            )
        if self.outcome is CaptureState.NO_DETECTIONS:
            return "No objects detected with sufficient confidence."
        return "Capture cancelled."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "container": self.container.to_dict() if self.container else None,
            "items": list(self.items),
            "detections": [d.to_dict() for d in self.detections],
        }


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class ContainerIdGenerator:
    """
    ``BOX-<last 6 digits of epoch millis>`` ids.

    Never issues the same millisecond twice: a clock reading at or before the
    previous one is bumped past it, so a regenerated id always differs.
    """

    def __init__(self, clock_ms: Callable[[], int] = _epoch_millis):
        self._clock_ms = clock_ms
        self._last_ms: Optional[int] = None

    def next_id(self) -> str:
        ms = self._clock_ms()
        if self._last_ms is not None and ms <= self._last_ms:
            ms = self._last_ms + 1
        self._last_ms = ms
        return f"{CONTAINER_ID_PREFIX}{str(ms)[-CONTAINER_ID_DIGITS:]}"


class CapturePipeline:
    """
    Orchestrates camera/upload capture into new AI-generated containers.
    """

    def __init__(
        self,
        detector: Detector,
        store: ContainerStore,
        camera_factory: Optional[CameraFactory] = None,
        config: Optional[AppConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_generator: Optional[ContainerIdGenerator] = None,
    ):
        """
        Args:
            detector: Loaded (or loading) detector
            store: Container store new containers are committed to
            camera_factory: Opens the capture device; OpenCV camera by default
            config: Application configuration (global config by default)
            clock: Source of container creation times
            id_generator: Container id source (clock-derived by default)
        """
        self._detector = detector
        self._store = store
        self._config = config or get_config()
        self._camera_factory = camera_factory or self._open_default_camera
        self._clock = clock
        self._id_generator = id_generator or ContainerIdGenerator(
            lambda: int(self._clock().timestamp() * 1000)
        )

        self._state = CaptureState.IDLE
        self._stream: Optional[FrameSource] = None
        self._stream_busy = False
        self._cycle = 0
        self.last_outcome: Optional[CaptureState] = None

    def _open_default_camera(self) -> FrameSource:
        from boxscan.frame_source.OpenCvFrameSource import OpenCVFrameSource
        return OpenCVFrameSource(
            self._config.camera_source,
            warmup_frames=self._config.camera_warmup_frames,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_scanning(self) -> bool:
        """A camera stream is currently held."""
        return self._stream is not None

    @property
    def is_analyzing(self) -> bool:
        return self._state is CaptureState.DETECTING

    @property
    def ai_available(self) -> bool:
        return self._detector.is_available

    def status(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "is_scanning": self.is_scanning,
            "is_analyzing": self.is_analyzing,
            "ai_available": self.ai_available,
            "model_state": self._detector.state.value,
            "model_variant": self._detector.active_variant,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
        }

    def _begin(self) -> int:
        if self._state is not CaptureState.IDLE:
            raise CaptureBusy(f"A capture is already in progress (state={self._state.value})")
        self._cycle += 1
        self._state = CaptureState.CAPTURING
        return self._cycle

    def _finish(self, outcome: CaptureState, cycle: int):
        if cycle != self._cycle:
            return
        self.last_outcome = outcome
        self._state = CaptureState.IDLE
        logger.debug(f"[CapturePipeline] Cycle {cycle} finished: {outcome.value}")

    def _require_model(self):
        if not self._detector.is_available:
            raise ModelUnavailable("AI model is not available, use manual container entry")

    def _release_stream(self):
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.release()

    # ------------------------------------------------------------------
    # Camera path
    # ------------------------------------------------------------------

    async def start_camera(self) -> None:
        """
        Acquire the camera stream.

        Raises:
            CaptureBusy: another cycle is active
            ModelUnavailable: no detection model loaded
            DeviceUnavailable: camera missing or permission denied
        """
        cycle = self._begin()
        try:
            self._require_model()
            self._stream = await asyncio.to_thread(self._camera_factory)
        except InventoryError as e:
            logger.warning(f"[CapturePipeline] Camera start failed: {e}")
            self._finish(CaptureState.FAILED, cycle)
            raise
        except Exception as e:
            logger.error(f"[CapturePipeline] Camera error: {e}", exc_info=True)
            self._finish(CaptureState.FAILED, cycle)
            raise DeviceUnavailable(f"Camera not available: {e}") from e

        if cycle != self._cycle:
            # stopped while the device was opening
            self._release_stream()
            return
        logger.info("[CapturePipeline] Camera started")

    async def analyze_camera(self) -> CaptureResult:
        """
        Snapshot the live frame, release the camera, and detect.

        The stream is released on every path, including failures.
        """
        if self._state is CaptureState.DETECTING:
            raise CaptureBusy("Analysis already in progress")
        if self._state is not CaptureState.CAPTURING or self._stream is None:
            raise DeviceUnavailable("Camera is not started")

        cycle = self._cycle
        stream = self._stream
        self._state = CaptureState.DETECTING
        self._stream_busy = True
        try:
            image = await asyncio.to_thread(stream.snapshot)
        except InventoryError as e:
            logger.warning(f"[CapturePipeline] Snapshot failed: {e}")
            self._finish(CaptureState.FAILED, cycle)
            raise
        except Exception as e:
            logger.error(f"[CapturePipeline] Snapshot error: {e}", exc_info=True)
            self._finish(CaptureState.FAILED, cycle)
            raise DeviceUnavailable(f"Camera snapshot failed: {e}") from e
        finally:
            self._stream_busy = False
            if self._stream is stream:
                self._release_stream()
            else:
                stream.release()

        return await self._detect_and_commit(cycle, image, ThresholdProfile.CAMERA)

    async def capture_camera(self) -> CaptureResult:
        """Start the camera and analyze the first frame."""
        await self.start_camera()
        if self._state is not CaptureState.CAPTURING:
            return CaptureResult(outcome=CaptureState.CANCELLED)
        return await self.analyze_camera()

    def stop_camera(self) -> None:
        """
        Cancel: release the camera and return to IDLE without committing.

        An inference already running completes in the background and its
        result is discarded.
        """
        was_active = self._state is not CaptureState.IDLE
        self._cycle += 1
        if not self._stream_busy:
            self._release_stream()
        if was_active:
            self.last_outcome = CaptureState.CANCELLED
            self._state = CaptureState.IDLE
            logger.info("[CapturePipeline] Capture cancelled")

    # ------------------------------------------------------------------
    # Upload path
    # ------------------------------------------------------------------

    async def analyze_upload(self, data: bytes, content_type: Optional[str]) -> CaptureResult:
        """
        Validate, fully decode and analyze an uploaded photograph.

        Raises:
            CaptureBusy, ModelUnavailable, InvalidImage, InferenceError, DuplicateId,
            StorageError
        """
        cycle = self._begin()
        try:
            self._require_model()
            validate_upload(data, content_type, max_bytes=self._config.max_upload_bytes)
            image = await asyncio.to_thread(decode_image, data)
        except Exception as e:
            logger.warning(f"[CapturePipeline] Upload rejected: {e}")
            self._finish(CaptureState.FAILED, cycle)
            raise

        if cycle != self._cycle:
            return CaptureResult(outcome=CaptureState.CANCELLED)
        self._state = CaptureState.DETECTING
        return await self._detect_and_commit(cycle, image, ThresholdProfile.UPLOAD)

    # ------------------------------------------------------------------
    # Shared tail
    # ------------------------------------------------------------------

    async def _detect_and_commit(
        self, cycle: int, image: np.ndarray, profile: ThresholdProfile
    ) -> CaptureResult:
        if cycle != self._cycle:
            return CaptureResult(outcome=CaptureState.CANCELLED)

        try:
            detections = await asyncio.to_thread(self._detector.infer, image)
        except Exception as e:
            if cycle != self._cycle:
                logger.info(f"[CapturePipeline] Discarding failed inference from cancelled cycle: {e}")
                return CaptureResult(outcome=CaptureState.CANCELLED)
            logger.warning(f"[CapturePipeline] Detection failed: {e}")
            self._finish(CaptureState.FAILED, cycle)
            raise

        if cycle != self._cycle:
            logger.info(f"[CapturePipeline] Discarding {len(detections)} detections from cancelled cycle")
            return CaptureResult(outcome=CaptureState.CANCELLED)

        result = to_items(detections, profile)
        if result.is_empty:
            logger.info(
                f"[CapturePipeline] No detections above {profile.min_confidence:.0%} "
                f"({len(detections)} raw)"
            )
            self._finish(CaptureState.NO_DETECTIONS, cycle)
            return CaptureResult(outcome=CaptureState.NO_DETECTIONS)

        try:
            container = self._commit(result.items)
        except Exception as e:
            logger.error(f"[CapturePipeline] Commit failed: {e}")
            self._finish(CaptureState.FAILED, cycle)
            raise

        self._finish(CaptureState.COMMITTED, cycle)
        return CaptureResult(
            outcome=CaptureState.COMMITTED,
            container=container,
            items=result.items,
            detections=result.accepted,
        )

    def _commit(self, items: List[str]) -> Container:
        """Add a new AI container, regenerating the id once on collision."""
        created_at = self._clock()
        collision: Optional[DuplicateId] = None
        for _ in range(2):
            container = Container(
                id=self._id_generator.next_id(),
                items=list(items),
                created_at=created_at,
                origin=Origin.AI_GENERATED,
            )
            try:
                return self._store.add(container)
            except DuplicateId as e:
                logger.warning(f"[CapturePipeline] Container id collision on {container.id}")
                collision = e
        raise collision
