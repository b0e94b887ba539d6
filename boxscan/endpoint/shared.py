"""
Shared resources for the endpoint module.

Singletons for the key-value database, container store, detector and capture
pipeline. Each is created lazily on first access; tests may install their own
instances with ``set_shared_resources`` before the app starts.
"""

import asyncio
from typing import Optional

from boxscan.capture.CapturePipeline import CapturePipeline
from boxscan.config.settings import get_config
from boxscan.detection.Detector import Detector, DetectorState
from boxscan.detection.DetectorFactory import DetectorFactory
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.storage.Database import DatabaseManager
from boxscan.utils.AppLogging import logger


_db: Optional[DatabaseManager] = None
_store: Optional[ContainerStore] = None
_detector: Optional[Detector] = None
_pipeline: Optional[CapturePipeline] = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        db_path = get_config().db_path
        _db = DatabaseManager(db_path)
        logger.info(f"[Shared] Database initialized: {db_path}")
    return _db


def get_store() -> ContainerStore:
    global _store
    if _store is None:
        _store = ContainerStore(get_db(), recover_corrupt=get_config().recover_corrupt_storage)
    return _store


def get_detector() -> Detector:
    global _detector
    if _detector is None:
        _detector = DetectorFactory.create(get_config())
    return _detector


def get_pipeline() -> CapturePipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = CapturePipeline(get_detector(), get_store(), config=get_config())
    return _pipeline


def set_shared_resources(
    db: Optional[DatabaseManager] = None,
    store: Optional[ContainerStore] = None,
    detector: Optional[Detector] = None,
    pipeline: Optional[CapturePipeline] = None,
) -> None:
    """Install pre-built resources (used by tests and embedding callers)."""
    global _db, _store, _detector, _pipeline
    if db is not None:
        _db = db
    if store is not None:
        _store = store
    if detector is not None:
        _detector = detector
    if pipeline is not None:
        _pipeline = pipeline


async def init_shared_resources() -> None:
    """
    Initialize shared resources on application startup.

    The model loads in a worker thread without blocking startup; until it
    finishes the capture status reports ``loading`` and only manual entry
    is available.
    """
    try:
        get_store()
        detector = get_detector()
        get_pipeline()
    except Exception as e:
        logger.error(f"[Shared] Failed to initialize resources: {e}")
        raise

    if detector.state is DetectorState.UNLOADED:
        asyncio.get_running_loop().run_in_executor(None, detector.load)
    logger.info("[Shared] All shared resources initialized")


def cleanup_shared_resources() -> None:
    """Release the camera, model and database on shutdown."""
    global _db, _store, _detector, _pipeline

    if _pipeline is not None:
        _pipeline.stop_camera()
        _pipeline = None

    if _detector is not None:
        _detector.cleanup()
        _detector = None

    _store = None

    if _db is not None:
        _db.close()
        _db = None
        logger.info("[Shared] Database connection closed")

    logger.info("[Shared] Shared resources cleaned up")
