"""
Error taxonomy for the inventory system.

Every failure the capture pipeline, detector or container store can report
derives from ``InventoryError`` so the CLI and HTTP boundaries can recover
from all of them in one place.
"""


class InventoryError(Exception):
    """Base class for all reportable inventory errors."""


class ModelUnavailable(InventoryError):
    """Detector has no loaded model (still loading, or both variants failed)."""


class InferenceError(InventoryError):
    """The model call failed, the image was unusable, or the detector is busy."""


class InvalidImage(InventoryError):
    """Uploaded image failed size/type checks or could not be decoded."""


class DeviceUnavailable(InventoryError):
    """Camera could not be opened or stopped delivering frames."""


class DuplicateId(InventoryError):
    """A container with the same id already exists in the store."""

    def __init__(self, container_id: str):
        super().__init__(f"Container with id '{container_id}' already exists")
        self.container_id = container_id


class NotFound(InventoryError):
    """Referenced container (or item position) does not exist."""


class ItemIndexError(NotFound):
    """Item index outside ``0 <= index < len(items)``."""


class InvalidInput(InventoryError):
    """User-supplied value is empty or otherwise unusable."""


class InvalidFormat(InventoryError):
    """Serialized collection is not a list of well-formed container records."""


class CorruptStorage(InvalidFormat):
    """Persisted collection could not be parsed at startup."""


class CaptureBusy(InventoryError):
    """A capture/analysis cycle is already in progress."""


class StorageError(InventoryError):
    """Durable storage rejected a write; the in-memory collection is unchanged."""
