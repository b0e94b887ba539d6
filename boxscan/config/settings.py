"""
Application settings for the BoxScan inventory system.

Environment-driven defaults for storage, model variants and the capture
device, plus a lazily-created global instance.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from boxscan.constants import MAX_UPLOAD_BYTES


def _parse_bool_env(key: str, default: bool) -> bool:
    """Parse boolean environment variable."""
    val = os.getenv(key, str(default)).lower()
    return val in ('true', '1', 'yes', 'on')


def _parse_source(value: str) -> Union[int, str]:
    """Camera index when numeric, otherwise a device path / stream URL."""
    return int(value) if value.isdigit() else value


@dataclass
class AppConfig:
    """
    Application configuration for the BoxScan inventory system.
    """

    APP_VERSION: str = "1.0.0"

    # Durable key-value storage
    db_path: str = field(default_factory=lambda: os.getenv("DB_PATH", "data/db/inventory.db"))

    # Model variants: higher-accuracy primary, lighter fallback
    primary_model: str = field(default_factory=lambda: os.getenv("PRIMARY_MODEL", "yolov8s.pt"))
    fallback_model: str = field(default_factory=lambda: os.getenv("FALLBACK_MODEL", "yolov8n.pt"))
    model_device: Optional[str] = field(default_factory=lambda: os.getenv("MODEL_DEVICE") or None)

    # Backend confidence floor; per-source thresholds are applied by the classifier
    model_confidence_floor: float = field(
        default_factory=lambda: float(os.getenv("MODEL_CONFIDENCE_FLOOR", "0.1"))
    )

    # Capture device
    camera_source: Union[int, str] = field(
        default_factory=lambda: _parse_source(os.getenv("CAMERA_SOURCE", "0"))
    )
    camera_warmup_frames: int = field(
        default_factory=lambda: int(os.getenv("CAMERA_WARMUP_FRAMES", "5"))
    )

    max_upload_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES)))
    )

    # Seed defaults over an unreadable persisted collection instead of failing
    recover_corrupt_storage: bool = field(
        default_factory=lambda: _parse_bool_env("BOXSCAN_RECOVER_CORRUPT", False)
    )

    def get_model_variants(self) -> Dict[str, Any]:
        """Return model variant info for logging / health output."""
        return {
            "primary": self.primary_model,
            "fallback": self.fallback_model,
            "device": self.model_device or "auto",
        }

    def log_configuration(self):
        """Log current configuration."""
        from boxscan.utils.AppLogging import logger
        logger.info(f"[Config] App Version: {self.APP_VERSION}")
        logger.info(f"[Config] Database: {self.db_path}")
        logger.info(f"[Config] Models: primary={self.primary_model} fallback={self.fallback_model}")
        logger.info(f"[Config] Camera source: {self.camera_source}")


# ============================================================================
# Global Configuration Instance
# ============================================================================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration instance (singleton).

    Lazy initialization on first access.
    """
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def update_config(**kwargs) -> None:
    """
    Update configuration values.

    Example:
        update_config(db_path="/tmp/inventory.db", camera_source=1)

    Raises:
        AttributeError: If invalid configuration key provided
    """
    config = get_config()
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(f"Invalid configuration key: {key}")
        setattr(config, key, value)


def reset_config() -> None:
    """Reset configuration to defaults (re-reads the environment)."""
    global _config
    _config = AppConfig()
