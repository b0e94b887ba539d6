"""
Centralized logging configuration for the BoxScan inventory system.

- Size-based rotation of the main log, rotated files gzip-compressed
- Separate WARNING+ log for quick triage of capture/model/storage failures
- Age-based cleanup of rotated logs on startup
- Console output for interactive CLI / server use

Every component logs through the shared ``logger`` with a ``[Component]``
prefix so grep by component works across both log files.
"""

import gzip
import logging
import logging.handlers
import os
import shutil
import sys
import time
from pathlib import Path

# ============================================================================
# Logging Configuration Constants
# ============================================================================

LOG_DIR: str = os.getenv("LOG_DIR", "data/logs")

LOG_RETENTION_DAYS: int = 7

LOG_MAX_BYTES: int = 5 * 1024 * 1024
LOG_BACKUP_COUNT: int = 5

ERROR_LOG_MAX_BYTES: int = 2 * 1024 * 1024
ERROR_LOG_BACKUP_COUNT: int = 3

LOG_BASENAME = "boxscan"

_DETAILED_FMT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
_CONSOLE_FMT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DETAILED_DATEFMT = "%Y-%m-%d %H:%M:%S"
_CONSOLE_DATEFMT = "%H:%M:%S"


def _namer(name: str) -> str:
    """Append .gz to rotated log filenames so they compress on rotation."""
    return name + ".gz"


def _rotator(source: str, dest: str) -> None:
    """Compress rotated log file with gzip, plain rename if that fails."""
    try:
        with open(source, "rb") as f_in:
            with gzip.open(dest, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)  # type: ignore[arg-type]
        os.remove(source)
    except OSError:
        os.replace(source, dest)


# ============================================================================
# Setup
# ============================================================================

def setup_logging(
    log_dir: str = LOG_DIR,
    log_max_bytes: int = LOG_MAX_BYTES,
    log_backup_count: int = LOG_BACKUP_COUNT,
    error_log_max_bytes: int = ERROR_LOG_MAX_BYTES,
    error_log_backup_count: int = ERROR_LOG_BACKUP_COUNT,
    retention_days: int = LOG_RETENTION_DAYS,
    console_level: int = logging.INFO,
) -> logging.Logger:
    """
    Setup application logging.

    Args:
        log_dir: Directory for log files.
        log_max_bytes: Max bytes per main log file before rotation.
        log_backup_count: Number of rotated main-log backups to keep.
        error_log_max_bytes: Max bytes per error log file before rotation.
        error_log_backup_count: Number of rotated error-log backups to keep.
        retention_days: Days to keep old (rotated) log files.
        console_level: Minimum level for console output.

    Returns:
        Configured application logger.
    """
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs(log_dir, retention_days=retention_days)

    app_logger = logging.getLogger("BoxScanInventory")
    app_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on re-import / hot-reload
    if app_logger.handlers:
        return app_logger

    detailed_formatter = logging.Formatter(_DETAILED_FMT, datefmt=_DETAILED_DATEFMT)
    console_formatter = logging.Formatter(_CONSOLE_FMT, datefmt=_CONSOLE_DATEFMT)

    # --- 1. Rotating main log (DEBUG+) ---
    main_log_path = os.path.join(log_dir, f"{LOG_BASENAME}.log")
    main_handler = logging.handlers.RotatingFileHandler(
        main_log_path,
        maxBytes=log_max_bytes,
        backupCount=log_backup_count,
        encoding="utf-8",
    )
    main_handler.setLevel(logging.DEBUG)
    main_handler.setFormatter(detailed_formatter)
    main_handler.namer = _namer
    main_handler.rotator = _rotator
    app_logger.addHandler(main_handler)

    # --- 2. Rotating error log (WARNING+) ---
    error_log_path = os.path.join(log_dir, f"{LOG_BASENAME}_error.log")
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_path,
        maxBytes=error_log_max_bytes,
        backupCount=error_log_backup_count,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.WARNING)
    error_handler.setFormatter(detailed_formatter)
    error_handler.namer = _namer
    error_handler.rotator = _rotator
    app_logger.addHandler(error_handler)

    # --- 3. Console handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    app_logger.addHandler(console_handler)

    app_logger.debug(
        "[Logging] Initialised main=%s error=%s retention=%d days",
        main_log_path,
        error_log_path,
        retention_days,
    )

    return app_logger


def _cleanup_old_logs(log_dir: str, retention_days: int = LOG_RETENTION_DAYS) -> None:
    """
    Delete rotated log files older than *retention_days*.

    Runs before the logger exists, so diagnostics go through ``print()``.
    """
    cutoff = time.time() - (retention_days * 86400)
    deleted = 0
    patterns = [
        f"{LOG_BASENAME}*.log.*",
        f"{LOG_BASENAME}*.gz",
    ]
    for pattern in patterns:
        for log_file in Path(log_dir).glob(pattern):
            try:
                if log_file.stat().st_mtime < cutoff:
                    log_file.unlink()
                    deleted += 1
            except OSError:
                continue  # removed concurrently

    if deleted > 0:
        print(f"[LogRetention] Deleted {deleted} log file(s) older than {retention_days} days")


# ============================================================================
# Global logger instance
# ============================================================================

logger = setup_logging()


def reconfigure_console_level(level: int = logging.INFO) -> None:
    """Change the console handler log level at runtime (e.g. CLI --verbose)."""
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.FileHandler
        ):
            handler.setLevel(level)
            logger.debug("[Logging] Console level changed to %s", logging.getLevelName(level))
            break
