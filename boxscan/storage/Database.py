"""
SQLite-backed durable key-value storage.

- Single ``kv_store`` table, one row per key, value overwritten on write
- Thread-local connections with WAL journaling
- Cursor context manager that commits on success and rolls back on error
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from boxscan.utils.AppLogging import logger


class DatabaseManager:
    """Durable key-value store used for the container collection."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        self._ensure_db_exists()
        self._initialize_schema()
        logger.info(f"[DatabaseManager] Initialized: {db_path}")

    def _ensure_db_exists(self):
        db_file = Path(self.db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)
        if not db_file.exists():
            db_file.touch()
            logger.info(f"[DatabaseManager] Created new database: {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            self._local.connection = sqlite3.connect(
                self.db_path, check_same_thread=False, timeout=30.0
            )
            self._local.connection.row_factory = sqlite3.Row
            self._local.connection.execute("PRAGMA journal_mode = WAL")
        return self._local.connection

    @contextmanager
    def _cursor(self):
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"[DatabaseManager] Database error: {e}", exc_info=True)
            raise
        finally:
            cursor.close()

    def _initialize_schema(self):
        with self._cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT (datetime('now', 'utc'))
                )
            """)

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._cursor() as cursor:
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            result = cursor.fetchone()
            return result[0] if result else default

    def set_value(self, key: str, value: str) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, datetime('now', 'utc')) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = datetime('now', 'utc')",
                (key, value)
            )
        logger.debug(f"[DatabaseManager] Wrote key {key} ({len(value)} chars)")

    def close(self):
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None
            logger.debug("[DatabaseManager] Connection closed")
