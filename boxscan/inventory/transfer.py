"""
Export / import of the whole container collection as a JSON file.
"""

import json
from datetime import date
from typing import Optional, Tuple, Union

from boxscan.constants import EXPORT_FILENAME_TEMPLATE
from boxscan.errors import InvalidFormat
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.utils.AppLogging import logger


def export_filename(today: Optional[date] = None) -> str:
    """Download name for an export, stamped with the current date."""
    today = today or date.today()
    return EXPORT_FILENAME_TEMPLATE.format(date=today.isoformat())


def export_collection(store: ContainerStore, today: Optional[date] = None) -> Tuple[str, bytes]:
    """
    Serialize the full collection.

    Returns:
        (filename, JSON document as UTF-8 bytes)
    """
    snapshot = store.snapshot()
    payload = json.dumps(snapshot, indent=2, ensure_ascii=False).encode("utf-8")
    logger.info(f"[Transfer] Exported {len(snapshot)} containers")
    return export_filename(today), payload


def import_collection(store: ContainerStore, raw: Union[str, bytes]) -> int:
    """
    Replace the store's collection with the contents of an export file.

    Invalid files leave the store unchanged.

    Raises:
        InvalidFormat: unparseable JSON, a non-list document, or malformed records
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig")
        records = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning(f"[Transfer] Import rejected, not valid JSON: {e}")
        raise InvalidFormat(f"Import file is not valid JSON: {e}") from e

    try:
        count = store.replace_all(records)
    except InvalidFormat as e:
        logger.warning(f"[Transfer] Import rejected: {e}")
        raise

    logger.info(f"[Transfer] Imported {count} containers")
    return count
