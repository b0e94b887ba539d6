"""
Inventory records: the Container dataclass and its serialized form.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from boxscan.errors import InvalidFormat


class Origin(Enum):
    """Provenance of a container."""
    MANUAL = "manual"
    AI_GENERATED = "ai_generated"


@dataclass
class Container:
    """A named group of inventory items with provenance and creation time."""
    id: str
    items: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    origin: Origin = Origin.MANUAL

    @property
    def ai_generated(self) -> bool:
        return self.origin is Origin.AI_GENERATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "items": list(self.items),
            "createdAt": self.created_at.isoformat(),
            "origin": self.origin.value,
        }

    @classmethod
    def from_dict(cls, record: Any, now: Optional[datetime] = None) -> "Container":
        """
        Build a Container from a serialized record.

        Accepts the current shape (``createdAt``/``origin``) and the legacy
        browser export shape (``timestamp``/``aiGenerated``). Missing creation
        time falls back to *now*; missing provenance means MANUAL.

        Raises:
            InvalidFormat: record is not a mapping with a string ``id`` and a
                list-of-strings ``items``, or has an unreadable origin/date.
        """
        if not isinstance(record, dict):
            raise InvalidFormat(f"Container record must be an object, got {type(record).__name__}")

        container_id = record.get("id")
        if not isinstance(container_id, str):
            raise InvalidFormat("Container record is missing a string 'id'")

        items = record.get("items")
        if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
            raise InvalidFormat(f"Container '{container_id}': 'items' must be a list of strings")

        return cls(
            id=container_id,
            items=list(items),
            created_at=_parse_created_at(record, now),
            origin=_parse_origin(record),
        )


def _parse_created_at(record: Dict[str, Any], now: Optional[datetime]) -> datetime:
    raw = record.get("createdAt")
    if raw is None:
        raw = record.get("timestamp")
    if raw is None:
        return now or datetime.now()
    if not isinstance(raw, str):
        raise InvalidFormat(f"Container '{record['id']}': creation time must be a string")
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass
    # Legacy exports carry a locale-formatted timestamp
    for fmt in ("%m/%d/%Y, %I:%M:%S %p", "%d/%m/%Y, %H:%M:%S", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return now or datetime.now()


def _parse_origin(record: Dict[str, Any]) -> Origin:
    raw = record.get("origin")
    if raw is not None:
        try:
            return Origin(raw)
        except ValueError:
            raise InvalidFormat(f"Container '{record['id']}': unknown origin {raw!r}") from None
    return Origin.AI_GENERATED if record.get("aiGenerated") is True else Origin.MANUAL
