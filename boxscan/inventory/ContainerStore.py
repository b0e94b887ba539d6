"""
Authoritative container collection.

All mutation goes through ContainerStore. Each mutation builds the next
collection under a re-entrant lock, writes it as one JSON document to durable
key-value storage under ``CONTAINERS_KEY``, and only then makes it the live
collection. A failed write leaves the previous collection in place.
"""

import copy
import json
import sqlite3
import threading
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from boxscan.constants import CONTAINERS_KEY, CORRUPT_BACKUP_KEY, SAMPLE_CONTAINERS
from boxscan.errors import (
    CorruptStorage,
    DuplicateId,
    InvalidFormat,
    InvalidInput,
    ItemIndexError,
    NotFound,
    StorageError,
)
from boxscan.inventory.models import Container, Origin
from boxscan.storage.Database import DatabaseManager
from boxscan.utils.AppLogging import logger


class ContainerStore:
    """
    In-memory container collection persisted to a key-value store.

    Display order is insertion order. Snapshots are deep copies; callers never
    hold references into the live collection.
    """

    def __init__(self, storage: DatabaseManager, recover_corrupt: bool = False):
        """
        Args:
            storage: Durable key-value storage (``get_value``/``set_value``)
            recover_corrupt: Back up and reseed an unreadable persisted
                collection instead of raising CorruptStorage
        """
        self._storage = storage
        self._recover_corrupt = recover_corrupt
        self._lock = threading.RLock()
        self._containers: List[Container] = []
        self._load()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def _load(self):
        raw = self._storage.get_value(CONTAINERS_KEY)
        if raw is None:
            logger.info("[ContainerStore] No saved collection, seeding sample containers")
            self._seed()
            return

        try:
            self._containers = _parse_collection(json.loads(raw))
        except (ValueError, InvalidFormat) as e:
            if not self._recover_corrupt:
                logger.error(f"[ContainerStore] Persisted collection is unreadable: {e}")
                raise CorruptStorage(f"Persisted collection is unreadable: {e}") from e
            logger.warning(
                f"[ContainerStore] Persisted collection unreadable ({e}), "
                f"backing up to '{CORRUPT_BACKUP_KEY}' and reseeding"
            )
            self._storage.set_value(CORRUPT_BACKUP_KEY, raw)
            self._seed()
            return

        logger.info(f"[ContainerStore] Loaded {len(self._containers)} containers")

    def _seed(self):
        now = datetime.now()
        self._commit([
            Container(id=cid, items=list(items), created_at=now, origin=Origin.MANUAL)
            for cid, items in SAMPLE_CONTAINERS
        ])

    def _commit(self, containers: List[Container]):
        """Persist *containers*, then make them the live collection."""
        document = json.dumps([c.to_dict() for c in containers], ensure_ascii=False)
        try:
            self._storage.set_value(CONTAINERS_KEY, document)
        except sqlite3.Error as e:
            logger.error(f"[ContainerStore] Write failed, collection unchanged: {e}")
            raise StorageError(f"Could not save the collection: {e}") from e
        self._containers = containers

    def _replacing(self, old: Container, new: Container) -> List[Container]:
        return [new if c is old else c for c in self._containers]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._containers)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return self._find(container_id) is not None

    def get(self, container_id: str) -> Container:
        """Return a copy of one container. Raises NotFound."""
        with self._lock:
            return copy.deepcopy(self._require(container_id))

    def containers(self) -> List[Container]:
        """Copies of all containers in display order."""
        with self._lock:
            return copy.deepcopy(self._containers)

    def __iter__(self) -> Iterator[Container]:
        return iter(self.containers())

    def snapshot(self) -> List[Dict[str, Any]]:
        """Serializable copy of the full collection (export / persistence shape)."""
        with self._lock:
            return [c.to_dict() for c in self._containers]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, container: Container) -> Container:
        with self._lock:
            if self._find(container.id) is not None:
                raise DuplicateId(container.id)
            stored = copy.deepcopy(container)
            self._commit(self._containers + [stored])
        logger.info(
            f"[ContainerStore] Added {container.id} "
            f"({len(container.items)} items, origin={container.origin.value})"
        )
        return copy.deepcopy(stored)

    def create_manual(self, container_id: str) -> Container:
        """Create an empty, manually entered container."""
        container_id = (container_id or "").strip()
        if not container_id:
            raise InvalidInput("Container id must not be empty")
        return self.add(Container(id=container_id, origin=Origin.MANUAL))

    def add_item(self, container_id: str, item_label: str) -> Container:
        label = (item_label or "").strip()
        with self._lock:
            container = self._require(container_id)
            if not label:
                raise InvalidInput("Item name must not be empty")
            updated = copy.deepcopy(container)
            updated.items.append(label)
            self._commit(self._replacing(container, updated))
            result = copy.deepcopy(updated)
        logger.debug(f"[ContainerStore] {container_id}: added item '{label}'")
        return result

    def remove_item(self, container_id: str, item_index: int) -> str:
        """
        Remove and return the item at *item_index*.

        Out-of-range positions (negative included) fail with ItemIndexError;
        nothing is clamped. Removing the last item leaves an empty container.
        """
        with self._lock:
            container = self._require(container_id)
            if not 0 <= item_index < len(container.items):
                raise ItemIndexError(
                    f"Container '{container_id}' has no item at index {item_index} "
                    f"({len(container.items)} items)"
                )
            updated = copy.deepcopy(container)
            removed = updated.items.pop(item_index)
            self._commit(self._replacing(container, updated))
        logger.debug(f"[ContainerStore] {container_id}: removed item '{removed}'")
        return removed

    def remove_container(self, container_id: str) -> Container:
        """Remove a container. Confirmation is the caller's job."""
        with self._lock:
            container = self._require(container_id)
            self._commit([c for c in self._containers if c is not container])
        logger.info(f"[ContainerStore] Removed {container_id}")
        return container

    def replace_all(self, records: Any) -> int:
        """
        Replace the entire collection with *records* (import).

        The whole argument is validated before anything changes: it must be a
        list of well-formed container records with unique ids.

        Returns:
            Number of containers now in the store
        """
        containers = _parse_collection(records)
        with self._lock:
            self._commit(containers)
        logger.info(f"[ContainerStore] Collection replaced ({len(containers)} containers)")
        return len(containers)

    # ------------------------------------------------------------------

    def _find(self, container_id: object) -> Optional[Container]:
        for container in self._containers:
            if container.id == container_id:
                return container
        return None

    def _require(self, container_id: str) -> Container:
        container = self._find(container_id)
        if container is None:
            raise NotFound(f"No container with id '{container_id}'")
        return container


def _parse_collection(records: Any) -> List[Container]:
    if not isinstance(records, list):
        raise InvalidFormat(f"Expected a list of containers, got {type(records).__name__}")
    now = datetime.now()
    containers = [Container.from_dict(r, now=now) for r in records]
    seen = set()
    for container in containers:
        if container.id in seen:
            raise InvalidFormat(f"Duplicate container id '{container.id}'")
        seen.add(container.id)
    return containers
