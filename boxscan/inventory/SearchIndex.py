"""
Read-side search over every item in every container.

Recomputed from the store on each query; collections are small and a full
pass is linear in the total number of items.
"""

from dataclasses import dataclass
from typing import List

from boxscan.inventory.ContainerStore import ContainerStore


@dataclass(frozen=True)
class SearchMatch:
    item: str
    container_id: str

    def to_dict(self):
        return {"item": self.item, "containerId": self.container_id}


def search(store: ContainerStore, query: str) -> List[SearchMatch]:
    """
    Case-insensitive substring match of *query* against item labels.

    An empty (or whitespace-only) query means search is inactive and yields
    no matches. Matches come back in container order, then item order.
    """
    if not query or not query.strip():
        return []
    needle = query.lower()
    return [
        SearchMatch(item=item, container_id=container.id)
        for container in store.containers()
        for item in container.items
        if needle in item.lower()
    ]
