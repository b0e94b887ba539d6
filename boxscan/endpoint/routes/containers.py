"""
Container Routes - manual inventory management and search.

- GET    /api/containers                          → Full collection
- POST   /api/containers                          → Create an empty manual container
- GET    /api/containers/{id}                     → One container
- DELETE /api/containers/{id}?confirm=true        → Remove a container
- POST   /api/containers/{id}/items               → Append an item
- DELETE /api/containers/{id}/items/{index}       → Remove one item
- GET    /api/search?q=...                        → Items matching a substring
"""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from boxscan.endpoint.shared import get_store
from boxscan.inventory.SearchIndex import search

router = APIRouter(tags=["containers"])


class NewContainer(BaseModel):
    id: str


class NewItem(BaseModel):
    item: str


@router.get("/api/containers")
def list_containers():
    store = get_store()
    return {"count": len(store), "containers": store.snapshot()}


@router.post("/api/containers", status_code=201)
def create_container(body: NewContainer):
    container = get_store().create_manual(body.id)
    return container.to_dict()


@router.get("/api/containers/{container_id}")
def get_container(container_id: str):
    return get_store().get(container_id).to_dict()


@router.delete("/api/containers/{container_id}")
def delete_container(container_id: str, confirm: bool = Query(False)):
    """Removing a container drops all of its items, so the caller must confirm."""
    if not confirm:
        raise HTTPException(400, "Removing a container requires confirm=true")
    removed = get_store().remove_container(container_id)
    return {"status": "ok", "removed": removed.id}


@router.post("/api/containers/{container_id}/items", status_code=201)
def add_item(container_id: str, body: NewItem):
    return get_store().add_item(container_id, body.item).to_dict()


@router.delete("/api/containers/{container_id}/items/{item_index}")
def remove_item(container_id: str, item_index: int):
    store = get_store()
    removed = store.remove_item(container_id, item_index)
    return {"status": "ok", "removed": removed, "container": store.get(container_id).to_dict()}


@router.get("/api/search")
def search_items(q: str = Query("")):
    matches = search(get_store(), q)
    return {"query": q, "count": len(matches), "results": [m.to_dict() for m in matches]}
