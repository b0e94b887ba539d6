"""
Transfer Routes - backup and restore of the whole collection.

- GET  /api/export → JSON download named inventory-backup-<date>.json
- POST /api/import → Replace the collection with an uploaded export (raw JSON body)
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from boxscan.endpoint.shared import get_store
from boxscan.inventory.transfer import export_collection, import_collection

router = APIRouter(tags=["transfer"])


@router.get("/api/export")
def export_data():
    filename, payload = export_collection(get_store())
    return Response(
        content=payload,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/import")
async def import_data(request: Request):
    raw = await request.body()
    count = await run_in_threadpool(import_collection, get_store(), raw)
    return {"status": "ok", "message": "Data imported successfully!", "count": count}
