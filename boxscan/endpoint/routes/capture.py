"""
Capture Routes - AI-assisted container creation.

- GET  /api/capture/status          → Pipeline / model state (drives UI enablement)
- POST /api/capture/camera/start    → Acquire the camera
- POST /api/capture/camera/analyze  → Snapshot, release camera, detect, commit
- POST /api/capture/camera/stop     → Cancel and release the camera
- POST /api/capture/upload          → Analyze an uploaded photo (raw image body)

Camera failures respond with a ``fallback`` hint pointing at manual entry.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from boxscan.endpoint.shared import get_pipeline
from boxscan.errors import DeviceUnavailable
from boxscan.utils.AppLogging import logger

router = APIRouter(tags=["capture"])


@router.get("/api/capture/status")
async def capture_status():
    return get_pipeline().status()


@router.post("/api/capture/camera/start")
async def start_camera():
    pipeline = get_pipeline()
    try:
        await pipeline.start_camera()
    except DeviceUnavailable as e:
        logger.warning(f"[CaptureRoutes] Camera unavailable: {e}")
        return JSONResponse(status_code=503, content={
            "error": "DeviceUnavailable",
            "detail": f"Camera not available: {e}",
            "fallback": "manual",
        })
    return pipeline.status()


@router.post("/api/capture/camera/analyze")
async def analyze_camera():
    result = await get_pipeline().analyze_camera()
    return result.to_dict()


@router.post("/api/capture/camera/stop")
async def stop_camera():
    pipeline = get_pipeline()
    pipeline.stop_camera()
    return pipeline.status()


@router.post("/api/capture/upload")
async def analyze_upload(request: Request):
    data = await request.body()
    result = await get_pipeline().analyze_upload(data, request.headers.get("content-type"))
    return result.to_dict()
