"""
FastAPI server for the BoxScan inventory system.

- Lifespan-managed shared resources (store, detector, capture pipeline)
- Inventory errors mapped to HTTP status codes in one handler
- Health endpoint with model, storage and process memory state
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict

import psutil
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from boxscan.config.settings import AppConfig, get_config
from boxscan.endpoint.routes import capture, containers, transfer
from boxscan.endpoint.shared import (
    cleanup_shared_resources,
    get_detector,
    get_store,
    init_shared_resources,
)
from boxscan.errors import (
    CaptureBusy,
    DeviceUnavailable,
    DuplicateId,
    InferenceError,
    InvalidFormat,
    InvalidImage,
    InvalidInput,
    InventoryError,
    ModelUnavailable,
    NotFound,
    StorageError,
)
from boxscan.utils.AppLogging import logger

APP_VERSION = AppConfig.APP_VERSION

_SERVER_START_TIME = time.time()

# Most specific first
_ERROR_STATUS = [
    (NotFound, 404),
    (DuplicateId, 409),
    (CaptureBusy, 409),
    (InvalidImage, 422),
    (InvalidInput, 400),
    (InvalidFormat, 400),
    (ModelUnavailable, 503),
    (DeviceUnavailable, 503),
    (InferenceError, 500),
    (StorageError, 500),
]


def status_for(error: InventoryError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("[Endpoint] Starting up...")
    get_config().log_configuration()
    await init_shared_resources()
    yield
    logger.info("[Endpoint] Shutting down...")
    cleanup_shared_resources()


app = FastAPI(
    title="BoxScan Inventory API",
    description="Container inventory with AI-assisted capture",
    version=APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(containers.router)
app.include_router(transfer.router)
app.include_router(capture.router)


@app.exception_handler(InventoryError)
async def inventory_error_handler(_request: Request, exc: InventoryError):
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.info
    log(f"[Endpoint] {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/health")
async def health() -> Dict[str, Any]:
    uptime_seconds = time.time() - _SERVER_START_TIME
    hours, remainder = divmod(int(uptime_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)

    detector = get_detector()
    memory_mb = psutil.Process().memory_info().rss / (1024 * 1024)
    return {
        "status": "ok",
        "version": APP_VERSION,
        "uptime": f"{hours:02d}:{minutes:02d}:{seconds:02d}",
        "memory_mb": round(memory_mb, 1),
        "containers": len(get_store()),
        "model": {
            "state": detector.state.value,
            "variant": detector.active_variant,
            "errors": list(detector.load_errors),
            "configured": get_config().get_model_variants(),
        },
    }
