"""
FastAPI application entry point for the solar car telemetry API.

Wires the routers, maps service errors to HTTP responses and, at startup,
validates configuration, installs JSON logging and creates missing tables.

Run with: ``uvicorn solar_telemetry.main:app``

CHANGELOG:
- 2025-02-21: Register users and health routers
- 2025-02-17: Map TelemetryError subclasses to HTTP status codes
- 2025-02-14: Initial creation

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from solar_telemetry.api.health import router as health_router
from solar_telemetry.api.ingest import router as ingest_router
from solar_telemetry.api.realtime import router as realtime_router
from solar_telemetry.api.series import router as series_router
from solar_telemetry.api.users import router as users_router
from solar_telemetry.config import get_settings
from solar_telemetry.db.session import dispose_engine, init_db
from solar_telemetry.errors import (
    NotFoundError,
    StorageError,
    UnknownFieldError,
    ValidationError,
)
from solar_telemetry.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: validate settings, set up logging and tables."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    await init_db()
    logger.info("Telemetry API started")
    yield
    await dispose_engine()


app = FastAPI(
    title="Solar Car Telemetry API",
    description="Telemetry ingest, live snapshot and chart series for the solar car.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(ingest_router)
app.include_router(realtime_router)
app.include_router(series_router)
app.include_router(users_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    content: dict = {"detail": str(exc)}
    if isinstance(exc, UnknownFieldError):
        content["unknown_fields"] = exc.identifiers
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    # The cause has already been logged where it was raised.
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable, retry later"})


@app.get("/")
async def root() -> dict:
    """Liveness endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}
