#!/usr/bin/env python3
"""
Docker Service - HTTP API for Shapefile Ingest.

This module runs the FastAPI application that fronts the ingest pipeline.
Jobs run as asyncio tasks inside this process, supervised by the
JobOrchestrator created in the lifespan.

HTTP Endpoints:
    /health            - Liveness with timestamp
    /convert-upload    - Synchronous conversion (NDJSON body or PostGIS load)
    /preview-geojson   - Warehouse table preview as GeoJSON
    /jobs...           - Tracked asynchronous ingest jobs

Usage:
    # Start the server
    python docker_service.py
    uvicorn docker_service:app --host 0.0.0.0 --port 8080

    # Test endpoints
    curl http://localhost:8080/health
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from util_logger import JSONFormatter, LoggerFactory, ComponentType


def configure_service_logging(debug: bool = False) -> None:
    """Route root and uvicorn loggers through the JSON stdout handler."""
    if hasattr(sys.stdout, 'reconfigure'):
        sys.stdout.reconfigure(line_buffering=True)

    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for logger_name in ['uvicorn', 'uvicorn.error', 'uvicorn.access']:
        uvi_logger = logging.getLogger(logger_name)
        uvi_logger.handlers = []
        uvi_logger.addHandler(handler)
        uvi_logger.propagate = False

    # Suppress verbose client library logs that drown out application logs
    logging.getLogger("google.auth").setLevel(logging.WARNING)
    logging.getLogger("google.cloud").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("fiona").setLevel(logging.WARNING)
    logging.getLogger("pyogrio").setLevel(logging.WARNING)


from fastapi import FastAPI, Request

from config import get_config, debug_config
from core.orchestrator import JobOrchestrator
from exceptions import BusinessLogicError
from services.preview_service import PreviewFetcher
from triggers import convert_upload_router, jobs_router, preview_router
from triggers.http_base import error_response

logger = LoggerFactory.create_logger(ComponentType.CONTROLLER, "docker_service")


# ============================================================================
# FASTAPI LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the orchestrator and preview fetcher; drain jobs on shutdown."""
    config = get_config()
    configure_service_logging(config.debug_logging)

    logger.info("GEOINGEST SERVICE - STARTING")
    logger.debug(f"Configuration: {debug_config()}")

    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = JobOrchestrator(config=config)
    if getattr(app.state, "preview_fetcher", None) is None:
        app.state.preview_fetcher = PreviewFetcher(config.warehouse)

    yield

    logger.info("GEOINGEST SERVICE - SHUTTING DOWN")
    await app.state.orchestrator.shutdown()
    logger.info("GEOINGEST SERVICE - SHUTDOWN COMPLETE")


def create_app() -> FastAPI:
    application = FastAPI(
        title="geoingest",
        description="Shapefile ingest service (BigQuery / PostGIS)",
        version="1.0.0",
        lifespan=lifespan
    )

    @application.exception_handler(BusinessLogicError)
    async def business_error_handler(request: Request, exc: BusinessLogicError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.error_code.value}: {exc.message}")
        return error_response(exc)

    @application.get("/health")
    def health_check():
        """Liveness probe with server timestamp."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    application.include_router(convert_upload_router)
    application.include_router(preview_router)
    application.include_router(jobs_router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config().port)
