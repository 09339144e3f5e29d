"""
Preview Trigger - GET /preview-geojson.

Returns a GeoJSON FeatureCollection read from a warehouse table. An
``Authorization: Bearer`` header is forwarded to the BigQuery REST API;
without it the service's ambient credentials are used.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from exceptions import PreviewQueryError, ValidationError
from util_logger import LoggerFactory, ComponentType

from .http_base import get_preview_fetcher

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "preview")
router = APIRouter()

NO_STORE = {"Cache-Control": "no-store"}


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


@router.get("/preview-geojson")
async def preview_geojson(
    request: Request,
    gcpProjectId: Optional[str] = None,
    targetTable: Optional[str] = None,
    limit: Optional[str] = None,
    authorization: Optional[str] = Header(None),
):
    fetcher = get_preview_fetcher(request)
    try:
        collection = await asyncio.to_thread(
            fetcher.fetch, gcpProjectId, targetTable, limit, _bearer_token(authorization)
        )
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": e.message}, headers=NO_STORE)
    except PreviewQueryError as e:
        logger.error(f"Preview failed for {gcpProjectId}.{targetTable}: {e.message}")
        return JSONResponse(status_code=500, content={"error": e.message}, headers=NO_STORE)

    return JSONResponse(content=collection, headers=NO_STORE)
