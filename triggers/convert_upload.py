"""
Synchronous Conversion Trigger - POST /convert-upload.

Converts one uploaded archive within the request:
    - destination=postgres: loads into PostGIS and returns table names plus a preview
    - destination=bigquery (default): returns the merged NDJSON body and the
      generated schema in the X-Generated-Schema header; the caller loads it

No job is created; use /jobs for tracked, asynchronous ingests.
"""

import asyncio
import json
import os
import shutil
import tempfile
import uuid
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from config import get_config
from core.errors import ErrorCode
from core.models import DestinationKind
from core.validation import validate_destination
from exceptions import BusinessLogicError
from services.conversion_service import ConversionService
from services.loaders import LoadContext, RelationalLoader
from services.loaders.warehouse_loader import build_warehouse_schema, merge_to_ndjson
from util_logger import LoggerFactory, ComponentType

from .http_base import error_response, parse_destination_kind, relational_destination_from_form, spool_upload

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "convert_upload")
router = APIRouter()

FAILURE_MESSAGE = "File conversion failed on the server"


def _remove_all(*paths: str) -> None:
    for path in paths:
        if not path:
            continue
        try:
            if os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")


@router.post("/convert-upload")
async def convert_upload(
    request: Request,
    shapefile: Optional[UploadFile] = File(None),
    destination: str = Form("bigquery"),
    pgHost: Optional[str] = Form(None),
    pgPort: Optional[str] = Form(None),
    pgDatabase: Optional[str] = Form(None),
    pgUser: Optional[str] = Form(None),
    pgPassword: Optional[str] = Form(None),
    pgTable: Optional[str] = Form(None),
):
    if shapefile is None or not shapefile.filename:
        return JSONResponse(status_code=400, content={"message": "No file uploaded."})

    config = get_config()
    request_id = uuid.uuid4().hex
    try:
        archive_path, size = await spool_upload(shapefile)
    except BusinessLogicError as e:
        if e.error_code == ErrorCode.FILE_TOO_LARGE:
            return error_response(e)
        raise

    logger.info(f"Converting upload {shapefile.filename} ({size} bytes) for {destination}")

    work_dir = None
    handed_off = False
    try:
        work_dir = tempfile.mkdtemp(prefix=f"convert-{request_id[:8]}-", dir=config.work_root)
        kind = parse_destination_kind(destination)
        if kind == DestinationKind.POSTGRES:
            target = relational_destination_from_form(pgHost, pgPort, pgDatabase, pgUser, pgPassword, pgTable)
            validate_destination(target)

        converter = request.app.state.orchestrator.converter
        results = await ConversionService(converter).convert_archive(archive_path, work_dir)

        if kind == DestinationKind.POSTGRES:
            loader = RelationalLoader(target, config.database, preview_limit=config.vector.preview_feature_limit)
            outcome = await loader.load(results, LoadContext(job_id=request_id, work_dir=work_dir))
            logger.info(f"Loaded data into PostgreSQL tables: {outcome.tables}")
            return {"message": "Data loaded into PostgreSQL", "tables": outcome.tables, "preview": outcome.preview}

        ndjson_path = os.path.join(work_dir, "output.ndjson")
        record_count, keys = await asyncio.to_thread(merge_to_ndjson, results, ndjson_path)
        schema = [field.to_api_dict() for field in build_warehouse_schema(keys)]
        logger.info(f"Generated NDJSON with {record_count} record(s) and {len(schema)} schema field(s)")

        handed_off = True
        return FileResponse(
            ndjson_path,
            media_type="application/x-ndjson",
            headers={
                "X-Generated-Schema": json.dumps(schema),
                "Access-Control-Expose-Headers": "X-Generated-Schema",
            },
            background=BackgroundTask(_remove_all, work_dir, archive_path)
        )

    except Exception as e:
        message = getattr(e, "message", None) or str(e)
        logger.error(f"Processing failed for {shapefile.filename}: {message}", exc_info=True)
        return JSONResponse(status_code=500, content={"message": FAILURE_MESSAGE, "error": message})

    finally:
        if not handed_off:
            _remove_all(work_dir, archive_path)
