"""
Job API Triggers - Tracked Asynchronous Ingests.

Endpoints:
    POST   /jobs                 Submit (multipart; upload or GCS source) -> 202
    GET    /jobs?callerId=       List, newest first
    GET    /jobs/stats           Counts by outcome
    GET    /jobs/{job_id}        One job
    GET    /jobs/{job_id}/logs   Job-visible log entries
    DELETE /jobs/{job_id}        Remove (idempotent) -> 204
    POST   /jobs/{job_id}/retry  Always refused (404 unknown / 409 known)

Business errors raised here are rendered by the application's
BusinessLogicError handler.
"""

import json
import os
from typing import List, Optional

from fastapi import APIRouter, File, Form, Request, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from core.errors import ErrorCode
from core.models import (
    DestinationKind,
    LocalUploadSource,
    ObjectStoreSource,
    SchemaField,
    WarehouseDestination,
)
from exceptions import BusinessLogicError, ResourceNotFoundError, ValidationError

from .http_base import (
    get_orchestrator,
    parse_destination_kind,
    relational_destination_from_form,
    spool_upload,
)

router = APIRouter(prefix="/jobs")


def parse_custom_schema(raw: Optional[str]) -> Optional[List[SchemaField]]:
    """
    Parse the customSchema form field (JSON array of {name, type, mode}).

    Raises:
        ValidationError: Not a JSON array of valid fields
    """
    if not raw or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"customSchema is not valid JSON: {e}", ErrorCode.INVALID_PARAMETER)
    if not isinstance(data, list):
        raise ValidationError("customSchema must be a JSON array", ErrorCode.INVALID_PARAMETER)
    try:
        return [SchemaField.model_validate(item) for item in data]
    except PydanticValidationError as e:
        raise ValidationError(f"customSchema is invalid: {e.errors()[0].get('msg')}", ErrorCode.INVALID_PARAMETER)


@router.post("", status_code=202)
async def submit_job(
    request: Request,
    shapefile: Optional[UploadFile] = File(None),
    destination: str = Form("bigquery"),
    gcsBucket: Optional[str] = Form(None),
    gcsPath: Optional[str] = Form(None),
    gcpProjectId: Optional[str] = Form(None),
    targetTable: Optional[str] = Form(None),
    customSchema: Optional[str] = Form(None),
    callerId: Optional[str] = Form(None),
    pgHost: Optional[str] = Form(None),
    pgPort: Optional[str] = Form(None),
    pgDatabase: Optional[str] = Form(None),
    pgUser: Optional[str] = Form(None),
    pgPassword: Optional[str] = Form(None),
    pgTable: Optional[str] = Form(None),
):
    orchestrator = get_orchestrator(request)

    kind = parse_destination_kind(destination)
    if kind == DestinationKind.POSTGRES:
        target = relational_destination_from_form(pgHost, pgPort, pgDatabase, pgUser, pgPassword, pgTable)
    else:
        target = WarehouseDestination(project_id=gcpProjectId or "", target_table=targetTable or "")

    schema = parse_custom_schema(customSchema)

    spooled_path = None
    if shapefile is not None and shapefile.filename:
        spooled_path, size = await spool_upload(shapefile)
        source = LocalUploadSource(path=spooled_path, file_name=shapefile.filename, size=size, delete_after=True)
    elif gcsBucket or gcsPath:
        source = ObjectStoreSource(bucket=gcsBucket or "", path=gcsPath or "")
    else:
        raise ValidationError("No file uploaded.", ErrorCode.MISSING_PARAMETER)

    try:
        job = orchestrator.submit(source, target, schema=schema, caller_id=callerId or "system")
    except BusinessLogicError:
        if spooled_path and os.path.exists(spooled_path):
            os.remove(spooled_path)
        raise

    return job.to_api_dict()


@router.get("")
def list_jobs(request: Request, callerId: Optional[str] = None):
    jobs = get_orchestrator(request).list(callerId)
    return {"jobs": [job.to_api_dict(include_logs=False) for job in jobs], "count": len(jobs)}


@router.get("/stats")
def job_stats(request: Request):
    return get_orchestrator(request).stats()


def _require_job(request: Request, job_id: str):
    job = get_orchestrator(request).get(job_id)
    if job is None:
        raise ResourceNotFoundError(f"Job not found: {job_id}")
    return job


@router.get("/{job_id}")
def get_job(request: Request, job_id: str):
    return _require_job(request, job_id).to_api_dict()


@router.get("/{job_id}/logs")
def get_job_logs(request: Request, job_id: str):
    job = _require_job(request, job_id)
    return {
        "job_id": job.job_id,
        "status": job.status.value,
        "logs": [entry.model_dump(mode="json") for entry in job.logs],
    }


@router.delete("/{job_id}", status_code=204)
def delete_job(request: Request, job_id: str):
    get_orchestrator(request).delete(job_id)
    return Response(status_code=204)


@router.post("/{job_id}/retry")
def retry_job(request: Request, job_id: str):
    job = get_orchestrator(request).retry(job_id)
    return JSONResponse(status_code=202, content=job.to_api_dict())
