"""
Shared HTTP Helpers.

Request-scoped access to the collaborators created in the application
lifespan, and spooling of multipart uploads to disk with a size cap.

Exports:
    get_orchestrator, get_preview_fetcher: FastAPI dependencies
    spool_upload: Stream an UploadFile to a local file
    parse_destination_kind, relational_destination_from_form: Form parsing
    error_response: JSONResponse for a BusinessLogicError
"""

import os
import tempfile
from typing import Optional

from fastapi import Request, UploadFile
from fastapi.responses import JSONResponse

from config import get_config
from core.errors import ErrorCode, create_error_response, get_http_status_code
from core.models import DestinationKind, RelationalDestination
from exceptions import BusinessLogicError, ValidationError

CHUNK_SIZE = 1024 * 1024


def get_orchestrator(request: Request):
    return request.app.state.orchestrator


def get_preview_fetcher(request: Request):
    return request.app.state.preview_fetcher


async def spool_upload(upload: UploadFile, directory: str = None, max_bytes: int = None) -> tuple:
    """
    Write an upload to a new file, enforcing the size limit while streaming.

    Returns:
        (path, size in bytes)

    Raises:
        BusinessLogicError: FILE_TOO_LARGE; the partial file is removed
    """
    config = get_config()
    directory = directory or config.work_root
    max_bytes = max_bytes or config.max_upload_bytes
    os.makedirs(directory, exist_ok=True)

    suffix = os.path.splitext(upload.filename or "")[1] or ".zip"
    fd, path = tempfile.mkstemp(prefix="upload-", suffix=suffix, dir=directory)
    size = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise BusinessLogicError(
                        f"File exceeds the {max_bytes // (1024 * 1024)}MB upload limit",
                        ErrorCode.FILE_TOO_LARGE
                    )
                out.write(chunk)
    except BaseException:
        if os.path.exists(path):
            os.remove(path)
        raise
    return path, size


def parse_destination_kind(raw: Optional[str]) -> DestinationKind:
    """Form value to DestinationKind; empty means bigquery."""
    try:
        return DestinationKind((raw or DestinationKind.BIGQUERY.value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported destination: {raw}", ErrorCode.INVALID_PARAMETER)


def relational_destination_from_form(
    host: Optional[str],
    port: Optional[str],
    database: Optional[str],
    user: Optional[str],
    password: Optional[str],
    table: Optional[str]
) -> RelationalDestination:
    """Build a RelationalDestination from the pg* form fields; completeness is checked later."""
    try:
        port_number = int(port) if port else get_config().database.default_port
    except ValueError:
        raise ValidationError("pgPort must be a number", ErrorCode.INVALID_PARAMETER)
    if not 1 <= port_number <= 65535:
        raise ValidationError("pgPort must be between 1 and 65535", ErrorCode.INVALID_PARAMETER)
    return RelationalDestination(
        host=host or "",
        port=port_number,
        database=database or "",
        user=user or "",
        password=password or "",
        table=table or None,
    )


def error_response(error: BusinessLogicError) -> JSONResponse:
    code = ErrorCode(error.error_code)
    return JSONResponse(
        status_code=get_http_status_code(code),
        content=create_error_response(code, error.message, error=error.message)
    )
