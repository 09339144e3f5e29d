"""
Request Validation - Synchronous Checks Before Any Pipeline Work.

Every check raises ValidationError with a caller-facing message; nothing
here performs I/O beyond checking that a local upload exists.

Exports:
    validate_source: Source descriptor checks
    validate_destination: Destination descriptor checks
    validate_schema: Explicit schema checks
    validate_table_ref: dataset.table checks for preview queries
    validate_identifier: PostgreSQL identifier checks
"""

import os
import re
from typing import List, Optional

from core.errors import ErrorCode
from core.models import (
    LocalUploadSource,
    ObjectStoreSource,
    RelationalDestination,
    SchemaField,
    WarehouseDestination,
)
from exceptions import ValidationError


TABLE_REF_PART = re.compile(r"^[A-Za-z0-9_-]+$")
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_IDENTIFIER_LENGTH = 63


def validate_source(source) -> None:
    if isinstance(source, ObjectStoreSource):
        if not source.bucket:
            raise ValidationError("GCS bucket is required for GCS source", ErrorCode.MISSING_PARAMETER)
        if not source.path:
            raise ValidationError("GCS path is required for GCS source", ErrorCode.MISSING_PARAMETER)
    elif isinstance(source, LocalUploadSource):
        if not source.path or not os.path.isfile(source.path):
            raise ValidationError(f"Uploaded file not found: {source.file_name}", ErrorCode.FILE_NOT_FOUND)
    else:
        raise ValidationError(f"Unsupported source: {type(source).__name__}")


def validate_destination(destination) -> None:
    if isinstance(destination, WarehouseDestination):
        if not destination.project_id:
            raise ValidationError("GCP Project ID is required", ErrorCode.MISSING_PARAMETER)
        if not destination.target_table:
            raise ValidationError("Target table is required", ErrorCode.MISSING_PARAMETER)
        if "." not in destination.target_table:
            raise ValidationError("Target table must be in format: dataset.table", ErrorCode.INVALID_PARAMETER)
        dataset, table = destination.target_table.split(".", 1)
        if not dataset or not table:
            raise ValidationError("Target table must be in format: dataset.table", ErrorCode.INVALID_PARAMETER)
    elif isinstance(destination, RelationalDestination):
        if not all([destination.host, destination.database, destination.user, destination.password]):
            raise ValidationError("PostgreSQL connection details missing.", ErrorCode.MISSING_PARAMETER)
        if destination.table:
            validate_identifier(destination.table)
    else:
        raise ValidationError(f"Unsupported destination: {type(destination).__name__}")


def validate_schema(schema_fields: Optional[List[SchemaField]]) -> None:
    if not schema_fields:
        return
    seen = set()
    for field in schema_fields:
        name = field.name.strip()
        if not name:
            raise ValidationError("Schema field names must not be empty", ErrorCode.INVALID_PARAMETER)
        if name.lower() in seen:
            raise ValidationError(f"Duplicate schema field: {name}", ErrorCode.INVALID_PARAMETER)
        seen.add(name.lower())


def validate_table_ref(project_id: Optional[str], target_table: Optional[str]) -> None:
    """
    Preview query table checks; each part ends up inside a backquoted identifier.
    """
    if not project_id:
        raise ValidationError("GCP Project ID is required", ErrorCode.MISSING_PARAMETER)
    if not TABLE_REF_PART.match(project_id):
        raise ValidationError("Invalid GCP Project ID", ErrorCode.INVALID_PARAMETER)
    if not target_table:
        raise ValidationError("Target table is required", ErrorCode.MISSING_PARAMETER)
    parts = target_table.split(".")
    if len(parts) != 2 or not all(TABLE_REF_PART.match(part) for part in parts):
        raise ValidationError("Target table must be in format: dataset.table", ErrorCode.INVALID_PARAMETER)


def validate_identifier(name: str) -> None:
    if not IDENTIFIER.match(name) or len(name) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(
            f"Invalid table name '{name}': use letters, digits and underscores "
            f"(starting with a letter or underscore, at most {MAX_IDENTIFIER_LENGTH} characters)",
            ErrorCode.INVALID_PARAMETER
        )
