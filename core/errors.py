"""
Error Code Definitions and Classification.

Centralized error code management with consistent error responses
across all endpoints and job records.

Key Features:
    - Explicit error codes for all failure modes
    - HTTP status mapping for the API layer
    - Helper to build structured error responses

Exports:
    ErrorCode: Standardized error codes enum
    get_http_status_code: Map an error code to an HTTP status
    create_error_response: Build a structured error payload
"""

from enum import Enum
from typing import Dict, Any


class ErrorCode(str, Enum):
    """
    Standardized error codes for all application errors.

    These codes are stored on failed jobs and returned in API responses so
    callers can tell failure categories apart without parsing messages.
    """

    # ========================================================================
    # VALIDATION ERRORS - CLIENT ERRORS (HTTP 400/404/409/413)
    # ========================================================================

    VALIDATION_ERROR = "VALIDATION_ERROR"  # Generic request validation failed
    INVALID_PARAMETER = "INVALID_PARAMETER"  # Specific parameter invalid
    MISSING_PARAMETER = "MISSING_PARAMETER"  # Required parameter missing
    FILE_NOT_FOUND = "FILE_NOT_FOUND"  # Local upload missing on disk
    FILE_TOO_LARGE = "FILE_TOO_LARGE"  # Upload exceeds configured limit
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"  # Job ID unknown
    RETRY_NOT_SUPPORTED = "RETRY_NOT_SUPPORTED"  # Source payload not retained

    # ========================================================================
    # COLLABORATOR ERRORS - SERVICE ERRORS (HTTP 500/502)
    # ========================================================================

    CONVERSION_FAILED = "CONVERSION_FAILED"  # ogr2ogr or archive failure
    DATABASE_ERROR = "DATABASE_ERROR"  # PostGIS connection or load failed
    STORAGE_ERROR = "STORAGE_ERROR"  # Object store download/upload failed
    WAREHOUSE_ERROR = "WAREHOUSE_ERROR"  # Generic BigQuery failure
    LOAD_FAILED = "LOAD_FAILED"  # BigQuery reported the load job failed
    STATUS_CHECK_FAILED = "STATUS_CHECK_FAILED"  # Could not read load job status
    QUERY_FAILED = "QUERY_FAILED"  # Preview query failed

    # ========================================================================
    # MONITORING
    # ========================================================================

    MONITORING_TIMEOUT = "MONITORING_TIMEOUT"  # Stopped watching, outcome unknown

    # ========================================================================
    # GENERIC ERRORS
    # ========================================================================

    CONFIG_ERROR = "CONFIG_ERROR"  # Configuration error
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"  # Unexpected exception


def get_http_status_code(error_code: ErrorCode) -> int:
    """
    Get the appropriate HTTP status code for an error code.

    Args:
        error_code: ErrorCode enum value

    Returns:
        HTTP status code

    Example:
        >>> get_http_status_code(ErrorCode.VALIDATION_ERROR)
        400
        >>> get_http_status_code(ErrorCode.MONITORING_TIMEOUT)
        504
    """
    if error_code in {
        ErrorCode.VALIDATION_ERROR,
        ErrorCode.INVALID_PARAMETER,
        ErrorCode.MISSING_PARAMETER,
        ErrorCode.FILE_NOT_FOUND,
    }:
        return 400

    if error_code == ErrorCode.RESOURCE_NOT_FOUND:
        return 404

    if error_code == ErrorCode.RETRY_NOT_SUPPORTED:
        return 409

    if error_code == ErrorCode.FILE_TOO_LARGE:
        return 413

    if error_code in {ErrorCode.LOAD_FAILED, ErrorCode.STATUS_CHECK_FAILED, ErrorCode.STORAGE_ERROR}:
        return 502

    if error_code == ErrorCode.MONITORING_TIMEOUT:
        return 504

    return 500


def create_error_response(
    error_code: ErrorCode,
    message: str,
    **kwargs: Any
) -> Dict[str, Any]:
    """
    Create a standardized error response dictionary.

    Args:
        error_code: ErrorCode enum value
        message: Human-readable summary
        **kwargs: Additional fields to include in response (e.g. error, job_id)

    Returns:
        Dict with standardized error response structure

    Example:
        >>> create_error_response(
        ...     ErrorCode.VALIDATION_ERROR,
        ...     "Request validation failed",
        ...     error="Target table must be in format: dataset.table"
        ... )
        {
            "message": "Request validation failed",
            "error_code": "VALIDATION_ERROR",
            "http_status": 400,
            "error": "Target table must be in format: dataset.table"
        }
    """
    return {
        "message": message,
        "error_code": error_code.value,
        "http_status": get_http_status_code(error_code),
        **kwargs
    }
