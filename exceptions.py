"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)

Every business failure carries an ErrorCode so the job record and the HTTP
layer can report a stable category next to the message.
"""

from core.errors import ErrorCode


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    Examples:
        - A loader returns something other than LoadOutcome
        - An illegal job status transition is requested
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    These are normal failures that occur during system operation
    and are handled gracefully without crashing the process.
    """

    error_code: ErrorCode = ErrorCode.UNEXPECTED_ERROR

    def __init__(self, message: str, error_code: ErrorCode = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class ValidationError(BusinessLogicError):
    """
    Caller input malformed or incomplete.

    Raised synchronously before any pipeline work starts.

    Examples:
        - Target table not in dataset.table form
        - PostgreSQL connection details missing
        - Local upload not present on disk
    """
    error_code = ErrorCode.VALIDATION_ERROR


class ResourceNotFoundError(BusinessLogicError):
    """
    Requested resource does not exist.

    Examples:
        - Job ID not in the job store
    """
    error_code = ErrorCode.RESOURCE_NOT_FOUND


class RetryNotSupportedError(BusinessLogicError):
    """
    Retry was requested but the original source payload is not retained.
    """
    error_code = ErrorCode.RETRY_NOT_SUPPORTED


class ConversionError(BusinessLogicError):
    """
    Geometry conversion failed.

    Examples:
        - ogr2ogr exited non-zero for a member
        - Archive is corrupt or holds no .shp member
    """
    error_code = ErrorCode.CONVERSION_FAILED


class DestinationError(BusinessLogicError):
    """
    Relational destination failure.

    Examples:
        - Connection refused / authentication failed
        - CREATE TABLE or INSERT rejected
    """
    error_code = ErrorCode.DATABASE_ERROR


class StorageError(BusinessLogicError):
    """
    Object store download or upload failed.
    """
    error_code = ErrorCode.STORAGE_ERROR


class WarehouseError(BusinessLogicError):
    """
    Base class for analytical warehouse failures.
    """
    error_code = ErrorCode.WAREHOUSE_ERROR


class WarehouseLoadFailedError(WarehouseError):
    """
    The warehouse reported the load job finished with errors.

    The destination rejected the data.
    """
    error_code = ErrorCode.LOAD_FAILED

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = list(errors or [])


class WarehouseStatusCheckError(WarehouseError):
    """
    The load job status could not be read, even after retries.
    """
    error_code = ErrorCode.STATUS_CHECK_FAILED


class MonitoringTimeoutError(WarehouseError):
    """
    The monitor ran out of attempts before the load job reached DONE.

    Distinct from WarehouseLoadFailedError: the load outcome is unknown,
    only the watch was abandoned.
    """
    error_code = ErrorCode.MONITORING_TIMEOUT

    def __init__(self, message: str, attempts: int = 0, last_state: str = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_state = last_state


class PreviewQueryError(WarehouseError):
    """
    The preview read query failed.
    """
    error_code = ErrorCode.QUERY_FAILED


class ConfigurationError(Exception):
    """
    System configuration error.

    These are typically fatal and indicate misconfiguration
    that prevents the system from operating.

    Examples:
        - Non-numeric PORT
        - Unwritable work root
    """
    error_code = ErrorCode.CONFIG_ERROR
