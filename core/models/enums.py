"""
Pure Enumeration Types for Core Framework.

Defines valid states for ingest jobs and the vocabulary shared by the
loaders and the warehouse monitor.
No business logic - pure type definitions only.

Exports:
    JobStatus: Job state enumeration
    JobLogLevel: Job-visible log entry level
    DestinationKind: Where converted records are loaded
    SchemaFieldType: Warehouse column types
    SchemaFieldMode: Warehouse column modes
    ExternalJobState: Warehouse load job states
"""

from enum import Enum


class JobStatus(str, Enum):
    """
    Valid status values for jobs.

    State transitions:
    - PENDING -> CONVERTING -> LOADING -> MONITORING -> COMPLETED (warehouse)
    - PENDING -> CONVERTING -> LOADING -> COMPLETED (relational)
    - any non-terminal -> FAILED
    """

    PENDING = "pending"
    CONVERTING = "converting"
    LOADING = "loading"
    MONITORING = "monitoring"
    COMPLETED = "completed"
    FAILED = "failed"


class JobLogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"



class DestinationKind(str, Enum):
    BIGQUERY = "bigquery"
    POSTGRES = "postgres"


class SchemaFieldType(str, Enum):
    """
    BigQuery column types accepted in a caller-supplied schema.
    """

    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    TIMESTAMP = "TIMESTAMP"
    GEOGRAPHY = "GEOGRAPHY"
    JSON = "JSON"


class SchemaFieldMode(str, Enum):
    REQUIRED = "REQUIRED"
    NULLABLE = "NULLABLE"
    REPEATED = "REPEATED"


class ExternalJobState(str, Enum):
    """
    Load job states as reported by BigQuery (job.state / status.state).
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
