"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    JobRecord, JobLogEntry: Job snapshot models
    JobStatus, JobLogLevel, DestinationKind: Enums
    SchemaField, SchemaFieldType, SchemaFieldMode: Warehouse schema
    LocalUploadSource, ObjectStoreSource: Source descriptors
    WarehouseDestination, RelationalDestination: Destination descriptors
    ConversionResult, LoadOutcome, ExternalJobStatus, ExternalJobState: Results
"""

from .enums import (
    JobStatus,
    JobLogLevel,
    DestinationKind,
    SchemaFieldType,
    SchemaFieldMode,
    ExternalJobState
)
from .schema import SchemaField, GEOMETRY_FIELD_NAME
from .descriptors import (
    LocalUploadSource,
    ObjectStoreSource,
    SourceDescriptor,
    WarehouseDestination,
    RelationalDestination,
    DestinationDescriptor
)
from .results import ConversionResult, LoadOutcome, ExternalJobStatus
from .job import JobRecord, JobLogEntry

__all__ = [
    'JobStatus',
    'JobLogLevel',
    'DestinationKind',
    'SchemaFieldType',
    'SchemaFieldMode',
    'ExternalJobState',
    'SchemaField',
    'GEOMETRY_FIELD_NAME',
    'LocalUploadSource',
    'ObjectStoreSource',
    'SourceDescriptor',
    'WarehouseDestination',
    'RelationalDestination',
    'DestinationDescriptor',
    'ConversionResult',
    'LoadOutcome',
    'ExternalJobStatus',
    'JobRecord',
    'JobLogEntry',
]
