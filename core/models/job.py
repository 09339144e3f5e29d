"""
Job Models - In-Memory Job Registry Boundary

JobRecord is the snapshot the job store hands to callers and subscribers.
It is a plain pydantic model; every mutation goes through JobStore so the
state machine and progress rules in core.logic are applied in one place.

Exports:
    JobLogEntry: One job-visible log line
    JobRecord: Job state snapshot
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field

from .enums import JobStatus, JobLogLevel
from .descriptors import SourceDescriptor, DestinationDescriptor
from .schema import SchemaField


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobLogEntry(BaseModel):
    """
    Job-visible log line (separate from process logs).
    """

    timestamp: datetime = Field(default_factory=_utcnow)
    level: JobLogLevel = JobLogLevel.INFO
    message: str


class JobRecord(BaseModel):
    """
    Snapshot of one ingest job.

    Invariants maintained by JobStore:
    - status only moves along can_job_transition()
    - progress never decreases
    - logs only grow
    - error/error_code are set once, on the transition to FAILED
    """

    job_id: str = Field(..., description="uuid4 hex, never reused")
    caller_id: str = Field(default="system")

    status: JobStatus = Field(default=JobStatus.PENDING)
    progress: int = Field(default=0, ge=0, le=100)

    source: SourceDescriptor
    destination: DestinationDescriptor
    schema_fields: List[SchemaField] = Field(default_factory=list)

    logs: List[JobLogEntry] = Field(default_factory=list)

    # Destination results
    external_job_ref: Optional[str] = None
    tables: List[str] = Field(default_factory=list)
    record_count: Optional[int] = None

    # Failure
    error: Optional[str] = None
    error_code: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def file_name(self) -> str:
        return self.source.file_name

    @property
    def target_table(self) -> Optional[str]:
        return self.destination.target_table

    def to_api_dict(self, include_logs: bool = True) -> dict:
        """JSON-ready representation for the HTTP layer."""
        data = self.model_dump(mode="json", exclude={"logs"} if not include_logs else None)
        data["file_name"] = self.file_name
        data["target_table"] = self.target_table
        return data
