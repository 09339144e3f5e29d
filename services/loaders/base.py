"""
Destination Loader Protocol.

A loader persists the converted members of one job into its destination.
Loaders don't inherit from this class - it's a Protocol for type checking
and documentation.

Exports:
    DestinationLoader: Loader protocol
    LoadContext: Per-job inputs shared by every loader
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, runtime_checkable

from core.models import ConversionResult, JobLogLevel, LoadOutcome, SchemaField


JobLogCallback = Callable[[str, JobLogLevel], None]


def _discard_log(message: str, level: JobLogLevel = JobLogLevel.INFO) -> None:
    return None


@dataclass
class LoadContext:
    """
    Inputs a loader needs besides the conversion results.

    Attributes:
        job_id: Owning job (or a request id for synchronous conversions)
        work_dir: Job-scoped scratch directory
        file_name: Original archive name, used to name staged objects
        schema_fields: Caller's explicit schema; empty means auto-detect
        staging_bucket: Source bucket of the job, preferred for staging
        on_log: Receives job-visible log lines
    """

    job_id: str
    work_dir: str
    file_name: str = ""
    schema_fields: List[SchemaField] = field(default_factory=list)
    staging_bucket: Optional[str] = None
    on_log: JobLogCallback = _discard_log

    def log(self, message: str, level: JobLogLevel = JobLogLevel.INFO) -> None:
        self.on_log(message, level)


@runtime_checkable
class DestinationLoader(Protocol):
    """
    Protocol defining the interface for destination loaders.

    Example:
        class RelationalLoader:  # No inheritance!

            async def load(self, results, context) -> LoadOutcome:
                ...
    """

    async def load(self, results: List[ConversionResult], context: LoadContext) -> LoadOutcome:
        """
        Persist every converted member.

        Returns:
            LoadOutcome describing what was created or submitted

        Raises:
            BusinessLogicError subclass on destination failure
        """
        ...
