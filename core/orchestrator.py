"""
Job Orchestrator - Ingest Job Lifecycle.

Validates submissions, creates jobs in the JobStore and runs each job's
pipeline as one supervised asyncio task:

    PENDING -> CONVERTING -> LOADING -> MONITORING -> COMPLETED   (warehouse)
    PENDING -> CONVERTING -> LOADING -> COMPLETED                 (relational)
    any non-terminal -> FAILED

Failure handling:
    - the pipeline coroutine has exactly one top-level ``except Exception``
      which logs and transitions the job to FAILED
    - a done-callback finalises jobs whose task was cancelled or died with
      a BaseException
    - one job's failure never touches another job

Exports:
    JobOrchestrator: Job lifecycle entry point
"""

import asyncio
import os
import shutil
import tempfile
from functools import partial
from typing import Callable, Dict, List, Optional

from config import get_config
from config.defaults import AppDefaults
from core.errors import ErrorCode
from core.job_store import JobChangeCallback, JobStore
from core.logic.transitions import ProgressCheckpoint, is_job_terminal, next_progress
from core.models import (
    GEOMETRY_FIELD_NAME,
    ExternalJobStatus,
    JobLogLevel,
    JobRecord,
    JobStatus,
    LoadOutcome,
    LocalUploadSource,
    ObjectStoreSource,
    SchemaField,
    WarehouseDestination,
)
from core.utils import generate_job_id
from core.validation import validate_destination, validate_schema, validate_source
from exceptions import (
    BusinessLogicError,
    ContractViolationError,
    ResourceNotFoundError,
    RetryNotSupportedError,
)
from util_logger import LoggerFactory, ComponentType


RETRY_NOT_SUPPORTED_MESSAGE = "Retry not supported - original file not available. Please upload the file again."


def _with_geometry_field(schema: Optional[List[SchemaField]]) -> List[SchemaField]:
    """Caller schema plus a trailing geometry field when it has none; empty stays empty."""
    fields = list(schema or [])
    if fields and not any(field.name == GEOMETRY_FIELD_NAME for field in fields):
        fields.append(SchemaField.geometry())
    return fields


class JobOrchestrator:
    """
    Owns the job lifecycle for one process.

    Collaborators are injectable so tests can replace ogr2ogr, BigQuery,
    GCS and PostgreSQL with fakes:

        orchestrator = JobOrchestrator(
            converter=FakeConverter(),
            loader_factory=lambda destination: FakeLoader(),
            monitor_factory=lambda destination, on_error: FakeMonitor(),
        )
        job = orchestrator.submit(source, destination)   # inside a running loop
        final = await orchestrator.wait(job.job_id)
    """

    def __init__(
        self,
        store: Optional[JobStore] = None,
        converter=None,
        loader_factory: Optional[Callable] = None,
        monitor_factory: Optional[Callable] = None,
        object_store=None,
        config=None
    ):
        self.config = config or get_config()
        self.store = store or JobStore()
        self._converter = converter
        self._loader_factory = loader_factory
        self._monitor_factory = monitor_factory
        self._object_store = object_store
        self._tasks: Dict[str, asyncio.Task] = {}
        self.logger = LoggerFactory.create_logger(ComponentType.CONTROLLER, "JobOrchestrator")

    # ========================================================================
    # Collaborators (lazily built from config)
    # ========================================================================

    @property
    def converter(self):
        if self._converter is None:
            from vector.ogr_converter import Ogr2OgrConverter
            self._converter = Ogr2OgrConverter.from_config(self.config.vector)
        return self._converter

    @property
    def object_store(self):
        if self._object_store is None:
            from infrastructure.gcs import ObjectStore
            self._object_store = ObjectStore()
        return self._object_store

    def _create_loader(self, destination):
        if self._loader_factory is not None:
            return self._loader_factory(destination)
        from services.loaders import create_loader
        return create_loader(destination, self.config, object_store=self._object_store)

    def _create_monitor(self, destination: WarehouseDestination, on_transient_error):
        if self._monitor_factory is not None:
            return self._monitor_factory(destination, on_transient_error)
        from infrastructure.bigquery import WarehouseClient
        from services.warehouse_monitor import WarehouseJobMonitor
        client = WarehouseClient(destination.project_id, self.config.warehouse.location)
        return WarehouseJobMonitor.from_config(
            client.get_job_status,
            self.config.warehouse,
            on_transient_error=on_transient_error
        )

    # ========================================================================
    # Public operations
    # ========================================================================

    def submit(
        self,
        source,
        destination,
        schema: Optional[List[SchemaField]] = None,
        caller_id: str = "system"
    ) -> JobRecord:
        """
        Validate, create a PENDING job and launch its pipeline.

        Must be called from a running event loop.

        Raises:
            ValidationError: Malformed request; no job is created
        """
        validate_source(source)
        validate_destination(destination)
        validate_schema(schema)

        loop = asyncio.get_running_loop()

        record = JobRecord(
            job_id=generate_job_id(),
            caller_id=caller_id or "system",
            source=source,
            destination=destination,
            schema_fields=_with_geometry_field(schema),
        )
        snapshot = self.store.create(record)
        self.store.append_log(snapshot.job_id, f"Job created for {snapshot.file_name} -> {destination.kind}")

        task = loop.create_task(self._run(snapshot.job_id), name=f"ingest-{snapshot.job_id}")
        self._tasks[snapshot.job_id] = task
        task.add_done_callback(partial(self._on_task_done, snapshot.job_id))

        self.logger.info(
            f"Submitted job {snapshot.job_id} ({source.kind} -> {destination.kind}) for caller {record.caller_id}"
        )
        return self.store.get(snapshot.job_id)

    def list(self, caller_id: Optional[str] = None) -> List[JobRecord]:
        return self.store.list(caller_id)

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self.store.get(job_id)

    def subscribe(self, job_id: str, on_change: JobChangeCallback) -> Callable[[], None]:
        if self.store.get(job_id) is None:
            raise ResourceNotFoundError(f"Job not found: {job_id}")
        return self.store.subscribe(job_id, on_change)

    def retry(self, job_id: str) -> JobRecord:
        """
        Retry is not supported: the source payload is not retained.

        Raises:
            ResourceNotFoundError: Unknown job
            RetryNotSupportedError: Always, for known jobs
        """
        job = self.store.get(job_id)
        if job is None:
            raise ResourceNotFoundError(f"Job not found: {job_id}")
        if not is_job_terminal(job.status):
            raise RetryNotSupportedError("Job is already in progress")
        raise RetryNotSupportedError(RETRY_NOT_SUPPORTED_MESSAGE)

    def delete(self, job_id: str) -> bool:
        """Remove a job; a still-running pipeline is cancelled. Idempotent."""
        task = self._tasks.get(job_id)
        removed = self.store.delete(job_id)
        if task is not None and not task.done():
            task.cancel()
        if removed:
            self.logger.info(f"Deleted job {job_id}")
        return removed

    def stats(self) -> Dict[str, int]:
        return self.store.stats()

    async def wait(self, job_id: str) -> Optional[JobRecord]:
        """Wait for a job's pipeline task to finish and return the final snapshot."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait([task])
        return self.store.get(job_id)

    async def shutdown(self, cancel: bool = False) -> None:
        """Await (or cancel and await) every outstanding pipeline task."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return
        self.logger.info(f"Waiting for {len(tasks)} running job(s)")
        if cancel:
            for task in tasks:
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ========================================================================
    # Job mutations
    # ========================================================================

    def _log(self, job_id: str, message: str, level: JobLogLevel = JobLogLevel.INFO) -> None:
        self.store.append_log(job_id, message, level)

    def _set_status(self, job_id: str, status: JobStatus, progress: int) -> None:
        job = self.store.get(job_id)
        if job is None:
            return
        effective = next_progress(job.progress, progress)
        self.store.update(
            job_id,
            status=status,
            progress=effective,
            message=f"Status updated: {status.value} ({effective}%)"
        )

    def _set_progress(self, job_id: str, progress: int, message: Optional[str] = None, **fields) -> None:
        self.store.update(job_id, progress=progress, message=message, **fields)

    def _fail(self, job_id: str, error: BaseException) -> None:
        job = self.store.get(job_id)
        if job is None or is_job_terminal(job.status):
            return

        message = getattr(error, "message", None) or str(error) or type(error).__name__
        if isinstance(error, BusinessLogicError):
            error_code = error.error_code
        elif isinstance(error, asyncio.CancelledError):
            error_code = ErrorCode.UNEXPECTED_ERROR
            message = "Job cancelled"
        else:
            error_code = getattr(error, "error_code", ErrorCode.UNEXPECTED_ERROR)

        self.store.update(
            job_id,
            status=JobStatus.FAILED,
            error=message,
            error_code=ErrorCode(error_code).value,
            message=f"Status updated: {JobStatus.FAILED.value} ({job.progress}%)"
        )
        self.store.append_log(job_id, f"Error: {message}", JobLogLevel.ERROR)

    def _on_task_done(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        if task.cancelled():
            self.logger.warning(f"Pipeline for job {job_id} was cancelled")
            self._fail(job_id, asyncio.CancelledError())
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Pipeline for job {job_id} died: {error!r}")
            self._fail(job_id, error)

    # ========================================================================
    # Pipeline
    # ========================================================================

    async def _acquire_source(self, job: JobRecord, work_dir: str) -> str:
        source = job.source
        if isinstance(source, LocalUploadSource):
            if not os.path.isfile(source.path):
                raise ResourceNotFoundError(f"Uploaded file not found: {source.file_name}")
            return source.path
        if isinstance(source, ObjectStoreSource):
            self._log(job.job_id, f"Downloading {source.uri}")
            local_path = os.path.join(work_dir, source.file_name or "source.zip")
            return await asyncio.to_thread(self.object_store.download_blob, source.bucket, source.path, local_path)
        raise ContractViolationError(f"Unsupported source type {type(source).__name__}")

    async def _run(self, job_id: str) -> None:
        from services.conversion_service import ConversionService
        from services.loaders import LoadContext

        job = self.store.get(job_id)
        if job is None:
            return

        job_logger = LoggerFactory.create_with_context(
            ComponentType.CONTROLLER,
            "JobOrchestrator",
            job_id=job_id,
            destination=job.destination.kind,
            caller_id=job.caller_id
        )

        work_dir = None
        try:
            os.makedirs(self.config.work_root, exist_ok=True)
            work_dir = tempfile.mkdtemp(prefix=f"{AppDefaults.WORK_DIR_PREFIX}{job_id[:8]}-", dir=self.config.work_root)

            self._set_status(job_id, JobStatus.CONVERTING, ProgressCheckpoint.STARTED)
            archive_path = await self._acquire_source(job, work_dir)
            self._set_progress(job_id, ProgressCheckpoint.SOURCE_ACQUIRED, f"Source acquired: {job.file_name}")

            def report_diagnostics(result):
                self._log(
                    job_id,
                    f"Converter warnings for {os.path.basename(result.source_path)}: {result.diagnostics}",
                    JobLogLevel.WARN
                )

            results = await ConversionService(self.converter).convert_archive(
                archive_path, work_dir, on_diagnostics=report_diagnostics
            )
            self._set_progress(job_id, ProgressCheckpoint.CONVERTED, f"Converted {len(results)} file(s)")

            self._set_status(job_id, JobStatus.LOADING, ProgressCheckpoint.CONVERTED)
            context = LoadContext(
                job_id=job_id,
                work_dir=work_dir,
                file_name=job.file_name,
                schema_fields=list(job.schema_fields),
                staging_bucket=job.source.bucket if isinstance(job.source, ObjectStoreSource) else None,
                on_log=partial(self._log, job_id)
            )
            outcome = await self._create_loader(job.destination).load(results, context)
            if not isinstance(outcome, LoadOutcome):
                raise ContractViolationError(f"Loader returned {type(outcome).__name__}, expected LoadOutcome")

            persisted = {}
            if outcome.tables:
                persisted["tables"] = outcome.tables
            if outcome.schema_fields:
                persisted["schema_fields"] = outcome.schema_fields
            if outcome.external_job_ref:
                persisted["external_job_ref"] = outcome.external_job_ref
                persisted["record_count"] = outcome.record_count
            self._set_progress(job_id, ProgressCheckpoint.PERSISTED, "Data persisted to destination", **persisted)

            if isinstance(job.destination, WarehouseDestination):
                await self._monitor(job_id, job.destination, outcome.external_job_ref)

            self._set_status(job_id, JobStatus.COMPLETED, ProgressCheckpoint.DONE)
            job_logger.info(f"Job {job_id} completed")

        except Exception as e:
            job_logger.error(f"Job {job_id} failed: {e}", exc_info=True)
            self._fail(job_id, e)

        finally:
            self._cleanup(job, work_dir, job_logger)

    async def _monitor(self, job_id: str, destination: WarehouseDestination, job_ref: Optional[str]) -> None:
        if not job_ref:
            raise ContractViolationError("Warehouse loader returned no load job reference")

        self._set_status(job_id, JobStatus.MONITORING, ProgressCheckpoint.PERSISTED)

        def on_status(status: ExternalJobStatus, attempt: int) -> None:
            self._log(job_id, f"BigQuery job status: {status.state.value} (attempt {attempt})")

        def on_transient_error(error: Exception, attempt: int) -> None:
            self._log(job_id, f"Error checking BigQuery job status (attempt {attempt}): {error}", JobLogLevel.WARN)

        monitor = self._create_monitor(destination, on_transient_error)
        await monitor.wait_for_completion(job_ref, on_status=on_status)
        self._set_progress(job_id, ProgressCheckpoint.MONITORED, f"BigQuery job {job_ref} completed")

    def _cleanup(self, job: JobRecord, work_dir: Optional[str], job_logger) -> None:
        if work_dir:
            try:
                shutil.rmtree(work_dir)
            except OSError as e:
                job_logger.warning(f"Failed to remove work directory {work_dir}: {e}")

        source = job.source
        if isinstance(source, LocalUploadSource) and source.delete_after:
            try:
                if os.path.exists(source.path):
                    os.remove(source.path)
            except OSError as e:
                job_logger.warning(f"Failed to remove upload {source.path}: {e}")
