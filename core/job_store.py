"""
Job Store - In-Memory Job Registry.

Owns every JobRecord in the process. All mutations go through this class so
the state machine, the never-decrease progress rule and the append-only log
are enforced in one place.

Locking:
    - one registry lock, held only for insert / remove / lookup
    - one re-entrant lock per job, held for the mutation AND for delivery of
      the resulting snapshot to subscribers, so subscribers observe changes
      in mutation order

Subscriber callbacks that raise are logged and otherwise ignored; they never
affect the job or other subscribers.

Exports:
    JobStore: Job registry
    JobChangeCallback: Subscriber signature
"""

import itertools
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from core.logic.transitions import can_job_transition, is_job_terminal, next_progress
from core.models import JobRecord, JobLogEntry, JobLogLevel, JobStatus
from exceptions import ContractViolationError
from util_logger import LoggerFactory, ComponentType


JobChangeCallback = Callable[[JobRecord], None]


class _JobEntry:
    __slots__ = ("record", "lock", "subscribers")

    def __init__(self, record: JobRecord):
        self.record = record
        self.lock = threading.RLock()
        self.subscribers: Dict[int, JobChangeCallback] = {}


class JobStore:
    """
    Registry of ingest jobs with per-job locking and ordered change delivery.

    Every read returns a deep copy; callers never hold a reference to the
    stored record.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._jobs: Dict[str, _JobEntry] = {}
        self._subscription_ids = itertools.count(1)
        self.logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "JobStore")

    # ========================================================================
    # Registry
    # ========================================================================

    def _entry(self, job_id: str) -> Optional[_JobEntry]:
        with self._registry_lock:
            return self._jobs.get(job_id)

    def create(self, record: JobRecord) -> JobRecord:
        """Insert a new job. Job ids are never reused."""
        entry = _JobEntry(record.model_copy(deep=True))
        with self._registry_lock:
            if record.job_id in self._jobs:
                raise ContractViolationError(f"Job {record.job_id} already exists")
            self._jobs[record.job_id] = entry
        self.logger.debug(f"Created job {record.job_id}")
        return self._snapshot(entry)

    def get(self, job_id: str) -> Optional[JobRecord]:
        entry = self._entry(job_id)
        if entry is None:
            return None
        with entry.lock:
            return self._snapshot(entry)

    def list(self, caller_id: Optional[str] = None) -> List[JobRecord]:
        """Jobs newest-first by created_at, optionally filtered by caller."""
        with self._registry_lock:
            entries = list(self._jobs.values())
        snapshots = []
        for entry in entries:
            with entry.lock:
                if caller_id is None or entry.record.caller_id == caller_id:
                    snapshots.append(self._snapshot(entry))
        snapshots.sort(key=lambda job: job.created_at, reverse=True)
        return snapshots

    def delete(self, job_id: str) -> bool:
        """Remove a job and its subscriptions. Returns False if it was already gone."""
        with self._registry_lock:
            entry = self._jobs.pop(job_id, None)
        if entry is None:
            return False
        with entry.lock:
            entry.subscribers.clear()
        self.logger.debug(f"Deleted job {job_id}")
        return True

    def stats(self) -> Dict[str, int]:
        with self._registry_lock:
            entries = list(self._jobs.values())
        statuses = []
        for entry in entries:
            with entry.lock:
                statuses.append(entry.record.status)
        completed = sum(1 for status in statuses if status == JobStatus.COMPLETED)
        failed = sum(1 for status in statuses if status == JobStatus.FAILED)
        return {
            'total': len(statuses),
            'completed': completed,
            'failed': failed,
            'in_progress': len(statuses) - completed - failed,
        }

    # ========================================================================
    # Subscriptions
    # ========================================================================

    def subscribe(self, job_id: str, on_change: JobChangeCallback) -> Callable[[], None]:
        """
        Register a callback for every subsequent mutation of a job.

        Returns:
            Unsubscribe function; safe to call more than once, and from
            inside the callback itself.
        """
        entry = self._entry(job_id)
        subscription_id = next(self._subscription_ids)
        if entry is not None:
            with entry.lock:
                entry.subscribers[subscription_id] = on_change

        def unsubscribe() -> None:
            if entry is None:
                return
            with entry.lock:
                entry.subscribers.pop(subscription_id, None)

        return unsubscribe

    def _notify(self, entry: _JobEntry) -> None:
        # Called with entry.lock held
        if not entry.subscribers:
            return
        snapshot = self._snapshot(entry)
        for subscription_id, callback in list(entry.subscribers.items()):
            if subscription_id not in entry.subscribers:
                continue
            try:
                callback(snapshot.model_copy(deep=True))
            except Exception as e:
                self.logger.warning(
                    f"Subscriber callback failed for job {snapshot.job_id}: {e}",
                    exc_info=True
                )

    # ========================================================================
    # Mutations
    # ========================================================================

    def update(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        progress: Optional[int] = None,
        message: Optional[str] = None,
        level: JobLogLevel = JobLogLevel.INFO,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        **fields: Any
    ) -> Optional[JobRecord]:
        """
        Apply one mutation atomically and deliver the resulting snapshot.

        Args:
            job_id: Job to mutate
            status: New status (must be a legal transition)
            progress: Requested progress; lower values are ignored
            message: Log entry appended after the other changes
            level: Level of the appended log entry
            error: Terminal error text (only with status FAILED)
            error_code: ErrorCode value accompanying error
            **fields: Other JobRecord fields (external_job_ref, tables,
                record_count, schema_fields)

        Returns:
            Snapshot after the mutation, or None if the job was deleted

        Raises:
            ContractViolationError: Illegal transition, or error outside FAILED
        """
        entry = self._entry(job_id)
        if entry is None:
            return None

        with entry.lock:
            record = entry.record
            now = datetime.now(timezone.utc)

            if status is not None and status != record.status:
                if not can_job_transition(record.status, status):
                    raise ContractViolationError(
                        f"Illegal job transition {record.status.value} -> {status.value} for {job_id}"
                    )
                record.status = status
                if is_job_terminal(status):
                    record.completed_at = now

            if error is not None:
                if record.status != JobStatus.FAILED:
                    raise ContractViolationError(f"Error set on job {job_id} outside FAILED")
                if record.error is None:
                    record.error = error
                    record.error_code = error_code

            record.progress = next_progress(record.progress, progress)

            for name, value in fields.items():
                if name not in JobRecord.model_fields:
                    raise ContractViolationError(f"Unknown job field: {name}")
                setattr(record, name, value)

            if message is not None:
                record.logs.append(JobLogEntry(timestamp=now, level=level, message=message))

            record.updated_at = now
            self._notify(entry)
            return self._snapshot(entry)

    def append_log(self, job_id: str, message: str, level: JobLogLevel = JobLogLevel.INFO) -> Optional[JobRecord]:
        return self.update(job_id, message=message, level=level)

    @staticmethod
    def _snapshot(entry: _JobEntry) -> JobRecord:
        return entry.record.model_copy(deep=True)
