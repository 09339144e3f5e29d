"""
Warehouse Job Monitor - Poll a BigQuery Load Job to Completion.

Three distinct outcomes:
    - DONE without errors: returns the final ExternalJobStatus
    - DONE with errors: WarehouseLoadFailedError (the destination rejected the data)
    - attempts exhausted: MonitoringTimeoutError (the outcome is unknown)

A poll that itself fails (network, API error) is a transient error: it is
reported through on_transient_error, followed by a shorter backoff, and
counts against the same attempt cap. If the last attempt is a failed poll
WarehouseStatusCheckError is raised.

Exports:
    WarehouseJobMonitor: Poller
"""

import asyncio
from typing import Awaitable, Callable, Optional

from core.models import ExternalJobStatus
from exceptions import (
    MonitoringTimeoutError,
    WarehouseLoadFailedError,
    WarehouseStatusCheckError,
)
from util_logger import LoggerFactory, ComponentType


StatusCallback = Callable[[ExternalJobStatus, int], None]
TransientErrorCallback = Callable[[Exception, int], None]


class WarehouseJobMonitor:
    """
    Polls WarehouseClient.get_job_status until a terminal outcome.

    Usage:
        monitor = WarehouseJobMonitor(client.get_job_status, poll_interval=5, max_attempts=30)
        final = await monitor.wait_for_completion(job_ref, on_status=report)
    """

    def __init__(
        self,
        get_status: Callable[[str], ExternalJobStatus],
        poll_interval: float = 5.0,
        transient_backoff: float = 3.0,
        max_attempts: int = 30,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_transient_error: Optional[TransientErrorCallback] = None
    ):
        self._get_status = get_status
        self.poll_interval = poll_interval
        self.transient_backoff = transient_backoff
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._on_transient_error = on_transient_error
        self.logger = LoggerFactory.create_logger(ComponentType.SERVICE, "WarehouseJobMonitor")

    @classmethod
    def from_config(cls, get_status, warehouse_config, **kwargs) -> "WarehouseJobMonitor":
        return cls(
            get_status,
            poll_interval=warehouse_config.poll_interval_seconds,
            transient_backoff=warehouse_config.transient_backoff_seconds,
            max_attempts=warehouse_config.max_poll_attempts,
            **kwargs
        )

    async def wait_for_completion(
        self,
        job_ref: str,
        on_status: Optional[StatusCallback] = None
    ) -> ExternalJobStatus:
        """
        Poll until DONE, a reported failure, or the attempt cap.

        Args:
            job_ref: BigQuery job id
            on_status: Called with each non-terminal status and the attempt number

        Raises:
            WarehouseLoadFailedError: DONE with errors
            WarehouseStatusCheckError: Final attempt was a failed poll
            MonitoringTimeoutError: Never reached DONE
        """
        last_state = None

        for attempt in range(1, self.max_attempts + 1):
            is_last = attempt == self.max_attempts
            try:
                status = await asyncio.to_thread(self._get_status, job_ref)
            except Exception as e:
                self.logger.warning(f"Status check {attempt}/{self.max_attempts} for {job_ref} failed: {e}")
                if self._on_transient_error is not None:
                    self._on_transient_error(e, attempt)
                if is_last:
                    raise WarehouseStatusCheckError(
                        f"Failed to check BigQuery job status after {attempt} attempts: {e}"
                    ) from e
                await self._sleep(self.transient_backoff)
                continue

            last_state = status.state.value

            if status.failed:
                raise WarehouseLoadFailedError(
                    f"BigQuery job failed: {', '.join(status.errors)}",
                    errors=status.errors
                )
            if status.is_done:
                self.logger.info(f"BigQuery job {job_ref} completed after {attempt} poll(s)")
                return status

            if on_status is not None:
                on_status(status, attempt)

            if not is_last:
                await self._sleep(self.poll_interval)

        raise MonitoringTimeoutError(
            "BigQuery job monitoring timeout",
            attempts=self.max_attempts,
            last_state=last_state
        )
