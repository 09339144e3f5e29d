"""
State Transition Logic for Jobs.

Contains business rules for valid state transitions and progress
checkpoints. Separated from data models for clean architecture.

Exports:
    can_job_transition: Check if job state transition is valid
    get_job_terminal_states: Get terminal states for jobs
    get_job_active_states: Get non-terminal states for jobs
    is_job_terminal: Check if job is in terminal state
    ProgressCheckpoint: Progress values reported at pipeline milestones
    next_progress: Apply the never-decrease rule to a progress update

Dependencies:
    core.models.enums: JobStatus
"""

from typing import List, Optional

from ..models.enums import JobStatus


class ProgressCheckpoint:
    """
    Progress percentages reported as the pipeline reaches each milestone.
    """

    ACCEPTED = 0
    STARTED = 10
    SOURCE_ACQUIRED = 20
    CONVERTED = 50
    PERSISTED = 70
    MONITORED = 90
    DONE = 100


def can_job_transition(current: JobStatus, target: JobStatus) -> bool:
    """
    Check if a job can transition from current to target status.

    Args:
        current: Current job status
        target: Target job status

    Returns:
        True if transition is valid, False otherwise
    """
    # Same status is always allowed (no-op)
    if current == target:
        return True

    # Define valid transitions
    transitions = {
        JobStatus.PENDING: [JobStatus.CONVERTING, JobStatus.FAILED],
        JobStatus.CONVERTING: [JobStatus.LOADING, JobStatus.FAILED],
        JobStatus.LOADING: [
            JobStatus.MONITORING,
            JobStatus.COMPLETED,
            JobStatus.FAILED
        ],
        JobStatus.MONITORING: [JobStatus.COMPLETED, JobStatus.FAILED],
        JobStatus.COMPLETED: [],  # Terminal state
        JobStatus.FAILED: []  # Terminal state
    }

    return target in transitions.get(current, [])


def get_job_terminal_states() -> List[JobStatus]:
    """
    Get list of terminal states for jobs.

    Returns:
        List of terminal job statuses
    """
    return [
        JobStatus.COMPLETED,
        JobStatus.FAILED
    ]


def get_job_active_states() -> List[JobStatus]:
    """
    Get list of active (non-terminal) states for jobs.

    Returns:
        List of active job statuses
    """
    return [
        JobStatus.PENDING,
        JobStatus.CONVERTING,
        JobStatus.LOADING,
        JobStatus.MONITORING
    ]


def is_job_terminal(status: JobStatus) -> bool:
    """
    Check if job status is terminal.

    Args:
        status: Job status to check

    Returns:
        True if status is terminal, False otherwise
    """
    return status in get_job_terminal_states()


def next_progress(current: int, requested: Optional[int]) -> int:
    """
    Progress after an update: never lower than the current value, clamped to 0-100.
    """
    if requested is None:
        return current
    return max(current, min(100, max(0, int(requested))))
