"""
Core Business Logic Package.

Contains business logic that operates on pure data models.
Separated from models to maintain clean architecture.

Exports:
    State transitions: can_job_transition, is_job_terminal
    Progress: ProgressCheckpoint, next_progress
"""

from .transitions import (
    can_job_transition,
    get_job_terminal_states,
    get_job_active_states,
    is_job_terminal,
    ProgressCheckpoint,
    next_progress
)

__all__ = [
    'can_job_transition',
    'get_job_terminal_states',
    'get_job_active_states',
    'is_job_terminal',
    'ProgressCheckpoint',
    'next_progress'
]
