"""
Core utility functions.
"""

import time
import uuid
from datetime import datetime, timezone


def generate_job_id() -> str:
    """
    Generate a new opaque job ID.

    Returns:
        32-character uuid4 hex string; never reused within a process
    """
    return uuid.uuid4().hex


def epoch_millis() -> int:
    """Milliseconds since the epoch, used to make default names unique."""
    return int(time.time() * 1000)


def utc_date_folder(now: datetime = None) -> str:
    """YYYY-MM-DD folder name for staged objects."""
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
