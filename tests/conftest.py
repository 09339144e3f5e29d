"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without ogr2ogr, Google credentials or a PostgreSQL server.
"""

import os
import sys
import tempfile

import pytest

# Add project root to sys.path so 'core', 'services', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables for a hermetic config.

    Work files go to a throwaway directory and no staging bucket is
    configured, so warehouse loads never try to reach GCS.
    """
    defaults = {
        "GEOINGEST_WORK_ROOT": tempfile.mkdtemp(prefix="geoingest-tests-"),
        "BIGQUERY_POLL_INTERVAL_SECONDS": "0",
        "BIGQUERY_TRANSIENT_BACKOFF_SECONDS": "0",
        "DEBUG_LOGGING": "false",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)
    os.environ.pop("GEOINGEST_DEFAULT_BUCKET", None)


@pytest.fixture
def fresh_config():
    """Re-read configuration from the environment for one test."""
    from config import reset_config, get_config
    reset_config()
    yield get_config
    reset_config()
