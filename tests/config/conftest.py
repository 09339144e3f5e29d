"""
Config test fixtures: clean environment via monkeypatch.
"""

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "PORT", "DEBUG_LOGGING", "GEOINGEST_WORK_ROOT", "GEOINGEST_MAX_UPLOAD_MB",
        "OGR2OGR_PATH", "GEOINGEST_TARGET_SRS", "GEOINGEST_PREVIEW_FEATURES",
        "GEOINGEST_DEFAULT_BUCKET", "GEOINGEST_STAGING_PREFIX", "BIGQUERY_LOCATION",
        "BIGQUERY_POLL_INTERVAL_SECONDS", "BIGQUERY_TRANSIENT_BACKOFF_SECONDS",
        "BIGQUERY_MAX_POLL_ATTEMPTS", "BIGQUERY_REST_ENDPOINT", "BIGQUERY_REQUEST_TIMEOUT_SECONDS",
        "POSTGIS_DEFAULT_PORT", "POSTGIS_TABLE_PREFIX", "POSTGIS_CONNECT_TIMEOUT",
        "POSTGIS_CREATE_SPATIAL_INDEXES",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
