"""
Unit test fixtures: factory-built models and pipeline fakes.
"""

import pytest

from tests.factories.model_factories import (
    make_job_record,
    make_relational_destination,
    make_warehouse_destination,
)


@pytest.fixture
def job_record_data():
    """Return randomized job record data dict."""
    return make_job_record()


@pytest.fixture
def warehouse_destination():
    return make_warehouse_destination()


@pytest.fixture
def relational_destination():
    return make_relational_destination()


@pytest.fixture
def app_config(tmp_path):
    """AppConfig with a per-test work root and no polling delays."""
    from config import AppConfig
    config = AppConfig(work_root=str(tmp_path / "work"))
    config.warehouse.poll_interval_seconds = 0
    config.warehouse.transient_backoff_seconds = 0
    config.warehouse.default_bucket = None
    return config
