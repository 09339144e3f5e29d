"""
AppConfig environment loading tests.
"""

import tempfile

import pytest

from config import AppConfig, reset_config, get_config, debug_config
from config.defaults import AppDefaults, DatabaseDefaults, VectorDefaults, WarehouseDefaults
from exceptions import ConfigurationError


class TestDefaults:

    def test_defaults_without_environment(self, clean_env):
        config = AppConfig.from_environment()

        assert config.port == AppDefaults.PORT
        assert config.debug_logging is False
        assert config.work_root == tempfile.gettempdir()
        assert config.max_upload_bytes == AppDefaults.MAX_UPLOAD_MB * 1024 * 1024
        assert config.vector.ogr2ogr_path == VectorDefaults.OGR2OGR_PATH
        assert config.vector.target_srs == "EPSG:4326"
        assert config.warehouse.default_bucket is None
        assert config.warehouse.max_poll_attempts == WarehouseDefaults.MAX_POLL_ATTEMPTS
        assert config.database.default_port == DatabaseDefaults.PORT
        assert config.database.create_spatial_indexes is True


class TestEnvironmentOverrides:

    def test_overrides(self, clean_env):
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("DEBUG_LOGGING", "true")
        clean_env.setenv("GEOINGEST_WORK_ROOT", "/srv/work")
        clean_env.setenv("OGR2OGR_PATH", "/opt/gdal/bin/ogr2ogr")
        clean_env.setenv("GEOINGEST_DEFAULT_BUCKET", "staging")
        clean_env.setenv("BIGQUERY_MAX_POLL_ATTEMPTS", "60")
        clean_env.setenv("BIGQUERY_LOCATION", "EU")
        clean_env.setenv("POSTGIS_CREATE_SPATIAL_INDEXES", "false")

        config = AppConfig.from_environment()

        assert config.port == 9000
        assert config.debug_logging is True
        assert config.work_root == "/srv/work"
        assert config.vector.ogr2ogr_path == "/opt/gdal/bin/ogr2ogr"
        assert config.warehouse.default_bucket == "staging"
        assert config.warehouse.max_poll_attempts == 60
        assert config.warehouse.location == "EU"
        assert config.database.create_spatial_indexes is False

    def test_empty_bucket_means_none(self, clean_env):
        clean_env.setenv("GEOINGEST_DEFAULT_BUCKET", "")
        assert AppConfig.from_environment().warehouse.default_bucket is None

    def test_non_integer_port(self, clean_env):
        clean_env.setenv("PORT", "eighty")
        with pytest.raises(ConfigurationError, match="PORT"):
            AppConfig.from_environment()


class TestSingleton:

    def test_get_config_is_cached_until_reset(self, clean_env):
        reset_config()
        try:
            first = get_config()
            assert get_config() is first
            reset_config()
            assert get_config() is not first
        finally:
            reset_config()

    def test_debug_config_has_no_secrets(self, clean_env):
        reset_config()
        try:
            info = debug_config()
            assert set(info) >= {"port", "work_root", "vector", "warehouse", "database"}
        finally:
            reset_config()
