"""
Main Application Configuration - Composition Root.

Composes the domain configurations:
    - vector: ogr2ogr conversion settings
    - warehouse: BigQuery staging, load and monitoring settings
    - database: PostGIS destination defaults

and holds the process-level settings (HTTP port, work root, upload limit).

Exports:
    AppConfig: Main application configuration
"""

import os
import tempfile
from typing import Optional
from pydantic import BaseModel, Field

from exceptions import ConfigurationError
from .defaults import AppDefaults
from .vector_config import VectorConfig
from .warehouse_config import WarehouseConfig
from .database_config import DatabaseConfig


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.

    Usage:
        from config import get_config
        config = get_config()

        config.vector.ogr2ogr_path
        config.warehouse.max_poll_attempts
        config.database.default_port
    """

    # ========================================================================
    # Process Settings
    # ========================================================================

    port: int = Field(
        default=AppDefaults.PORT,
        ge=1,
        le=65535,
        description="HTTP listen port (PORT)"
    )

    debug_logging: bool = Field(
        default=AppDefaults.DEBUG_LOGGING,
        description="Emit DEBUG level log records (DEBUG_LOGGING=true)"
    )

    work_root: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory under which per-job scratch directories are created"
    )

    max_upload_mb: int = Field(
        default=AppDefaults.MAX_UPLOAD_MB,
        ge=1,
        description="Largest accepted multipart upload in megabytes"
    )

    # ========================================================================
    # Domain Configurations (Composition Pattern)
    # ========================================================================

    vector: VectorConfig = Field(
        default_factory=VectorConfig.from_environment,
        description="Geometry conversion configuration"
    )

    warehouse: WarehouseConfig = Field(
        default_factory=WarehouseConfig.from_environment,
        description="BigQuery staging, load and monitoring configuration"
    )

    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig.from_environment,
        description="PostGIS destination defaults"
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def debug_dict(self) -> dict:
        """Sanitized view for logs and the health endpoint."""
        return {
            'port': self.port,
            'debug_logging': self.debug_logging,
            'work_root': self.work_root,
            'max_upload_mb': self.max_upload_mb,
            'vector': self.vector.model_dump(),
            'warehouse': {
                'default_bucket': self.warehouse.default_bucket,
                'staging_prefix': self.warehouse.staging_prefix,
                'location': self.warehouse.location,
                'poll_interval_seconds': self.warehouse.poll_interval_seconds,
                'max_poll_attempts': self.warehouse.max_poll_attempts,
            },
            'database': self.database.model_dump(),
        }

    # ========================================================================
    # Factory Methods
    # ========================================================================

    @classmethod
    def from_environment(cls, work_root: Optional[str] = None):
        """Load all configs from environment."""
        return cls(
            port=_env_int("PORT", AppDefaults.PORT),
            debug_logging=os.environ.get("DEBUG_LOGGING", "false").lower() == "true",
            work_root=work_root or os.environ.get("GEOINGEST_WORK_ROOT") or tempfile.gettempdir(),
            max_upload_mb=_env_int("GEOINGEST_MAX_UPLOAD_MB", AppDefaults.MAX_UPLOAD_MB),
            vector=VectorConfig.from_environment(),
            warehouse=WarehouseConfig.from_environment(),
            database=DatabaseConfig.from_environment()
        )
