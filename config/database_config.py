"""
PostgreSQL/PostGIS Destination Configuration.

Connection parameters (host, database, user, password) are supplied per
request by the caller; this module only holds the defaults applied to them.

Exports:
    DatabaseConfig: Relational destination defaults
"""

import os
from pydantic import BaseModel, Field

from .defaults import DatabaseDefaults


# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================

class DatabaseConfig(BaseModel):
    """
    Relational destination defaults.
    """

    default_port: int = Field(
        default=DatabaseDefaults.PORT,
        ge=1,
        le=65535,
        description="Port used when the caller omits one"
    )

    table_prefix: str = Field(
        default=DatabaseDefaults.TABLE_PREFIX,
        description="Base table name prefix when the caller omits one (suffixed with epoch ms)"
    )

    connect_timeout_seconds: int = Field(
        default=DatabaseDefaults.CONNECT_TIMEOUT_SECONDS,
        ge=1,
        description="psycopg connect_timeout"
    )

    create_spatial_indexes: bool = Field(
        default=DatabaseDefaults.CREATE_SPATIAL_INDEXES,
        description="Create a GIST index on the geometry column of every table"
    )

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            default_port=int(os.environ.get("POSTGIS_DEFAULT_PORT", str(DatabaseDefaults.PORT))),
            table_prefix=os.environ.get("POSTGIS_TABLE_PREFIX", DatabaseDefaults.TABLE_PREFIX),
            connect_timeout_seconds=int(os.environ.get(
                "POSTGIS_CONNECT_TIMEOUT", str(DatabaseDefaults.CONNECT_TIMEOUT_SECONDS)
            )),
            create_spatial_indexes=os.environ.get(
                "POSTGIS_CREATE_SPATIAL_INDEXES", "true"
            ).lower() == "true"
        )
