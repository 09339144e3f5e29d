"""
Configuration Defaults - Single source of truth for all default values.

Organization:
    - AppDefaults: Process-level settings (port, work root, upload limit)
    - VectorDefaults: Geometry conversion settings
    - WarehouseDefaults: BigQuery load and monitoring settings
    - DatabaseDefaults: Relational (PostGIS) destination settings

Usage:
    from config.defaults import WarehouseDefaults

    # In Pydantic Field definitions:
    max_poll_attempts: int = Field(default=WarehouseDefaults.MAX_POLL_ATTEMPTS, ...)
"""


# =============================================================================
# APPLICATION DEFAULTS
# =============================================================================

class AppDefaults:
    """
    Process-level defaults.
    """

    PORT = 8080
    DEBUG_LOGGING = False
    MAX_UPLOAD_MB = 500
    WORK_DIR_PREFIX = "geoingest-"


# =============================================================================
# VECTOR CONVERSION DEFAULTS
# =============================================================================

class VectorDefaults:
    """
    Geometry conversion defaults.

    ogr2ogr reprojects to a single geographic CRS, enforces RFC 7946 winding
    order and repairs invalid geometries on every member.
    """

    OGR2OGR_PATH = "ogr2ogr"
    TARGET_SRS = "EPSG:4326"
    PREVIEW_FEATURE_LIMIT = 1000


# =============================================================================
# WAREHOUSE DEFAULTS (BigQuery)
# =============================================================================

class WarehouseDefaults:
    """
    BigQuery load and monitoring defaults.
    """

    STAGING_PREFIX = "converted"
    POLL_INTERVAL_SECONDS = 5.0
    TRANSIENT_BACKOFF_SECONDS = 3.0
    MAX_POLL_ATTEMPTS = 30
    REST_ENDPOINT = "https://bigquery.googleapis.com/bigquery/v2"
    REQUEST_TIMEOUT_SECONDS = 60


# =============================================================================
# DATABASE DEFAULTS (PostgreSQL / PostGIS)
# =============================================================================

class DatabaseDefaults:
    """
    Relational destination defaults.
    """

    PORT = 5432
    TABLE_PREFIX = "imported_data"
    CONNECT_TIMEOUT_SECONDS = 10
    CREATE_SPATIAL_INDEXES = True
