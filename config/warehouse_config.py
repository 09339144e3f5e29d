"""
BigQuery Warehouse Configuration.

Provides configuration for:
    - Staging bucket and path prefix for converted NDJSON
    - Load job location
    - Load job monitoring cadence and attempt cap
    - REST endpoint used for bearer-token preview queries

Exports:
    WarehouseConfig: Pydantic warehouse configuration model
"""

import os
from typing import Optional
from pydantic import BaseModel, Field

from config.defaults import WarehouseDefaults


class WarehouseConfig(BaseModel):
    """
    BigQuery load, monitoring and preview configuration.
    """

    default_bucket: Optional[str] = Field(
        default=None,
        description="GCS bucket used to stage converted NDJSON when the job has no source bucket"
    )

    staging_prefix: str = Field(
        default=WarehouseDefaults.STAGING_PREFIX,
        description="Path segment placed after the date folder for staged files"
    )

    location: Optional[str] = Field(
        default=None,
        description="BigQuery job location (US, EU, ...); None lets the client decide"
    )

    poll_interval_seconds: float = Field(
        default=WarehouseDefaults.POLL_INTERVAL_SECONDS,
        ge=0,
        description="Delay between load job status polls"
    )

    transient_backoff_seconds: float = Field(
        default=WarehouseDefaults.TRANSIENT_BACKOFF_SECONDS,
        ge=0,
        description="Delay after a failed status poll"
    )

    max_poll_attempts: int = Field(
        default=WarehouseDefaults.MAX_POLL_ATTEMPTS,
        ge=1,
        description="Total status polls before giving up with a monitoring timeout"
    )

    rest_endpoint: str = Field(
        default=WarehouseDefaults.REST_ENDPOINT,
        description="BigQuery REST API base URL"
    )

    request_timeout_seconds: int = Field(
        default=WarehouseDefaults.REQUEST_TIMEOUT_SECONDS,
        ge=1,
        description="HTTP timeout for REST preview queries"
    )

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            default_bucket=os.environ.get("GEOINGEST_DEFAULT_BUCKET") or None,
            staging_prefix=os.environ.get("GEOINGEST_STAGING_PREFIX", WarehouseDefaults.STAGING_PREFIX),
            location=os.environ.get("BIGQUERY_LOCATION") or None,
            poll_interval_seconds=float(os.environ.get(
                "BIGQUERY_POLL_INTERVAL_SECONDS", str(WarehouseDefaults.POLL_INTERVAL_SECONDS)
            )),
            transient_backoff_seconds=float(os.environ.get(
                "BIGQUERY_TRANSIENT_BACKOFF_SECONDS", str(WarehouseDefaults.TRANSIENT_BACKOFF_SECONDS)
            )),
            max_poll_attempts=int(os.environ.get(
                "BIGQUERY_MAX_POLL_ATTEMPTS", str(WarehouseDefaults.MAX_POLL_ATTEMPTS)
            )),
            rest_endpoint=os.environ.get("BIGQUERY_REST_ENDPOINT", WarehouseDefaults.REST_ENDPOINT),
            request_timeout_seconds=int(os.environ.get(
                "BIGQUERY_REQUEST_TIMEOUT_SECONDS", str(WarehouseDefaults.REQUEST_TIMEOUT_SECONDS)
            ))
        )
