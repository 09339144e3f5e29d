"""
BigQuery Adapter.

Submits NDJSON load jobs, reads load job status and runs read queries with
ambient Google credentials.

Exports:
    WarehouseClient: google-cloud-bigquery wrapper
"""

from typing import Any, Dict, List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import bigquery

from core.models import ExternalJobStatus, ExternalJobState, SchemaField
from exceptions import WarehouseError, PreviewQueryError
from util_logger import LoggerFactory, ComponentType


class WarehouseClient:
    """
    Thin wrapper over google.cloud.bigquery.Client.

    Load jobs always append (WRITE_APPEND) newline-delimited JSON.
    """

    def __init__(self, project_id: str, location: Optional[str] = None, client: Optional[bigquery.Client] = None):
        self.project_id = project_id
        self.location = location
        self._client = client
        self.logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "WarehouseClient")

    @property
    def client(self) -> bigquery.Client:
        if self._client is None:
            self._client = bigquery.Client(project=self.project_id, location=self.location)
        return self._client

    @staticmethod
    def build_schema(schema_fields: List[SchemaField]) -> List[bigquery.SchemaField]:
        return [
            bigquery.SchemaField(
                field.name,
                field.type,
                mode=field.mode,
                description=field.description
            )
            for field in schema_fields
        ]

    def _load_config(self, schema_fields: List[SchemaField]) -> bigquery.LoadJobConfig:
        return bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.NEWLINE_DELIMITED_JSON,
            schema=self.build_schema(schema_fields),
            write_disposition=bigquery.WriteDisposition.WRITE_APPEND,
        )

    def submit_load(self, source: str, table_ref: str, schema_fields: List[SchemaField]) -> str:
        """
        Start a load job and return its job id without waiting.

        Args:
            source: gs:// URI of staged NDJSON, or a local NDJSON path
            table_ref: project.dataset.table
            schema_fields: Target schema

        Raises:
            WarehouseError: Submission rejected
        """
        job_config = self._load_config(schema_fields)
        try:
            if source.startswith("gs://"):
                job = self.client.load_table_from_uri(source, table_ref, job_config=job_config)
            else:
                with open(source, "rb") as f:
                    job = self.client.load_table_from_file(f, table_ref, job_config=job_config)
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError) as e:
            raise WarehouseError(f"Failed to submit BigQuery load job for {table_ref}: {e}") from e

        self.logger.info(f"Submitted BigQuery load job {job.job_id} for {table_ref}")
        return job.job_id

    def get_job_status(self, job_id: str) -> ExternalJobStatus:
        """
        Read one load job's state. Transport errors propagate to the monitor.
        """
        job = self.client.get_job(job_id, location=self.location)
        errors = [
            error.get("message", str(error)) if isinstance(error, dict) else str(error)
            for error in (job.errors or [])
        ]
        if not errors and job.error_result:
            errors = [job.error_result.get("message", str(job.error_result))]
        return ExternalJobStatus(state=ExternalJobState(job.state), errors=errors)

    def query(self, sql: str) -> List[Dict[str, Any]]:
        """
        Run a read query and return rows as dicts.

        Raises:
            PreviewQueryError: Query failed
        """
        try:
            rows = self.client.query(sql).result()
            return [dict(row.items()) for row in rows]
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise PreviewQueryError(f"BigQuery query failed: {e}") from e
