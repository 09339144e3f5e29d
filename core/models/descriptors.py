"""
Source and Destination Descriptors.

Tagged unions describing where a job reads its archive from and where it
loads the converted records. The ``kind`` field is the discriminator.

Exports:
    LocalUploadSource, ObjectStoreSource, SourceDescriptor
    WarehouseDestination, RelationalDestination, DestinationDescriptor
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field


# ============================================================================
# SOURCES
# ============================================================================

class LocalUploadSource(BaseModel):
    """
    Archive already on local disk (an HTTP upload spooled by the host).

    When ``delete_after`` is set the pipeline removes the file once the
    job reaches a terminal state.
    """

    kind: Literal["local"] = "local"
    path: str = Field(..., description="Absolute path of the archive on disk")
    file_name: str = Field(..., description="Original client file name")
    size: Optional[int] = Field(default=None, ge=0, description="Size in bytes")
    delete_after: bool = Field(default=False)


class ObjectStoreSource(BaseModel):
    """
    Archive resident in a GCS bucket.
    """

    kind: Literal["gcs"] = "gcs"
    bucket: str = Field(default="", description="GCS bucket name")
    path: str = Field(default="", description="Object path inside the bucket")

    @property
    def file_name(self) -> str:
        return self.path.rsplit("/", 1)[-1] if self.path else ""

    @property
    def uri(self) -> str:
        return f"gs://{self.bucket}/{self.path}"


SourceDescriptor = Annotated[
    Union[LocalUploadSource, ObjectStoreSource],
    Field(discriminator="kind")
]


# ============================================================================
# DESTINATIONS
# ============================================================================

class WarehouseDestination(BaseModel):
    """
    BigQuery table, ``target_table`` in ``dataset.table`` form.
    """

    kind: Literal["bigquery"] = "bigquery"
    project_id: str = Field(default="", description="GCP project id")
    target_table: str = Field(default="", description="dataset.table")

    @property
    def dataset(self) -> str:
        return self.target_table.split(".", 1)[0]

    @property
    def table(self) -> str:
        return self.target_table.split(".", 1)[1] if "." in self.target_table else ""

    @property
    def table_ref(self) -> str:
        return f"{self.project_id}.{self.target_table}"


class RelationalDestination(BaseModel):
    """
    PostgreSQL/PostGIS connection plus the base table name.

    ``table`` None means the loader picks ``<prefix>_<epoch-ms>``.
    """

    kind: Literal["postgres"] = "postgres"
    host: str = Field(default="")
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="")
    user: str = Field(default="")
    password: str = Field(default="", repr=False, exclude=True)
    table: Optional[str] = Field(default=None)

    @property
    def target_table(self) -> Optional[str]:
        return self.table


DestinationDescriptor = Annotated[
    Union[WarehouseDestination, RelationalDestination],
    Field(discriminator="kind")
]
