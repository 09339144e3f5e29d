"""
Pipeline Result Types.

Exports:
    ConversionResult: One converted archive member
    LoadOutcome: What a destination loader produced
    ExternalJobStatus: One observation of a warehouse load job
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .enums import ExternalJobState
from .schema import SchemaField


class ConversionResult(BaseModel):
    """
    Output of converting one archive member to GeoJSON.
    """

    source_path: str
    output_path: str
    diagnostics: str = Field(default="", description="Converter stderr (warnings) on success")


class LoadOutcome(BaseModel):
    """
    Returned by DestinationLoader.load().

    Relational loads fill ``tables`` and ``preview``; warehouse loads fill
    ``external_job_ref``, ``schema_fields`` and ``record_count``.
    """

    tables: List[str] = Field(default_factory=list)
    preview: Optional[Dict[str, Any]] = None
    external_job_ref: Optional[str] = None
    schema_fields: List[SchemaField] = Field(default_factory=list)
    record_count: int = 0


class ExternalJobStatus(BaseModel):
    state: ExternalJobState
    errors: List[str] = Field(default_factory=list)

    @property
    def is_done(self) -> bool:
        return self.state == ExternalJobState.DONE

    @property
    def failed(self) -> bool:
        return self.is_done and bool(self.errors)
