"""
Warehouse Schema Field Model.

Exports:
    SchemaField: One column of a warehouse table schema
    GEOMETRY_FIELD_NAME: Name of the geometry column in merged records
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import SchemaFieldType, SchemaFieldMode


GEOMETRY_FIELD_NAME = "geometry"


class SchemaField(BaseModel):
    """
    One warehouse column.

    Serialises to the BigQuery JSON schema shape
    ({"name", "type", "mode", "description"}).
    """

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    name: str = Field(..., min_length=1, description="Column name")
    type: SchemaFieldType = Field(default=SchemaFieldType.STRING, description="Column type")
    mode: SchemaFieldMode = Field(default=SchemaFieldMode.NULLABLE, description="Column mode")
    description: Optional[str] = Field(default=None)

    @classmethod
    def geometry(cls) -> "SchemaField":
        return cls(name=GEOMETRY_FIELD_NAME, type=SchemaFieldType.GEOGRAPHY)

    def to_api_dict(self) -> dict:
        """BigQuery JSON schema representation (description omitted when empty)."""
        return self.model_dump(exclude_none=True)
