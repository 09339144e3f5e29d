"""
Vector Conversion Configuration.

Provides configuration for:
    - ogr2ogr executable location
    - Reprojection target
    - Preview sample size returned to callers

Exports:
    VectorConfig: Pydantic vector configuration model
"""

import os
from pydantic import BaseModel, Field

from config.defaults import VectorDefaults


# ============================================================================
# VECTOR CONFIGURATION
# ============================================================================

class VectorConfig(BaseModel):
    """
    Geometry conversion configuration.
    """

    ogr2ogr_path: str = Field(
        default=VectorDefaults.OGR2OGR_PATH,
        description="Path or name of the ogr2ogr executable",
        examples=["ogr2ogr", "/usr/bin/ogr2ogr"]
    )

    target_srs: str = Field(
        default=VectorDefaults.TARGET_SRS,
        description="Reprojection target passed to ogr2ogr -t_srs"
    )

    preview_feature_limit: int = Field(
        default=VectorDefaults.PREVIEW_FEATURE_LIMIT,
        ge=1,
        le=100000,
        description="Maximum features returned in a relational load preview"
    )

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        return cls(
            ogr2ogr_path=os.environ.get("OGR2OGR_PATH", VectorDefaults.OGR2OGR_PATH),
            target_srs=os.environ.get("GEOINGEST_TARGET_SRS", VectorDefaults.TARGET_SRS),
            preview_feature_limit=int(os.environ.get(
                "GEOINGEST_PREVIEW_FEATURES", str(VectorDefaults.PREVIEW_FEATURE_LIMIT)
            ))
        )
