"""Upload gate response model."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadValidationResponse(BaseModel):
    """Upload gate outcome; data_uri is set only for accepted files."""

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    violations: list[str] = Field(default_factory=list)
    data_uri: Optional[str] = Field(default=None, alias="dataUri")
