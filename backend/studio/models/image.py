"""Image model and filter settings data models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from studio.models.template import RecordStatus

# Upper bound for the blur stage, in pixels of standard deviation.
MAX_BLUR_PX = 100


class FilterSettings(BaseModel):
    """Numeric adjustments applied by the filter engine.

    brightness / contrast / saturate are always present. The optional
    stages are None when omitted, and omission means the stage is skipped
    entirely rather than applied at strength 0.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    brightness: int = Field(..., ge=0)
    contrast: int = Field(..., ge=0)
    saturate: int = Field(..., ge=0)
    blur: Optional[int] = Field(default=None, ge=0, le=MAX_BLUR_PX)
    sepia: Optional[int] = Field(default=None, ge=0, le=100)
    grayscale: Optional[int] = Field(default=None, ge=0, le=100)
    hue_rotate: Optional[int] = Field(default=None, alias="hueRotate")


class ImageModel(BaseModel):
    """A named bundle of local filter parameters."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    category: str = ""
    filter_settings: FilterSettings = Field(..., alias="filterSettings")
    status: RecordStatus = RecordStatus.active


class ImageModelCreate(BaseModel):
    """Request body for creating an image model."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""
    filter_settings: FilterSettings = Field(..., alias="filterSettings")


class ImageModelUpdate(BaseModel):
    """Partial patch for an image model. Unset fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    filter_settings: Optional[FilterSettings] = Field(default=None, alias="filterSettings")


class ApplyModelRequest(BaseModel):
    """Body of POST /api/models/{id}/apply."""

    model_config = ConfigDict(populate_by_name=True)

    image: str = Field(..., min_length=1)


class ApplyModelResponse(BaseModel):
    """Filtered image returned by the filter engine."""

    model_config = ConfigDict(populate_by_name=True)

    model_id: str = Field(..., alias="modelId")
    filter: str
    image: str
