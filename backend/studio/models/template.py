"""Template data models and closed enumerations."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Template categories accepted by the validator."""

    portrait = "portrait"
    artistic = "artistic"
    futuristic = "futuristic"
    nature = "nature"
    abstract = "abstract"
    vintage = "vintage"
    cartoon = "cartoon"
    realistic = "realistic"
    fantasy = "fantasy"
    other = "other"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Case-insensitive lookup. Raises ValueError for unknown values."""
        return cls(value.strip().lower())


class RecordStatus(str, Enum):
    """Soft-delete flag shared by templates and image models."""

    active = "active"
    inactive = "inactive"


class Template(BaseModel):
    """A stored template as returned by TemplateService."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    prompt: str
    category: Category
    example_image: Optional[str] = Field(default=None, alias="exampleImage")
    status: RecordStatus = RecordStatus.active
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")


class TemplateCandidate(BaseModel):
    """Unvalidated template input.

    Field types are deliberately loose (plain strings) so the validator
    can report every violation instead of pydantic rejecting the body first.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    prompt: str = ""
    category: str = ""
    example_image: Optional[str] = Field(default=None, alias="exampleImage")


class TemplateUpdate(BaseModel):
    """Partial patch for a template. Unset fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    prompt: Optional[str] = None
    category: Optional[str] = None
    example_image: Optional[str] = Field(default=None, alias="exampleImage")
    status: Optional[RecordStatus] = None


class ValidationResult(BaseModel):
    """Outcome of a validator call. Violations are listed in field order."""

    valid: bool
    violations: list[str] = Field(default_factory=list)

    @classmethod
    def from_violations(cls, violations: list[str]) -> "ValidationResult":
        return cls(valid=not violations, violations=list(violations))
