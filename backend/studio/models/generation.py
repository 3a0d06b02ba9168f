"""Generation request data models."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationStatus(str, Enum):
    """Lifecycle of a generation request. Progression is one-way."""

    pending = "pending"
    processing = "processing"
    completed = "completed"
    error = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.completed, GenerationStatus.error)

    def can_transition_to(self, target: "GenerationStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[GenerationStatus, frozenset[GenerationStatus]] = {
    GenerationStatus.pending: frozenset({GenerationStatus.processing, GenerationStatus.error}),
    GenerationStatus.processing: frozenset({GenerationStatus.completed, GenerationStatus.error}),
    GenerationStatus.completed: frozenset(),
    GenerationStatus.error: frozenset(),
}


class GenerationRequest(BaseModel):
    """One submission to the remote generator and its outcome.

    template_name and prompt are snapshots taken at submission time.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    template_id: str = Field(..., alias="templateId")
    template_name: str = Field(..., alias="templateName")
    user_image: str = Field(..., alias="userImage")
    prompt: str
    status: GenerationStatus = GenerationStatus.pending
    generated_image: Optional[str] = Field(default=None, alias="generatedImage")
    error: Optional[str] = None
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")


class GenerationSubmit(BaseModel):
    """Body of POST /api/generations."""

    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(..., alias="templateId", min_length=1)
    user_image: str = Field(..., alias="userImage", min_length=1)
    user_id: str = Field(..., alias="userId", min_length=1)


class WebhookPayload(BaseModel):
    """JSON body POSTed to the remote generation endpoint (snake_case on the wire)."""

    template_id: str
    template_name: str
    prompt: str
    user_image: str
    user_id: str
