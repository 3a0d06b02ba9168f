"""Generation request orchestration against the remote webhook."""
from typing import Optional

import httpx

from studio.core.errors import InvalidTransitionError, RecordNotFoundError, RemoteGenerationError
from studio.core.logging import setup_logging
from studio.models.generation import (
    GenerationRequest,
    GenerationStatus,
    GenerationSubmit,
    WebhookPayload,
)
from studio.models.template import RecordStatus
from studio.services.store import GENERATION_REQUESTS, TEMPLATES, RecordStore

logger = setup_logging("generation")

# The webhook may answer with either key.
RESULT_KEYS = ("generated_image", "image_url")


class GenerationClient:
    """Thin async client for the remote generation webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    async def generate(self, payload: WebhookPayload) -> str:
        """POST ``payload`` and return the generated image reference.

        Raises:
            RemoteGenerationError: Transport failure, non-2xx status, a body
                that is not a JSON object, or one without a result key.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=payload.model_dump())
        except httpx.HTTPError as exc:
            raise RemoteGenerationError(f"Webhook request failed: {exc}") from exc

        if not response.is_success:
            raise RemoteGenerationError(
                f"Webhook returned HTTP {response.status_code}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteGenerationError("Webhook returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise RemoteGenerationError("Webhook returned an unexpected JSON shape")

        for key in RESULT_KEYS:
            if body.get(key):
                return str(body[key])
        raise RemoteGenerationError("Webhook response has no generated_image or image_url")


class GenerationOrchestrator:
    """Owns the GenerationRequest lifecycle.

    Flow per submission:
    1. Snapshot the active template into a new ``pending`` request
    2. Move it to ``processing`` and call the webhook once
    3. Record ``completed`` with the image, or terminal ``error`` with a message

    There is no automatic retry; a retry is a new submission.
    """

    def __init__(self, store: RecordStore, client: GenerationClient) -> None:
        self.store = store
        self.client = client

    async def submit(self, submission: GenerationSubmit) -> GenerationRequest:
        template = self.store.get(TEMPLATES, submission.template_id)
        if template is None or template.get("status") != RecordStatus.active.value:
            raise RecordNotFoundError(TEMPLATES, submission.template_id)

        request = GenerationRequest.model_validate(
            self.store.create(
                GENERATION_REQUESTS,
                {
                    "templateId": template["id"],
                    "templateName": template["name"],
                    "userImage": submission.user_image,
                    "prompt": template["prompt"],
                    "status": GenerationStatus.pending.value,
                },
            )
        )
        request = self._transition(request, GenerationStatus.processing)

        payload = WebhookPayload(
            template_id=request.template_id,
            template_name=request.template_name,
            prompt=request.prompt,
            user_image=request.user_image,
            user_id=submission.user_id,
        )
        try:
            generated = await self.client.generate(payload)
        except RemoteGenerationError as exc:
            logger.error(
                "Generation failed: %s",
                exc,
                extra={
                    "service": "GenerationOrchestrator",
                    "error_type": type(exc).__name__,
                    "request_id": request.id,
                },
            )
            return self._transition(request, GenerationStatus.error, error=str(exc))

        logger.info("Generation completed", extra={"request_id": request.id})
        return self._transition(request, GenerationStatus.completed, generated_image=generated)

    def get(self, request_id: str) -> Optional[GenerationRequest]:
        record = self.store.get(GENERATION_REQUESTS, request_id)
        return GenerationRequest.model_validate(record) if record is not None else None

    def list(self) -> list[GenerationRequest]:
        return [GenerationRequest.model_validate(r) for r in self.store.list(GENERATION_REQUESTS)]

    def delete(self, request_id: str) -> None:
        self.store.delete(GENERATION_REQUESTS, request_id)

    def _transition(
        self,
        request: GenerationRequest,
        target: GenerationStatus,
        generated_image: Optional[str] = None,
        error: Optional[str] = None,
    ) -> GenerationRequest:
        if not request.status.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot move request {request.id} from {request.status.value} to {target.value}"
            )
        patch: dict = {"status": target.value}
        if target is GenerationStatus.completed:
            patch["generatedImage"] = generated_image
        if target is GenerationStatus.error:
            patch["error"] = error or "Unknown error"
        record = self.store.update(GENERATION_REQUESTS, request.id, patch)
        return GenerationRequest.model_validate(record)
