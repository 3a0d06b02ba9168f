"""Generation request API router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from studio.core.errors import InvalidTransitionError, RecordNotFoundError
from studio.models.generation import GenerationRequest, GenerationSubmit
from studio.services.generation import GenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generations", tags=["generations"])


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """FastAPI dependency: retrieve GenerationOrchestrator from app.state."""
    svc: GenerationOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="Generation service not initialized.")
    return svc


@router.get("", response_model=list[GenerationRequest])
async def list_generations(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[GenerationRequest]:
    """Generation history, newest first."""
    return orchestrator.list()


@router.post("", response_model=GenerationRequest, status_code=201)
async def submit_generation(
    body: GenerationSubmit,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationRequest:
    """Submit a generation and wait for the webhook outcome.

    A webhook failure is not an HTTP error here: the request is returned
    with status ``error`` and its message.

    Raises:
        HTTPException 404: Template missing or inactive.
        HTTPException 409: Request record was moved to an illegal status.
    """
    try:
        return await orchestrator.submit(body)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Template not found") from exc
    except InvalidTransitionError as exc:
        logger.error(
            "submit_generation failed",
            exc_info=True,
            extra={"service": "GenerationRouter", "error_type": type(exc).__name__},
        )
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/{request_id}", response_model=GenerationRequest)
async def get_generation(
    request_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationRequest:
    generation = orchestrator.get(request_id)
    if generation is None:
        raise HTTPException(status_code=404, detail="Generation request not found")
    return generation


@router.delete("/{request_id}", status_code=204)
async def delete_generation(
    request_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> Response:
    try:
        orchestrator.delete(request_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Generation request not found") from exc
    return Response(status_code=204)
