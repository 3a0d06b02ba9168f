"""Image model API router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from studio.core.errors import (
    DuplicateRecordError,
    ImageDecodeError,
    RecordNotFoundError,
    SurfaceAllocationError,
)
from studio.models.image import (
    ApplyModelRequest,
    ApplyModelResponse,
    ImageModel,
    ImageModelCreate,
    ImageModelUpdate,
)
from studio.services.image_models import ImageModelService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/models", tags=["models"])


def get_model_service(request: Request) -> ImageModelService:
    """FastAPI dependency: retrieve ImageModelService from app.state."""
    svc: ImageModelService | None = getattr(request.app.state, "model_service", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="Model service not initialized.")
    return svc


@router.get("", response_model=list[ImageModel])
async def list_models(
    include_inactive: bool = False,
    service: ImageModelService = Depends(get_model_service),
) -> list[ImageModel]:
    return service.list(include_inactive=include_inactive)


@router.post("", response_model=ImageModel, status_code=201)
async def create_model(
    body: ImageModelCreate,
    service: ImageModelService = Depends(get_model_service),
) -> ImageModel:
    """Create a model. Responds 409 when the id is already taken."""
    try:
        return service.create(body)
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/{model_id}", response_model=ImageModel)
async def get_model(
    model_id: str,
    service: ImageModelService = Depends(get_model_service),
) -> ImageModel:
    model = service.get(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail="Model not found")
    return model


@router.patch("/{model_id}", response_model=ImageModel)
async def update_model(
    model_id: str,
    body: ImageModelUpdate,
    service: ImageModelService = Depends(get_model_service),
) -> ImageModel:
    try:
        return service.update(model_id, body)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Model not found") from exc


@router.delete("/{model_id}", status_code=204)
async def delete_model(
    model_id: str,
    service: ImageModelService = Depends(get_model_service),
) -> Response:
    try:
        service.delete(model_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Model not found") from exc
    return Response(status_code=204)


@router.post("/{model_id}/apply", response_model=ApplyModelResponse)
async def apply_model(
    model_id: str,
    body: ApplyModelRequest,
    service: ImageModelService = Depends(get_model_service),
) -> ApplyModelResponse:
    """Filter the posted image with the model's settings.

    Raises:
        HTTPException 404: Unknown or inactive model.
        HTTPException 422: Image cannot be decoded.
        HTTPException 500: Drawing surface cannot be allocated.
    """
    try:
        return await service.apply(model_id, body.image)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Model not found") from exc
    except ImageDecodeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except SurfaceAllocationError as exc:
        logger.error(
            "apply_model failed",
            exc_info=True,
            extra={"service": "ModelRouter", "error_type": type(exc).__name__, "model_id": model_id},
        )
        raise HTTPException(status_code=500, detail=str(exc)) from exc
