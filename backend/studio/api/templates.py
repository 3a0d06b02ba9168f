"""Template API router."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from studio.core.errors import RecordNotFoundError, TemplateRejectedError
from studio.models.template import Template, TemplateCandidate, TemplateUpdate, ValidationResult
from studio.services.templates import TemplateService
from studio.services.validation import TemplateValidator, sanitize_candidate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])


def get_template_service(request: Request) -> TemplateService:
    """FastAPI dependency: retrieve TemplateService from app.state.

    Returns HTTP 503 if the service was not initialized at startup.
    """
    svc: TemplateService | None = getattr(request.app.state, "template_service", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="Template service not initialized.")
    return svc


def _rejected(exc: TemplateRejectedError) -> HTTPException:
    return HTTPException(status_code=422, detail={"violations": exc.violations})


@router.get("", response_model=list[Template])
async def list_templates(
    include_inactive: bool = False,
    service: TemplateService = Depends(get_template_service),
) -> list[Template]:
    return service.list(include_inactive=include_inactive)


@router.post("", response_model=Template, status_code=201)
async def create_template(
    body: TemplateCandidate,
    service: TemplateService = Depends(get_template_service),
) -> Template:
    """Create a template. Responds 422 with every violation when rejected."""
    try:
        return service.create(body)
    except TemplateRejectedError as exc:
        raise _rejected(exc) from exc


@router.post("/validate", response_model=ValidationResult)
async def validate_template(body: TemplateCandidate) -> ValidationResult:
    """Dry-run validation for form feedback. Nothing is persisted."""
    return TemplateValidator.validate_template(sanitize_candidate(body))


@router.get("/{template_id}", response_model=Template)
async def get_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
) -> Template:
    template = service.get(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.patch("/{template_id}", response_model=Template)
async def update_template(
    template_id: str,
    body: TemplateUpdate,
    service: TemplateService = Depends(get_template_service),
) -> Template:
    try:
        return service.update(template_id, body)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Template not found") from exc
    except TemplateRejectedError as exc:
        raise _rejected(exc) from exc


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
) -> Response:
    """Soft delete: the template is marked inactive."""
    try:
        service.delete(template_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Template not found") from exc
    return Response(status_code=204)


@router.delete("/{template_id}/permanent", status_code=204)
async def permanent_delete_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
) -> Response:
    try:
        service.permanent_delete(template_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Template not found") from exc
    return Response(status_code=204)
