"""Upload gate API router."""
from fastapi import APIRouter, File, UploadFile

from studio.core.config import get_settings
from studio.models.upload import UploadValidationResponse
from studio.services.uploads import to_data_uri, validate_upload

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("/validate", response_model=UploadValidationResponse)
async def validate_uploaded_image(file: UploadFile = File(...)) -> UploadValidationResponse:
    """Check an uploaded photo and return it as a data URI when accepted."""
    settings = get_settings()
    data = await file.read()
    content_type = file.content_type or ""
    result = validate_upload(
        data,
        content_type,
        min_bytes=settings.min_upload_bytes,
        max_bytes=settings.max_upload_bytes,
        min_width=settings.min_image_width,
        min_height=settings.min_image_height,
    )
    return UploadValidationResponse(
        valid=result.valid,
        violations=result.violations,
        data_uri=to_data_uri(data, content_type) if result.valid else None,
    )
