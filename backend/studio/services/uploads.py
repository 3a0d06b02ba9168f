"""Upload gate for user photos.

Checks content type, byte size and minimum pixel dimensions before an
image is accepted for filtering or generation. The filter engine itself
trusts this gate and does not re-check dimensions.
"""
import base64
from io import BytesIO

from PIL import Image

from studio.models.template import ValidationResult

ACCEPTED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")

# EXIF orientations that rotate the photo by 90 degrees.
_TRANSPOSED_ORIENTATIONS = (5, 6, 7, 8)
_ORIENTATION_TAG = 0x0112


def validate_upload(
    data: bytes,
    content_type: str,
    *,
    min_bytes: int = 1024,
    max_bytes: int = 6 * 1024 * 1024,
    min_width: int = 512,
    min_height: int = 512,
) -> ValidationResult:
    """Validate an uploaded image file.

    Stops at the first failing check, matching the order a user would fix
    them in: format, size, dimensions.
    """
    if content_type not in ACCEPTED_CONTENT_TYPES:
        return ValidationResult.from_violations(["Unsupported format. Use JPG, PNG or WEBP."])
    if len(data) < min_bytes:
        return ValidationResult.from_violations(
            [f"File is too small. Minimum {min_bytes // 1024}KB."]
        )
    if len(data) > max_bytes:
        return ValidationResult.from_violations(
            [f"File is too large. Maximum {max_bytes // (1024 * 1024)}MB."]
        )

    try:
        with Image.open(BytesIO(data)) as image:
            width, height = image.size
            if image.getexif().get(_ORIENTATION_TAG) in _TRANSPOSED_ORIENTATIONS:
                width, height = height, width
    except (OSError, ValueError, Image.DecompressionBombError):
        return ValidationResult.from_violations(["Could not read the image."])

    if width < min_width or height < min_height:
        return ValidationResult.from_violations(
            [
                f"Image is too small. Minimum dimensions: {min_width}x{min_height} pixels. "
                f"Current: {width}x{height} pixels."
            ]
        )
    return ValidationResult.from_violations([])


def to_data_uri(data: bytes, content_type: str) -> str:
    """Encode raw file bytes as a self-contained data URI."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
