"""Exception hierarchy shared by services and routers."""


class StudioError(Exception):
    """Base class for all application errors."""


class ImageDecodeError(StudioError):
    """Raised when a source image cannot be decoded."""


class SurfaceAllocationError(StudioError):
    """Raised when the drawing surface for a filter pass cannot be allocated."""


class RemoteGenerationError(StudioError):
    """Raised when the generation webhook fails or returns a malformed body."""


class RecordNotFoundError(StudioError):
    """Raised when a record id does not exist in its collection."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection} record not found: {record_id}")
        self.collection = collection
        self.record_id = record_id


class DuplicateRecordError(StudioError):
    """Raised when a record is created with an id that already exists."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection} record already exists: {record_id}")
        self.collection = collection
        self.record_id = record_id


class InvalidTransitionError(StudioError):
    """Raised on an illegal GenerationRequest status change."""


class TemplateRejectedError(StudioError):
    """Raised by TemplateService when candidate data fails validation.

    The validator itself never raises; this carries its violation list
    across the service boundary so routers can answer 422.
    """

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations
