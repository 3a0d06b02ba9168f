"""ImageModelService: catalog of local filter models."""
import json
import re
from pathlib import Path
from typing import Optional

from studio.core.errors import RecordNotFoundError
from studio.core.logging import setup_logging
from studio.models.image import ApplyModelResponse, ImageModel, ImageModelCreate, ImageModelUpdate
from studio.models.template import RecordStatus
from studio.services.filters import (
    FilterEngine,
    ImageSource,
    build_filter_chain,
    format_filter_chain,
)
from studio.services.store import IMAGE_MODELS, RecordStore

logger = setup_logging("image_models")

MODELS_CATALOG_FILENAME = "models.json"


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class ImageModelService:
    """CRUD for image models plus applying a model through the filter engine."""

    def __init__(self, store: RecordStore, engine: FilterEngine) -> None:
        self.store = store
        self.engine = engine

    def seed(self, catalog_dir: Path) -> int:
        """Load models.json into the store when it holds no models yet.

        Returns:
            Number of models inserted (0 when the store was already seeded).
        """
        if self.store.list(IMAGE_MODELS):
            return 0
        path = Path(catalog_dir) / MODELS_CATALOG_FILENAME
        if not path.exists():
            logger.warning("Model catalog not found at %s", path)
            return 0
        entries = json.loads(path.read_text(encoding="utf-8"))
        for entry in entries:
            self.create(ImageModelCreate.model_validate(entry))
        logger.info("Seeded %d image models from %s", len(entries), path)
        return len(entries)

    def create(self, data: ImageModelCreate) -> ImageModel:
        model_id = data.id or _slugify(data.name)
        record = self.store.create(
            IMAGE_MODELS,
            {
                "id": model_id,
                "name": data.name,
                "description": data.description,
                "category": data.category,
                "filterSettings": data.filter_settings.model_dump(by_alias=True, exclude_none=True),
                "status": RecordStatus.active.value,
            },
        )
        return ImageModel.model_validate(record)

    def get(self, model_id: str) -> Optional[ImageModel]:
        record = self.store.get(IMAGE_MODELS, model_id)
        return ImageModel.model_validate(record) if record is not None else None

    def list(self, include_inactive: bool = False) -> list[ImageModel]:
        status = None if include_inactive else RecordStatus.active.value
        return [ImageModel.model_validate(r) for r in self.store.list(IMAGE_MODELS, status=status)]

    def update(self, model_id: str, patch: ImageModelUpdate) -> ImageModel:
        changes = patch.model_dump(exclude_unset=True)
        db_patch: dict = {}
        for field in ("name", "description", "category"):
            if changes.get(field) is not None:
                db_patch[field] = changes[field]
        if patch.filter_settings is not None:
            db_patch["filterSettings"] = patch.filter_settings.model_dump(
                by_alias=True, exclude_none=True
            )
        record = self.store.update(IMAGE_MODELS, model_id, db_patch)
        return ImageModel.model_validate(record)

    def delete(self, model_id: str) -> None:
        self.store.update(IMAGE_MODELS, model_id, {"status": RecordStatus.inactive.value})

    async def apply(self, model_id: str, image: ImageSource) -> ApplyModelResponse:
        """Run the filter engine with the model's settings and id.

        The returned filter string describes the same settings snapshot
        that was rendered, even if the model is edited meanwhile.

        Raises:
            RecordNotFoundError: Unknown or inactive model.
            ImageDecodeError / SurfaceAllocationError: From the filter engine.
        """
        model = self.get(model_id)
        if model is None or model.status is not RecordStatus.active:
            raise RecordNotFoundError(IMAGE_MODELS, model_id)
        rendered = await self.engine.apply_async(image, model.filter_settings, model.id)
        return ApplyModelResponse(
            model_id=model.id,
            filter=format_filter_chain(build_filter_chain(model.filter_settings)),
            image=rendered,
        )
