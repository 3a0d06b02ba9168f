"""TemplateService: sanitize -> validate -> persist."""
import json
from pathlib import Path
from typing import Optional

from studio.core.errors import RecordNotFoundError, TemplateRejectedError
from studio.core.logging import setup_logging
from studio.models.template import (
    Category,
    RecordStatus,
    Template,
    TemplateCandidate,
    TemplateUpdate,
)
from studio.services.store import TEMPLATES, RecordStore
from studio.services.validation import TemplateValidator, sanitize_candidate

logger = setup_logging("templates")

TEMPLATES_CATALOG_FILENAME = "templates.json"


class TemplateService:
    """CRUD for templates over an injected record store.

    Every write goes through sanitize_candidate and then
    TemplateValidator.validate_template. Deletion is a soft delete (status
    flipped to inactive); permanent_delete removes the record.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def seed(self, catalog_dir: Path) -> int:
        """Load templates.json into the store when it holds no templates yet.

        Entries go through the same validation as API input.

        Returns:
            Number of templates inserted.
        """
        if self.store.list(TEMPLATES):
            return 0
        path = Path(catalog_dir) / TEMPLATES_CATALOG_FILENAME
        if not path.exists():
            logger.warning("Template catalog not found at %s", path)
            return 0
        entries = json.loads(path.read_text(encoding="utf-8"))
        for entry in entries:
            self.create(TemplateCandidate.model_validate(entry))
        logger.info("Seeded %d templates from %s", len(entries), path)
        return len(entries)

    def create(self, candidate: TemplateCandidate) -> Template:
        clean = self._checked(candidate)
        record = self.store.create(
            TEMPLATES,
            {
                "name": clean.name,
                "prompt": clean.prompt,
                "category": Category.parse(clean.category).value,
                "exampleImage": clean.example_image,
                "status": RecordStatus.active.value,
            },
        )
        logger.info("Template created", extra={"template_id": record["id"]})
        return Template.model_validate(record)

    def get(self, template_id: str) -> Optional[Template]:
        record = self.store.get(TEMPLATES, template_id)
        return Template.model_validate(record) if record is not None else None

    def list(self, include_inactive: bool = False) -> list[Template]:
        status = None if include_inactive else RecordStatus.active.value
        return [Template.model_validate(r) for r in self.store.list(TEMPLATES, status=status)]

    def update(self, template_id: str, patch: TemplateUpdate) -> Template:
        """Apply a partial patch. The merged template is validated as a whole."""
        current = self.get(template_id)
        if current is None:
            raise RecordNotFoundError(TEMPLATES, template_id)

        # null clears exampleImage; for every other field it means unchanged.
        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or field == "example_image"
        }
        merged = TemplateCandidate(
            name=changes.get("name", current.name),
            prompt=changes.get("prompt", current.prompt),
            category=changes.get("category", current.category.value),
            example_image=changes.get("example_image", current.example_image),
        )
        clean = self._checked(merged)

        db_patch: dict = {}
        if "name" in changes:
            db_patch["name"] = clean.name
        if "prompt" in changes:
            db_patch["prompt"] = clean.prompt
        if "category" in changes:
            db_patch["category"] = Category.parse(clean.category).value
        if "example_image" in changes:
            db_patch["exampleImage"] = clean.example_image
        if "status" in changes:
            db_patch["status"] = RecordStatus(changes["status"]).value

        record = self.store.update(TEMPLATES, template_id, db_patch)
        logger.info("Template updated", extra={"template_id": template_id})
        return Template.model_validate(record)

    def delete(self, template_id: str) -> None:
        self.store.update(TEMPLATES, template_id, {"status": RecordStatus.inactive.value})
        logger.info("Template deactivated", extra={"template_id": template_id})

    def permanent_delete(self, template_id: str) -> None:
        self.store.delete(TEMPLATES, template_id)
        logger.warning("Template permanently deleted", extra={"template_id": template_id})

    @staticmethod
    def _checked(candidate: TemplateCandidate) -> TemplateCandidate:
        clean = sanitize_candidate(candidate)
        result = TemplateValidator.validate_template(clean)
        if not result.valid:
            raise TemplateRejectedError(result.violations)
        return clean
