"""Seed the default image models and templates into the record store.

This script runs independently of the FastAPI server. Use it to populate a
Firestore project before the first deploy, or with --check to validate the
catalog files without writing anything.

Usage:
    # from the project root
    python scripts/seed_catalog.py            # seed the configured store
    python scripts/seed_catalog.py --check    # validate data/catalog only
"""

import argparse
import json
import sys
from pathlib import Path

# Make backend/ importable when run as a standalone script
_BACKEND_PATH = Path(__file__).parent.parent / "backend"
if str(_BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(_BACKEND_PATH))

from studio.core.config import get_settings
from studio.models.image import ImageModelCreate
from studio.models.template import TemplateCandidate
from studio.services.filters import FilterEngine
from studio.services.image_models import MODELS_CATALOG_FILENAME, ImageModelService
from studio.services.store import RecordStore, create_store
from studio.services.templates import TEMPLATES_CATALOG_FILENAME, TemplateService
from studio.services.validation import TemplateValidator, sanitize_candidate

CATALOG_DIR = Path(__file__).parent.parent / "data" / "catalog"


def load_catalog(
    catalog_dir: Path = CATALOG_DIR,
) -> tuple[list[ImageModelCreate], list[TemplateCandidate]]:
    """Read models.json and templates.json from ``catalog_dir``.

    Returns:
        Parsed image models and raw template candidates.
    """
    models_data = json.loads((catalog_dir / MODELS_CATALOG_FILENAME).read_text(encoding="utf-8"))
    templates_data = json.loads(
        (catalog_dir / TEMPLATES_CATALOG_FILENAME).read_text(encoding="utf-8")
    )
    models = [ImageModelCreate.model_validate(entry) for entry in models_data]
    templates = [TemplateCandidate.model_validate(entry) for entry in templates_data]
    return models, templates


def check_catalog(catalog_dir: Path = CATALOG_DIR) -> list[str]:
    """Validate catalog templates and return violations prefixed by template name."""
    _, templates = load_catalog(catalog_dir)
    problems: list[str] = []
    for candidate in templates:
        result = TemplateValidator.validate_template(sanitize_candidate(candidate))
        problems.extend(f"{candidate.name}: {violation}" for violation in result.violations)
    return problems


def seed(store: RecordStore, catalog_dir: Path = CATALOG_DIR) -> dict[str, int]:
    """Insert the catalog into ``store``; collections that already hold data are skipped.

    Returns:
        Inserted counts keyed by "models" and "templates".
    """
    return {
        "models": ImageModelService(store, FilterEngine()).seed(catalog_dir),
        "templates": TemplateService(store).seed(catalog_dir),
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Seed default image models and templates into the record store."
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate the catalog files; do not write to the store.",
    )
    args = parser.parse_args()

    if args.check:
        problems = check_catalog()
        for problem in problems:
            print(problem)
        sys.exit(1 if problems else 0)

    settings = get_settings()
    counts = seed(create_store(settings.store_backend, settings.gcp_project_id))
    print(f"Seeded {counts['models']} models and {counts['templates']} templates")
