"""Tests for scripts/seed_catalog.py."""
import sys
from pathlib import Path

_SCRIPTS_PATH = Path(__file__).resolve().parents[2] / "scripts"
if str(_SCRIPTS_PATH) not in sys.path:
    sys.path.insert(0, str(_SCRIPTS_PATH))

import seed_catalog  # noqa: E402

from studio.services.store import InMemoryRecordStore  # noqa: E402


def test_bundled_catalog_loads() -> None:
    models, templates = seed_catalog.load_catalog()
    assert len(models) == 6
    assert len(templates) == 3


def test_bundled_templates_pass_validation() -> None:
    assert seed_catalog.check_catalog() == []


def test_check_reports_bad_templates(tmp_path: Path) -> None:
    (tmp_path / "models.json").write_text("[]", encoding="utf-8")
    (tmp_path / "templates.json").write_text(
        '[{"name": "Bad", "prompt": "short", "category": "artistic"}]', encoding="utf-8"
    )
    assert seed_catalog.check_catalog(tmp_path) == ["Bad: Prompt must be at least 10 characters"]


def test_seed_is_idempotent() -> None:
    store = InMemoryRecordStore()
    assert seed_catalog.seed(store) == {"models": 6, "templates": 3}
    assert seed_catalog.seed(store) == {"models": 0, "templates": 0}
