"""Tests for template data models."""
import pytest
from pydantic import ValidationError

from studio.models.template import (
    Category,
    RecordStatus,
    Template,
    TemplateCandidate,
    TemplateUpdate,
    ValidationResult,
)


class TestCategory:
    def test_ten_categories(self) -> None:
        assert len(Category) == 10

    def test_parse_is_case_insensitive(self) -> None:
        assert Category.parse(" Fantasy ") is Category.fantasy

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError):
            Category.parse("steampunk")


class TestTemplate:
    def _record(self, **kwargs: object) -> dict:
        record: dict[str, object] = {
            "id": "t1",
            "name": "Artistic Portrait",
            "prompt": "artistic portrait, oil painting",
            "category": "artistic",
            "createdAt": "2026-01-01T00:00:00+00:00",
            "updatedAt": "2026-01-01T00:00:00+00:00",
        }
        record.update(kwargs)
        return record

    def test_from_wire_record(self) -> None:
        template = Template.model_validate(self._record(exampleImage="https://x.test/a.png"))
        assert template.category is Category.artistic
        assert template.example_image == "https://x.test/a.png"
        assert template.status is RecordStatus.active

    def test_rejects_unknown_category(self) -> None:
        with pytest.raises(ValidationError):
            Template.model_validate(self._record(category="steampunk"))

    def test_dumps_camel_case(self) -> None:
        data = Template.model_validate(self._record()).model_dump(by_alias=True)
        assert {"exampleImage", "createdAt", "updatedAt"} <= data.keys()


class TestCandidateAndUpdate:
    def test_candidate_is_lenient(self) -> None:
        candidate = TemplateCandidate.model_validate({})
        assert candidate.name == ""
        assert candidate.example_image is None

    def test_update_tracks_set_fields(self) -> None:
        patch = TemplateUpdate.model_validate({"exampleImage": None})
        assert patch.model_dump(exclude_unset=True) == {"example_image": None}

    def test_update_status(self) -> None:
        assert TemplateUpdate(status="inactive").status is RecordStatus.inactive


class TestValidationResult:
    def test_from_violations(self) -> None:
        assert ValidationResult.from_violations([]).valid is True
        result = ValidationResult.from_violations(["bad"])
        assert result.valid is False
        assert result.violations == ["bad"]
