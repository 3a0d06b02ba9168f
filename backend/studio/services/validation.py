"""Template validation rules.

Every function here is pure: no I/O, no mutation of its input and no
sanitizing. Callers sanitize first (see ``sanitize_input``) and then
validate the sanitized values.
"""
import re
from typing import Optional

from studio.models.template import Category, TemplateCandidate, ValidationResult

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 50
MIN_PROMPT_LENGTH = 10
MIN_DESCRIPTIVE_WORDS = 3
MAX_EMBEDDED_IMAGE_LENGTH = 6_000_000

FORBIDDEN_WORDS = ("nude", "naked", "nsfw", "explicit", "sexual")

_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_IMAGE_REFERENCE = re.compile(r"^(https?://|data:image/)")
_WHITESPACE_RUN = re.compile(r"\s+")


class TemplateValidator:
    """Checks template fields against a fixed rule set.

    The combined ``validate_template`` never short-circuits: it concatenates
    the violations of each field validator in the order name, prompt,
    category, example image.
    """

    @classmethod
    def validate_template(cls, candidate: TemplateCandidate) -> ValidationResult:
        violations: list[str] = []
        violations.extend(cls.validate_name(candidate.name).violations)
        violations.extend(cls.validate_prompt(candidate.prompt).violations)
        violations.extend(cls.validate_category(candidate.category).violations)
        violations.extend(cls.validate_example_image(candidate.example_image).violations)
        return ValidationResult.from_violations(violations)

    @staticmethod
    def validate_name(name: Optional[str]) -> ValidationResult:
        if not name or not name.strip():
            return ValidationResult.from_violations(["Name is required"])

        trimmed = name.strip()
        violations: list[str] = []
        if len(trimmed) < MIN_NAME_LENGTH:
            violations.append(f"Name must be at least {MIN_NAME_LENGTH} characters")
        if len(trimmed) > MAX_NAME_LENGTH:
            violations.append(f"Name must be at most {MAX_NAME_LENGTH} characters")
        if _INVALID_NAME_CHARS.search(trimmed):
            violations.append('Name must not contain any of < > : " / \\ | ? *')
        return ValidationResult.from_violations(violations)

    @staticmethod
    def validate_prompt(prompt: Optional[str]) -> ValidationResult:
        """Validate a generation prompt.

        The descriptive-word count is only checked once the prompt reaches
        the minimum length, so a too-short prompt yields a single violation.
        """
        if not prompt or not prompt.strip():
            return ValidationResult.from_violations(["Prompt is required"])

        trimmed = prompt.strip()
        violations: list[str] = []
        too_short = len(trimmed) < MIN_PROMPT_LENGTH
        if too_short:
            violations.append(f"Prompt must be at least {MIN_PROMPT_LENGTH} characters")

        lowered = trimmed.lower()
        if any(word in lowered for word in FORBIDDEN_WORDS):
            violations.append("Prompt contains inappropriate content")

        if not too_short:
            words = [word for word in trimmed.split() if len(word) > 2]
            if len(words) < MIN_DESCRIPTIVE_WORDS:
                violations.append(
                    f"Prompt must contain at least {MIN_DESCRIPTIVE_WORDS} descriptive words"
                )
        return ValidationResult.from_violations(violations)

    @staticmethod
    def validate_category(category: Optional[str]) -> ValidationResult:
        if not category or not category.strip():
            return ValidationResult.from_violations(["Category is required"])
        # Membership is checked on the value as given, only case-folded.
        if category.lower() not in {c.value for c in Category}:
            allowed = ", ".join(TemplateValidator.get_valid_categories())
            return ValidationResult.from_violations([f"Category must be one of: {allowed}"])
        return ValidationResult.from_violations([])

    @staticmethod
    def validate_example_image(example_image: Optional[str]) -> ValidationResult:
        # Optional field: absent or blank is accepted.
        if not example_image or not example_image.strip():
            return ValidationResult.from_violations([])

        trimmed = example_image.strip()
        violations: list[str] = []
        if not _IMAGE_REFERENCE.match(trimmed):
            violations.append("Example image must be an http(s) URL or an image data URI")
        if trimmed.startswith("data:") and len(trimmed) > MAX_EMBEDDED_IMAGE_LENGTH:
            violations.append(
                f"Example image is too large (at most {MAX_EMBEDDED_IMAGE_LENGTH} characters)"
            )
        return ValidationResult.from_violations(violations)

    @staticmethod
    def get_valid_categories() -> list[str]:
        return [c.value for c in Category]

    @staticmethod
    def sanitize_input(value: str) -> str:
        """Trim and collapse internal whitespace runs to a single space."""
        return _WHITESPACE_RUN.sub(" ", value.strip())

    @staticmethod
    def format_validation_errors(violations: list[str]) -> str:
        """Render violations for display: bare when single, numbered lines otherwise."""
        if not violations:
            return ""
        if len(violations) == 1:
            return violations[0]
        return "\n".join(f"{i}. {v}" for i, v in enumerate(violations, start=1))


def sanitize_candidate(candidate: TemplateCandidate) -> TemplateCandidate:
    """Return a copy of ``candidate`` with its text fields sanitized.

    The example image is only trimmed; collapsing whitespace inside a data
    URI or URL would change it.
    """
    example = candidate.example_image.strip() if candidate.example_image else None
    return TemplateCandidate(
        name=TemplateValidator.sanitize_input(candidate.name),
        prompt=TemplateValidator.sanitize_input(candidate.prompt),
        category=TemplateValidator.sanitize_input(candidate.category),
        example_image=example or None,
    )
