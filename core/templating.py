"""Bracketed placeholder parsing, substitution and value validation.

A template such as ``Write to [Audience] about [Topic]`` yields one form field
per distinct placeholder and a processed copy of the text in which every
placeholder became a ``{{field_id}}`` token.

Updates: v0.3.0 - 2026-10-14 - Validate filled values through a generated JSON Schema.
Updates: v0.2.0 - 2026-10-10 - Move type inference and canned options into rule tables.
Updates: v0.1.0 - 2026-10-07 - Introduce placeholder parser and token substitution.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft202012Validator

from models.placeholder_model import FieldType, ParsedPlaceholders, PlaceholderField

logger = logging.getLogger("prompt_vault.templating")

_PLACEHOLDER_PATTERN = re.compile(r"\[([^\[\]]+)\]")
_TOKEN_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")
_SEPARATOR_PATTERN = re.compile(r"[\s-]")
_STRIPPED_PUNCTUATION = re.compile(r"[()\[\]{}!?.,:;'\"/\\|+=@#$%^&*]")

MIN_INLINE_OPTIONS = 2
MAX_INLINE_OPTIONS = 10


@dataclass(frozen=True, slots=True)
class KeywordRule:
    """Match a lower-cased label when it contains any of ``keywords``."""

    keywords: tuple[str, ...]

    def matches(self, lowered_label: str) -> bool:
        return any(keyword in lowered_label for keyword in self.keywords)


@dataclass(frozen=True, slots=True)
class FieldTypeRule(KeywordRule):
    field_type: FieldType = FieldType.TEXT


@dataclass(frozen=True, slots=True)
class OptionRule(KeywordRule):
    options: tuple[str, ...] = ()


# First match wins.
FIELD_TYPE_RULES: tuple[FieldTypeRule, ...] = (
    FieldTypeRule(("email", "e-mail"), FieldType.EMAIL),
    FieldTypeRule(("url", "website", "link"), FieldType.URL),
    FieldTypeRule(("number", "count", "age", "year"), FieldType.NUMBER),
    FieldTypeRule(("description", "details", "explain", "content"), FieldType.TEXTAREA),
    FieldTypeRule(("choose", "select", "option"), FieldType.SELECT),
)

OPTION_RULES: tuple[OptionRule, ...] = (
    OptionRule(
        ("genre",),
        (
            "Fiction",
            "Non-fiction",
            "Mystery",
            "Romance",
            "Sci-Fi",
            "Fantasy",
            "Thriller",
            "Horror",
            "Comedy",
            "Drama",
        ),
    ),
    OptionRule(
        ("platform",),
        (
            "Facebook",
            "Instagram",
            "Twitter",
            "LinkedIn",
            "TikTok",
            "YouTube",
            "Pinterest",
            "Snapchat",
        ),
    ),
    OptionRule(
        ("style", "tone"),
        (
            "Professional",
            "Casual",
            "Friendly",
            "Formal",
            "Humorous",
            "Serious",
            "Creative",
            "Technical",
        ),
    ),
    OptionRule(("level", "difficulty"), ("Beginner", "Intermediate", "Advanced", "Expert")),
    OptionRule(("frequency",), ("Daily", "Weekly", "Monthly", "Quarterly", "Annually")),
    OptionRule(("size",), ("Small", "Medium", "Large", "Extra Large")),
    OptionRule(("priority",), ("Low", "Medium", "High", "Critical")),
    OptionRule(
        ("business type", "company type"),
        (
            "E-commerce",
            "SaaS",
            "Consulting",
            "Agency",
            "Non-profit",
            "Education",
            "Healthcare",
            "Finance",
            "Retail",
            "Manufacturing",
        ),
    ),
    OptionRule(
        ("industry",),
        (
            "Technology",
            "Healthcare",
            "Finance",
            "Education",
            "Retail",
            "Manufacturing",
            "Real Estate",
            "Food & Beverage",
            "Travel",
            "Entertainment",
        ),
    ),
    OptionRule(
        ("budget",),
        ("Under $5K", "$5K - $15K", "$15K - $50K", "$50K - $100K", "Over $100K"),
    ),
    OptionRule(
        ("timeline", "duration"),
        ("1-2 weeks", "1 month", "2-3 months", "3-6 months", "6+ months"),
    ),
    OptionRule(
        ("goals", "purpose"),
        (
            "Brand Awareness",
            "Lead Generation",
            "Sales",
            "Engagement",
            "Education",
            "Support",
            "Community Building",
        ),
    ),
)

GENERIC_OPTIONS: tuple[str, ...] = ("Option 1", "Option 2", "Option 3")


def normalise_field_id(label: str) -> str:
    """Return the stable identifier for a placeholder *label*."""
    lowered = label.strip().lower()
    return _STRIPPED_PUNCTUATION.sub("", _SEPARATOR_PATTERN.sub("_", lowered))


def infer_field_type(label: str) -> FieldType:
    """Return the first rule match for *label*, defaulting to free text."""
    lowered = label.lower()
    for rule in FIELD_TYPE_RULES:
        if rule.matches(lowered):
            return rule.field_type
    return FieldType.TEXT


def extract_inline_options(label: str) -> list[str] | None:
    """Return the ``/``-separated alternatives embedded in *label*, if any.

    ``Budget: Low/Medium/High`` gives ``["Low", "Medium", "High"]``; text before
    the first colon names the field and is not an alternative.
    """
    lowered = label.lower()
    if "/" not in label or "http" in lowered or "://" in label:
        return None
    _, separator, tail = label.partition(":")
    candidates = tail if separator else label
    options = [part.strip() for part in candidates.split("/") if part.strip()]
    if MIN_INLINE_OPTIONS <= len(options) <= MAX_INLINE_OPTIONS:
        return options
    return None


def canned_options(label: str) -> list[str]:
    """Return the stock option list for a select field labelled *label*."""
    lowered = label.lower()
    for rule in OPTION_RULES:
        if rule.matches(lowered):
            return list(rule.options)
    return list(GENERIC_OPTIONS)


@dataclass(slots=True)
class TemplateFillResult:
    """Outcome of filling a template with user supplied values."""

    text: str
    fields: list[PlaceholderField] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_required


class TemplateParser:
    """Turn bracketed placeholders into typed form fields."""

    def parse(self, text: str) -> ParsedPlaceholders:
        """Return the fields found in *text* and the tokenised template."""
        fields: dict[str, PlaceholderField] = {}

        def _replace(match: re.Match[str]) -> str:
            label = match.group(1).strip()
            field_id = normalise_field_id(label)
            if not field_id:
                return match.group(0)
            if field_id not in fields:
                fields[field_id] = self._build_field(field_id, label)
            return fields[field_id].token

        processed = _PLACEHOLDER_PATTERN.sub(_replace, text or "")
        return ParsedPlaceholders(fields=list(fields.values()), processed_content=processed)

    @staticmethod
    def substitute(text: str, values: Mapping[str, Any]) -> str:
        """Replace ``{{field_id}}`` tokens that have a value in *values*."""

        def _replace(match: re.Match[str]) -> str:
            field_id = match.group(1).strip()
            value = values.get(field_id)
            if value is None:
                return match.group(0)
            return str(value)

        return _TOKEN_PATTERN.sub(_replace, text or "")

    def fill(self, text: str, values: Mapping[str, Any]) -> TemplateFillResult:
        """Parse *text*, substitute *values* and report required fields left empty."""
        parsed = self.parse(text)
        provided = {key: value for key, value in values.items() if str(value).strip()}
        missing = [
            entry.id for entry in parsed.fields if entry.required and entry.id not in provided
        ]
        return TemplateFillResult(
            text=self.substitute(parsed.processed_content, provided),
            fields=parsed.fields,
            missing_required=missing,
        )

    @staticmethod
    def _build_field(field_id: str, label: str) -> PlaceholderField:
        field_type = infer_field_type(label)
        options = extract_inline_options(label)
        if options is not None:
            field_type = FieldType.SELECT
        elif field_type is FieldType.SELECT:
            options = canned_options(label)
        return PlaceholderField(
            id=field_id,
            name=label,
            field_type=field_type,
            required="optional" not in label.lower(),
            placeholder=f"Enter {label}",
            options=options,
            description=f"Enter {label.lower()}",
        )


# ---------------------------------------------------------------------------
# Value validation
# ---------------------------------------------------------------------------

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_URL_PATTERN = r"^https?://\S+$"
_NUMBER_PATTERN = r"^\s*-?\d+(\.\d+)?\s*$"


@dataclass(slots=True)
class PlaceholderValidationResult:
    """Outcome of validating filled values against their fields."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    field_errors: set[str] = field(default_factory=set)


class PlaceholderValidator:
    """Check user supplied values against the types inferred for each field."""

    @staticmethod
    def build_schema(parsed: ParsedPlaceholders) -> dict[str, Any]:
        """Return a JSON Schema describing the values *parsed* expects."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for entry in parsed.fields:
            definition: dict[str, Any] = {"type": "string", "description": entry.description}
            if entry.field_type is FieldType.EMAIL:
                definition["pattern"] = _EMAIL_PATTERN
            elif entry.field_type is FieldType.URL:
                definition["pattern"] = _URL_PATTERN
            elif entry.field_type is FieldType.NUMBER:
                definition["pattern"] = _NUMBER_PATTERN
            elif entry.field_type is FieldType.SELECT and entry.options:
                definition["enum"] = list(entry.options)
            if entry.required:
                definition["minLength"] = 1
                required.append(entry.id)
            properties[entry.id] = definition
        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def validate(
        self,
        parsed: ParsedPlaceholders,
        values: Mapping[str, Any],
    ) -> PlaceholderValidationResult:
        """Validate *values*; empty optional values are treated as omitted."""
        schema = self.build_schema(parsed)
        instance: dict[str, Any] = {}
        for key, value in values.items():
            text = "" if value is None else str(value)
            entry = parsed.get_field(key)
            if entry is not None and not entry.required and not text.strip():
                continue
            instance[key] = text
        validator = Draft202012Validator(schema)
        errors: list[str] = []
        field_errors: set[str] = set()
        for error in validator.iter_errors(instance):
            path = ".".join(str(part) for part in error.path)
            if not path and error.validator == "required":
                missing = error.message.split("'")[1] if "'" in error.message else ""
                path = missing
            errors.append(f"{path}: {error.message}" if path else error.message)
            if path:
                field_errors.add(path)
        if errors:
            logger.debug("Placeholder validation failed: %s", errors)
            return PlaceholderValidationResult(
                is_valid=False,
                errors=errors,
                field_errors=field_errors,
            )
        return PlaceholderValidationResult(is_valid=True)


__all__ = [
    "FIELD_TYPE_RULES",
    "GENERIC_OPTIONS",
    "OPTION_RULES",
    "FieldTypeRule",
    "OptionRule",
    "PlaceholderValidationResult",
    "PlaceholderValidator",
    "TemplateFillResult",
    "TemplateParser",
    "canned_options",
    "extract_inline_options",
    "infer_field_type",
    "normalise_field_id",
]
