"""Form field models produced by the placeholder parser.

Updates: v0.1.0 - 2026-10-07 - Introduce placeholder field dataclasses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Input widget kinds inferred from placeholder labels."""
    TEXT = "text"
    EMAIL = "email"
    URL = "url"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"


@dataclass(slots=True)
class PlaceholderField:
    """A single fillable field derived from a bracketed placeholder."""
    id: str
    name: str
    field_type: FieldType = FieldType.TEXT
    required: bool = True
    placeholder: str = ""
    options: list[str] | None = None
    description: str = ""

    @property
    def token(self) -> str:
        """Return the substitution token that stands in for this field."""
        return "{{" + self.id + "}}"

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.field_type.value,
            "required": self.required,
            "placeholder": self.placeholder,
            "options": list(self.options) if self.options is not None else None,
            "description": self.description,
        }


@dataclass(slots=True)
class ParsedPlaceholders:
    """Fields discovered in a template plus the tokenised template text."""
    fields: list[PlaceholderField] = field(default_factory=list)
    processed_content: str = ""

    def get_field(self, field_id: str) -> PlaceholderField | None:
        """Return the field with *field_id* if present."""
        for entry in self.fields:
            if entry.id == field_id:
                return entry
        return None


__all__ = ["FieldType", "ParsedPlaceholders", "PlaceholderField"]
