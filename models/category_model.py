"""Category metadata models and helpers.

Updates: v0.2.0 - 2026-10-12 - Derive prompt counts instead of persisting them.
Updates: v0.1.0 - 2026-10-06 - Introduce Category dataclass and helpers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .prompt_model import normalise_record

if TYPE_CHECKING:
    from .prompt_model import Prompt

ALL_CATEGORY_ID = "all"
GENERAL_CATEGORY_ID = "general"

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify_category(value: str | None) -> str:
    """Return a URL-safe slug derived from the provided value."""

    text = (value or "").strip().lower()
    if not text:
        return ""
    return _SLUG_PATTERN.sub("-", text).strip("-")


@dataclass(slots=True)
class Category:
    """Structured representation of a prompt category."""

    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    sort_order: int = 0
    prompt_count: int = 0

    def __post_init__(self) -> None:
        """Normalise the identifier and fill a display name when missing."""

        self.id = slugify_category(self.id) or slugify_category(self.name)
        if not self.id:
            raise ValueError("category id cannot be empty")
        if not self.name.strip():
            self.name = self.id.replace("-", " ").title()

    def to_record(self) -> dict[str, Any]:
        """Serialize the category; the derived prompt count is left out."""

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
            "sortOrder": self.sort_order,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Category:
        """Hydrate a Category from a mapping."""

        record = normalise_record(data)
        return cls(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or ""),
            description=str(record.get("description") or ""),
            icon=str(record.get("icon") or ""),
            color=str(record.get("color") or ""),
            sort_order=int(record.get("sortorder") or 0),
        )


def count_prompts(category: Category, prompts: Iterable[Prompt]) -> int:
    """Return how many *prompts* belong to *category* (everything for ``all``)."""

    if category.id == ALL_CATEGORY_ID:
        return sum(1 for _ in prompts)
    return sum(1 for prompt in prompts if prompt.category == category.id)


__all__ = [
    "ALL_CATEGORY_ID",
    "Category",
    "GENERAL_CATEGORY_ID",
    "count_prompts",
    "slugify_category",
]
