"""Prompt data model definitions.

Updates: v0.4.0 - 2026-10-14 - Add export snapshot dataclass and average rating helper.
Updates: v0.3.0 - 2026-10-11 - Add user ratings with optional comments.
Updates: v0.2.0 - 2026-10-09 - Accept camelCase, PascalCase and snake_case record keys.
Updates: v0.1.0 - 2026-10-06 - Initial Prompt schema with serialization helpers.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def normalise_record(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return *data* keyed by lower-case names with underscores removed.

    ``usageNotes``, ``UsageNotes`` and ``usage_notes`` all map to ``usagenotes`` so
    records written by other clients load without per-field aliases.
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    normalised: dict[str, Any] = {}
    for key, value in data.items():
        folded = str(key).replace("_", "").lower()
        normalised.setdefault(folded, value)
    return normalised


def parse_datetime(value: Any) -> datetime | None:
    """Parse ISO-8601 strings (``Z`` suffix included) into aware datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise TypeError(f"unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_datetime(value: datetime | None) -> str | None:
    """Return an ISO-8601 string for *value* or ``None``."""
    if value is None:
        return None
    return value.isoformat()


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise TypeError(f"expected text, got {type(value).__name__}")
    return str(value)


def _int(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise TypeError("expected an integer, got a boolean")
    return int(value)


def _float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise TypeError("expected a number, got a boolean")
    return float(value)


def _tags(value: Any) -> list[str]:
    """Normalise tag payloads into a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, Iterable) or isinstance(value, Mapping):
        raise TypeError("tags must be a list of strings")
    return [str(item) for item in value if item is not None]


def string_list(value: Any) -> list[str]:
    """Return *value* as a list of identifiers; ``None`` becomes empty."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise TypeError("expected a list of strings")
    if isinstance(value, Mapping):
        raise TypeError("expected a list of strings, got an object")
    return [_text(item) for item in value]


def compute_average_rating(ratings: Iterable[int]) -> float:
    """Return the mean of the non-zero *ratings*, or ``0.0`` when none exist.

    Zero means "liked or commented without a star rating" and is ignored.
    """
    rated = [rating for rating in ratings if rating]
    if not rated:
        return 0.0
    return sum(rated) / len(rated)


@dataclass(slots=True)
class PromptDraft:
    """Caller-supplied fields for a prompt that does not exist yet."""
    title: str
    content: str
    description: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    author: str = ""
    difficulty: str = ""
    usage_notes: str = ""
    estimated_time: str = ""


@dataclass(slots=True)
class Prompt:
    """Dataclass representation of a prompt template in the catalog."""
    id: str
    title: str
    content: str
    description: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    author: str = ""
    difficulty: str = ""
    usage_notes: str = ""
    estimated_time: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    usage_count: int = 0
    average_rating: float = 0.0

    @classmethod
    def from_draft(cls, draft: PromptDraft, *, prompt_id: str, now: datetime) -> Prompt:
        """Materialise *draft* with an identifier and creation timestamps."""
        return cls(
            id=prompt_id,
            title=draft.title,
            content=draft.content,
            description=draft.description,
            category=draft.category,
            tags=list(draft.tags),
            author=draft.author,
            difficulty=draft.difficulty,
            usage_notes=draft.usage_notes,
            estimated_time=draft.estimated_time,
            created_at=now,
            updated_at=now,
        )

    def to_record(self) -> dict[str, Any]:
        """Return the camelCase dictionary used for persistence and exports."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "author": self.author,
            "difficulty": self.difficulty,
            "usageNotes": self.usage_notes,
            "estimatedTime": self.estimated_time,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
            "usageCount": self.usage_count,
            "averageRating": self.average_rating,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Create a Prompt from a loosely structured record.

        Missing fields default; values of the wrong shape raise ``TypeError`` or
        ``ValueError`` so callers can reject the record as a whole.
        """
        record = normalise_record(data)
        return cls(
            id=_text(record.get("id")).strip(),
            title=_text(record.get("title")),
            content=_text(record.get("content")),
            description=_text(record.get("description")),
            category=_text(record.get("category")).strip(),
            tags=_tags(record.get("tags")),
            author=_text(record.get("author")),
            difficulty=_text(record.get("difficulty")),
            usage_notes=_text(record.get("usagenotes")),
            estimated_time=_text(record.get("estimatedtime")),
            created_at=parse_datetime(record.get("createdat")),
            updated_at=parse_datetime(record.get("updatedat")),
            usage_count=_int(record.get("usagecount")),
            average_rating=_float(record.get("averagerating")),
        )


@dataclass(slots=True)
class UserRating:
    """A user's annotation of a single prompt."""
    prompt_id: str
    rating: int = 0
    liked: bool = False
    comment: str | None = None
    rated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Keep the stored rating within the 0-5 star range."""
        self.rating = max(0, min(5, int(self.rating)))

    def to_record(self) -> dict[str, Any]:
        """Return the camelCase dictionary used for persistence and exports."""
        return {
            "promptId": self.prompt_id,
            "liked": self.liked,
            "rating": self.rating,
            "comment": self.comment,
            "ratedAt": format_datetime(self.rated_at),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any], *, prompt_id: str | None = None) -> UserRating:
        """Hydrate a rating, falling back to *prompt_id* when the record omits it."""
        record = normalise_record(data)
        comment = record.get("comment")
        return cls(
            prompt_id=_text(record.get("promptid")) or (prompt_id or ""),
            rating=_int(record.get("rating")),
            liked=bool(record.get("liked", False)),
            comment=None if comment is None else _text(comment),
            rated_at=parse_datetime(record.get("ratedat")) or _utc_now(),
        )


@dataclass(slots=True)
class ExportData:
    """Portable snapshot of the user's library."""
    prompts: list[Prompt] = field(default_factory=list)
    favorites: list[str] = field(default_factory=list)
    user_ratings: dict[str, UserRating] = field(default_factory=dict)
    history: list[str] = field(default_factory=list)
    export_date: str = ""

    def to_record(self) -> dict[str, Any]:
        """Return the export file document."""
        return {
            "prompts": [prompt.to_record() for prompt in self.prompts],
            "favorites": list(self.favorites),
            "userRatings": {key: rating.to_record() for key, rating in self.user_ratings.items()},
            "history": list(self.history),
            "exportDate": self.export_date,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> ExportData:
        """Decode an export document; missing collections become empty."""
        record = normalise_record(data)
        prompts = record.get("prompts") or []
        ratings = record.get("userratings") or {}
        if not isinstance(prompts, list):
            raise TypeError("prompts must be a list")
        if not isinstance(ratings, Mapping):
            raise TypeError("userRatings must be an object")
        return cls(
            prompts=[Prompt.from_record(item) for item in prompts],
            favorites=string_list(record.get("favorites")),
            user_ratings={
                str(key): UserRating.from_record(value, prompt_id=str(key))
                for key, value in ratings.items()
            },
            history=string_list(record.get("history")),
            export_date=_text(record.get("exportdate")),
        )


__all__ = [
    "ExportData",
    "Prompt",
    "PromptDraft",
    "UserRating",
    "compute_average_rating",
    "format_datetime",
    "normalise_record",
    "parse_datetime",
    "string_list",
]
