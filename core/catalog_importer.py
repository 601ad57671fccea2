"""Parse remote and packaged prompt catalogues.

Catalogues published by third parties come in several shapes. The parser tries
each supported shape in order and keeps the first one that yields prompts:

1. a bare JSON array of prompt objects;
2. an object with a ``prompts`` array;
3. an object with a ``data`` array;
4. an object whose values are prompt objects (keys double as titles).

Updates:
  v0.2.0 - 2026-10-12 - Fall back to the packaged starter catalogue.
  v0.1.0 - 2026-10-09 - Lenient multi-shape catalogue parsing with field backfill.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from catalog import read_builtin_catalog
from models.category_model import GENERAL_CATEGORY_ID
from models.prompt_model import Prompt

logger = logging.getLogger("prompt_vault.catalog")

EXTERNAL_AUTHOR = "External Source"

CatalogStrategy = Callable[[Any], list[Prompt] | None]


def _prompt_array(items: Any) -> list[Prompt] | None:
    """Parse *items* as a list of prompt objects; any bad element rejects the list."""
    if not isinstance(items, list):
        return None
    prompts: list[Prompt] = []
    for item in items:
        if not isinstance(item, Mapping):
            return None
        prompts.append(Prompt.from_record(item))
    return prompts


def _bare_array(document: Any) -> list[Prompt] | None:
    return _prompt_array(document)


def _wrapped_array(key: str) -> CatalogStrategy:
    def _strategy(document: Any) -> list[Prompt] | None:
        if not isinstance(document, Mapping) or key not in document:
            return None
        return _prompt_array(document[key])

    _strategy.__name__ = f"wrapped_{key}"
    return _strategy


def _keyed_objects(document: Any) -> list[Prompt] | None:
    if not isinstance(document, Mapping):
        return None
    prompts: list[Prompt] = []
    for key, value in document.items():
        if not isinstance(value, Mapping):
            continue
        try:
            prompt = Prompt.from_record(value)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping catalogue entry %s: %s", key, exc)
            continue
        if not prompt.title:
            prompt.title = str(key)
        prompts.append(prompt)
    return prompts


CATALOG_STRATEGIES: tuple[tuple[str, CatalogStrategy], ...] = (
    ("bare array", _bare_array),
    ("prompts array", _wrapped_array("prompts")),
    ("data array", _wrapped_array("data")),
    ("keyed objects", _keyed_objects),
)


def backfill_prompt(
    prompt: Prompt,
    *,
    now: datetime,
    id_factory: Callable[[], str],
) -> Prompt:
    """Fill the fields a catalogue entry is allowed to omit."""
    return replace(
        prompt,
        id=prompt.id or id_factory(),
        created_at=prompt.created_at or now,
        updated_at=prompt.updated_at or now,
        category=prompt.category or GENERAL_CATEGORY_ID,
        author=prompt.author or EXTERNAL_AUTHOR,
    )


def parse_catalog_payload(
    payload: bytes | str,
    *,
    now: datetime | None = None,
    id_factory: Callable[[], str] | None = None,
) -> list[Prompt]:
    """Return the prompts found in *payload*, or an empty list.

    Failures never raise; each rejected shape is logged at debug level.
    """
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        document = json.loads(text)
    except (UnicodeDecodeError, ValueError) as exc:
        logger.debug("Catalogue payload is not valid JSON: %s", exc)
        return []

    timestamp = now or datetime.now(UTC)
    make_id = id_factory or (lambda: str(uuid.uuid4()))
    for name, strategy in CATALOG_STRATEGIES:
        try:
            prompts = strategy(document)
        except (TypeError, ValueError) as exc:
            logger.debug("Catalogue shape '%s' rejected: %s", name, exc)
            continue
        if not prompts:
            logger.debug("Catalogue shape '%s' yielded no prompts", name)
            continue
        logger.debug("Parsed %d prompts using the '%s' shape", len(prompts), name)
        return [backfill_prompt(prompt, now=timestamp, id_factory=make_id) for prompt in prompts]
    return []


def load_builtin_prompts(*, now: datetime | None = None) -> list[Prompt]:
    """Return the starter prompts bundled with the package."""
    try:
        payload = read_builtin_catalog()
    except OSError as exc:
        logger.warning("Packaged catalogue unavailable: %s", exc)
        return []
    return parse_catalog_payload(payload, now=now)


__all__ = [
    "CATALOG_STRATEGIES",
    "EXTERNAL_AUTHOR",
    "backfill_prompt",
    "load_builtin_prompts",
    "parse_catalog_payload",
]
