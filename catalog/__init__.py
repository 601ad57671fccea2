"""Packaged starter catalog used when no remote catalog is reachable.

Updates: v0.1.0 - 2026-10-09 - Ship the starter prompts as package data.
"""

from __future__ import annotations

from importlib.resources import files
from typing import Any

BUILTIN_CATALOG_FILENAME = "prompts.json"


def builtin_catalog_resource() -> Any:
    """Return a Traversable pointing to the packaged prompts JSON file."""
    return files(__name__).joinpath(BUILTIN_CATALOG_FILENAME)


def read_builtin_catalog() -> bytes:
    """Return the raw JSON bytes of the starter catalog."""
    return builtin_catalog_resource().read_bytes()


__all__ = ["BUILTIN_CATALOG_FILENAME", "builtin_catalog_resource", "read_builtin_catalog"]
