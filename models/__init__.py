"""Data models for Prompt Vault.

Updates: v0.3.0 - 2026-10-13 - Export application state and cache metadata.
Updates: v0.2.0 - 2026-10-07 - Export placeholder field models.
Updates: v0.1.0 - 2026-10-06 - Export Prompt and Category dataclasses.
"""

from .app_state import AppState, CacheMetadata
from .category_model import Category
from .placeholder_model import FieldType, ParsedPlaceholders, PlaceholderField
from .prompt_model import ExportData, Prompt, PromptDraft, UserRating

__all__ = [
    "AppState",
    "CacheMetadata",
    "Category",
    "ExportData",
    "FieldType",
    "ParsedPlaceholders",
    "PlaceholderField",
    "Prompt",
    "PromptDraft",
    "UserRating",
]
