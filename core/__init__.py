"""Core service layer for Prompt Vault.

Updates:
  v0.4.0 - 2026-10-15 - Export the refresh scheduler and session factory.
  v0.3.0 - 2026-10-13 - Export templating and query helpers.
  v0.2.0 - 2026-10-10 - Surface storage backends and PersistentStore.
  v0.1.0 - 2026-10-08 - Surface PromptVault and the exception hierarchy.
"""

from .byte_stores import (
    ByteStore,
    FileByteStore,
    MemoryByteStore,
    RedisByteStore,
    SQLiteByteStore,
)
from .catalog_importer import load_builtin_prompts, parse_catalog_payload
from .catalog_source import CatalogFetcher, CatalogSeeder, HttpCatalogFetcher
from .category_registry import default_categories
from .effects import NotificationLevel, NullPlatformEffects, PlatformEffects
from .exceptions import (
    ByteStoreError,
    CatalogError,
    CatalogFetchError,
    CatalogParseError,
    ImportPayloadError,
    PromptStorageError,
    PromptVaultError,
    StateSerializationError,
    VaultClosedError,
)
from .factory import PromptVaultSession, build_byte_store, build_session
from .notifications import StateChange, StateChangeKind, StateNotifier, StateSubscription
from .query import SortMode, filtered_view, resolve_sort_mode
from .refresh import RefreshScheduler, SchedulerState, SingleFlightGuard
from .storage import PersistentStore
from .templating import PlaceholderValidator, TemplateParser
from .vault import EXPORT_FILENAME, STATE_KEY, PromptVault

__all__ = [
    "ByteStore",
    "ByteStoreError",
    "CatalogError",
    "CatalogFetchError",
    "CatalogFetcher",
    "CatalogParseError",
    "CatalogSeeder",
    "EXPORT_FILENAME",
    "FileByteStore",
    "HttpCatalogFetcher",
    "ImportPayloadError",
    "MemoryByteStore",
    "NotificationLevel",
    "NullPlatformEffects",
    "PersistentStore",
    "PlaceholderValidator",
    "PlatformEffects",
    "PromptStorageError",
    "PromptVault",
    "PromptVaultError",
    "PromptVaultSession",
    "RedisByteStore",
    "RefreshScheduler",
    "SQLiteByteStore",
    "STATE_KEY",
    "SchedulerState",
    "SingleFlightGuard",
    "SortMode",
    "StateChange",
    "StateChangeKind",
    "StateNotifier",
    "StateSerializationError",
    "StateSubscription",
    "TemplateParser",
    "VaultClosedError",
    "build_byte_store",
    "build_session",
    "default_categories",
    "filtered_view",
    "load_builtin_prompts",
    "parse_catalog_payload",
    "resolve_sort_mode",
]
