"""Common exception classes for the core package.

All exceptions ultimately inherit from :class:`PromptVaultError`, allowing
callers to catch a single base class for any library failure while still
distinguishing individual error categories when needed.

Background work (catalog refresh, notification delivery, platform effects)
logs these errors instead of raising them; foreground operations such as
imports raise them to the caller.

Updates:
  v0.3.0 - 2026-10-15 - Add VaultClosedError for mutations after shutdown.
  v0.2.0 - 2026-10-12 - Add remote catalog fetch and parse errors.
  v0.1.0 - 2026-10-06 - Created module with storage and import errors.
"""

from __future__ import annotations


class PromptVaultError(Exception):
    """Base exception for Prompt Vault failures."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PromptStorageError(PromptVaultError):
    """Base class for persistence failures."""


class ByteStoreError(PromptStorageError):
    """Raised when a byte store backend cannot read or write an entry."""


class StateSerializationError(PromptStorageError):
    """Raised when a value cannot be encoded for persistence."""


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class ImportPayloadError(PromptVaultError):
    """Raised when an import payload is malformed; state is left untouched."""


class VaultClosedError(PromptVaultError):
    """Raised when a mutation is attempted after the vault was closed."""


# ---------------------------------------------------------------------------
# Remote catalog
# ---------------------------------------------------------------------------


class CatalogError(PromptVaultError):
    """Base class for remote catalog failures."""


class CatalogFetchError(CatalogError):
    """Raised when the remote catalog cannot be downloaded."""


class CatalogParseError(CatalogError):
    """Raised when a catalog payload matches none of the supported shapes."""


__all__ = [
    "ByteStoreError",
    "CatalogError",
    "CatalogFetchError",
    "CatalogParseError",
    "ImportPayloadError",
    "PromptStorageError",
    "PromptVaultError",
    "StateSerializationError",
    "VaultClosedError",
]
