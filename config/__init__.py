"""Configuration helpers for Prompt Vault.

Updates: v0.2.0 - 2026-10-15 - Expose catalogue and storage defaults.
Updates: v0.1.0 - 2026-10-07 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_CATALOG_URL,
    DEFAULT_REDIS_NAMESPACE,
    DEFAULT_STATE_KEY,
    DEFAULT_THEME_MODE,
    PromptVaultSettings,
    SettingsError,
    StorageBackend,
    load_settings,
)

__all__ = [
    "DEFAULT_CATALOG_URL",
    "DEFAULT_REDIS_NAMESPACE",
    "DEFAULT_STATE_KEY",
    "DEFAULT_THEME_MODE",
    "PromptVaultSettings",
    "SettingsError",
    "StorageBackend",
    "load_settings",
]
