"""Settings management utilities for Prompt Vault configuration.

Updates:
  v0.3.0 - 2026-10-15 - Add background refresh and catalogue download settings.
  v0.2.1 - 2026-10-12 - Read ``.env`` files through python-dotenv without touching os.environ.
  v0.2.0 - 2026-10-10 - Support file, sqlite, redis and in-memory storage backends.
  v0.1.0 - 2026-10-07 - Introduce PromptVaultSettings with JSON config source.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_CATALOG_URL = (
    "https://raw.githubusercontent.com/codefrydev/Data/refs/heads/main/Prompt/data.json"
)
DEFAULT_THEME_MODE = "light"
DEFAULT_STATE_KEY = "promptvault-state"
DEFAULT_REDIS_NAMESPACE = "promptvault:"

StorageBackend = Literal["file", "sqlite", "redis", "memory"]

# Accepted spellings per field, without the PROMPT_VAULT_ prefix.
_ENV_ALIASES: dict[str, list[str]] = {
    "storage_backend": ["STORAGE_BACKEND", "storage_backend", "STORAGE"],
    "data_dir": ["DATA_DIR", "data_dir", "DATA_PATH"],
    "redis_dsn": ["REDIS_DSN", "redis_dsn", "REDIS_URL"],
    "redis_namespace": ["REDIS_NAMESPACE", "redis_namespace"],
    "state_key": ["STATE_KEY", "state_key"],
    "catalog_url": ["CATALOG_URL", "catalog_url"],
    "catalog_timeout_seconds": ["CATALOG_TIMEOUT_SECONDS", "catalog_timeout_seconds"],
    "catalog_max_attempts": ["CATALOG_MAX_ATTEMPTS", "catalog_max_attempts"],
    "refresh_interval_minutes": ["REFRESH_INTERVAL_MINUTES", "refresh_interval_minutes"],
    "background_refresh_enabled": [
        "BACKGROUND_REFRESH_ENABLED",
        "background_refresh_enabled",
        "BACKGROUND_REFRESH",
    ],
    "seed_from_remote": ["SEED_FROM_REMOTE", "seed_from_remote"],
    "builtin_catalog_fallback": ["BUILTIN_CATALOG_FALLBACK", "builtin_catalog_fallback"],
    "theme_mode": ["THEME_MODE", "theme_mode", "THEME"],
}

_JSON_CONFIG_KEYS = tuple(_ENV_ALIASES)

logger = logging.getLogger("prompt_vault.settings")


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPT_VAULT_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Prompt Vault configuration cannot be loaded or validated."""


class PromptVaultSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    storage_backend: StorageBackend = Field(
        default="file",
        description="Where application state is persisted (file, sqlite, redis or memory).",
    )
    data_dir: Path = Field(
        default=Path("data"),
        validate_default=True,
        description="Directory holding the file store or the SQLite database.",
    )
    redis_dsn: str | None = Field(
        default=None,
        description="Redis connection URL; required when storage_backend is 'redis'.",
        repr=False,
    )
    redis_namespace: str = Field(
        default=DEFAULT_REDIS_NAMESPACE,
        description="Key prefix applied to every Redis entry.",
    )
    state_key: str = Field(
        default=DEFAULT_STATE_KEY,
        description="Storage key under which the application state document is saved.",
    )
    catalog_url: str = Field(
        default=DEFAULT_CATALOG_URL,
        description="Remote JSON catalogue used for seeding and background refresh.",
    )
    catalog_timeout_seconds: float = Field(
        default=15.0,
        description="HTTP timeout for catalogue downloads.",
    )
    catalog_max_attempts: int = Field(
        default=3,
        description="Attempts per catalogue download, including the first request.",
    )
    refresh_interval_minutes: int = Field(
        default=60,
        description="Minutes between background catalogue refreshes (minimum one).",
    )
    background_refresh_enabled: bool = Field(
        default=True,
        description="Start the background refresh timer when a session opens.",
    )
    seed_from_remote: bool = Field(
        default=True,
        description="Download the remote catalogue when the library is empty.",
    )
    builtin_catalog_fallback: bool = Field(
        default=True,
        description="Seed from the packaged starter prompts when the download fails.",
    )
    theme_mode: Literal["light", "dark"] = Field(
        default=DEFAULT_THEME_MODE,
        description="Theme applied to a fresh library (light or dark).",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPT_VAULT_",
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("storage_backend", "theme_mode", mode="before")
    def _lowercase_choice(cls, value: Any) -> Any:
        """Accept choices regardless of case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("data_dir", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value in (None, ""):
            raise ValueError("a filesystem path is required")
        path = Path(str(value)).expanduser()
        return path.resolve()

    @field_validator("redis_dsn", mode="before")
    def _trim_redis_dsn(cls, value: str | None) -> str | None:
        """Normalise Redis DSN values by stripping whitespace and empty strings."""
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("state_key", "catalog_url")
    def _require_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("value must not be empty")
        return stripped

    @field_validator("catalog_timeout_seconds")
    def _validate_timeout(cls, value: float) -> float:
        """Ensure the download timeout is positive."""
        if value <= 0:
            raise ValueError("catalog_timeout_seconds must be greater than zero")
        return value

    @field_validator("catalog_max_attempts")
    def _validate_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("catalog_max_attempts must be at least one")
        return value

    @field_validator("refresh_interval_minutes")
    def _clamp_interval(cls, value: int) -> int:
        """Clamp the refresh interval to at least one minute."""
        return max(1, value)

    @property
    def state_directory(self) -> Path:
        return self.data_dir / "state"

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / "promptvault.db"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(storage_backend="memory")).
            2. JSON configuration file.
            3. Environment variables, then ``.env`` entries.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    value = _lookup(f"{prefix}{key}") or _lookup(f"{prefix}{key.upper()}")
                    if value is not None:
                        data[field] = value
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPT_VAULT_CONFIG_JSON")
            if explicit_path:
                path = Path(explicit_path).expanduser()
                if not path.exists():
                    raise SettingsError(f"Configuration file not found: {path}")
            else:
                path = Path("config") / "config.json"
                if not path.exists():
                    return {}
            try:
                raw_contents = path.read_text(encoding="utf-8")
            except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                raise SettingsError(f"Unable to read configuration file: {path}") from exc
            try:
                data = json.loads(raw_contents)
            except json.JSONDecodeError as exc:
                raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
            if not isinstance(data, dict):
                raise SettingsError(f"Configuration file {path} must contain a JSON object")
            mapping_data = cast("Mapping[object, Any]", data)
            data_dict = {str(key): value for key, value in mapping_data.items()}
            if "redis_dsn" in data_dict:
                logger.warning(
                    "Ignoring redis_dsn in configuration file %s; "
                    "set credentials via environment variables instead.",
                    path,
                )
                data_dict.pop("redis_dsn")
            unknown = sorted(set(data_dict) - set(_JSON_CONFIG_KEYS))
            if unknown:
                logger.warning("Ignoring unknown configuration keys in %s: %s", path, unknown)
            return {key: data_dict[key] for key in _JSON_CONFIG_KEYS if key in data_dict}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptVaultSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptVaultSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid Prompt Vault configuration") from exc


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
