"""Printable summaries for Prompt Vault configuration.

Updates:
  v0.1.1 - 2026-10-15 - Include background refresh settings.
  v0.1.0 - 2026-10-10 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from config import PromptVaultSettings

from .utils import describe_path, mask_secret


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def print_settings_summary(settings: PromptVaultSettings) -> None:
    """Emit a readable summary of storage, catalogue and refresh configuration."""
    backend = settings.storage_backend
    if backend == "sqlite":
        location = describe_path(
            settings.sqlite_path,
            expect_directory=False,
            allow_missing_file=True,
        )
    elif backend == "file":
        location = describe_path(settings.state_directory, expect_directory=True)
    elif backend == "redis":
        location = f"namespace {settings.redis_namespace!r}"
    else:
        location = "in-memory (discarded on exit)"

    lines = [
        "Prompt Vault configuration summary",
        "----------------------------------",
        f"Storage backend: {backend}",
        f"Storage location: {location}",
        f"Data directory: {describe_path(settings.data_dir, expect_directory=True)}",
        f"Redis DSN: {mask_secret(settings.redis_dsn)}",
        f"State key: {settings.state_key}",
        f"Theme: {settings.theme_mode}",
        "",
        "Catalogue",
        "---------",
        f"URL: {settings.catalog_url}",
        f"Timeout (seconds): {settings.catalog_timeout_seconds}",
        f"Download attempts: {settings.catalog_max_attempts}",
        f"Seed from remote: {_yes_no(settings.seed_from_remote)}",
        f"Packaged fallback: {_yes_no(settings.builtin_catalog_fallback)}",
        "",
        "Background refresh",
        "------------------",
        f"Enabled: {_yes_no(settings.background_refresh_enabled)}",
        f"Interval (minutes): {settings.refresh_interval_minutes}",
    ]
    print("\n".join(lines))


__all__ = ["print_settings_summary"]
