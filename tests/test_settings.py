"""Tests for configuration loading and validation logic.

Updates:
  v0.2.0 - 2026-10-15 - Cover refresh and catalogue settings.
  v0.1.0 - 2026-10-07 - Cover JSON/env precedence and validation errors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pytest import LogCaptureFixture, MonkeyPatch

from config import DEFAULT_CATALOG_URL, PromptVaultSettings, SettingsError, load_settings


@pytest.fixture(autouse=True)
def _work_in_tmp(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)


def test_defaults_without_configuration(tmp_path: Path) -> None:
    """Defaults apply when neither JSON nor environment provide values."""
    settings = load_settings()

    assert settings.storage_backend == "file"
    assert settings.data_dir == (tmp_path / "data").resolve()
    assert settings.state_directory == settings.data_dir / "state"
    assert settings.catalog_url == DEFAULT_CATALOG_URL
    assert settings.refresh_interval_minutes == 60
    assert settings.background_refresh_enabled is True
    assert settings.theme_mode == "light"


def test_environment_variables_are_read(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """PROMPT_VAULT_* variables populate settings, including aliases."""
    monkeypatch.setenv("PROMPT_VAULT_STORAGE_BACKEND", "SQLite")
    monkeypatch.setenv("PROMPT_VAULT_DATA_PATH", str(tmp_path / "vault"))
    monkeypatch.setenv("PROMPT_VAULT_REFRESH_INTERVAL_MINUTES", "0")
    monkeypatch.setenv("PROMPT_VAULT_BACKGROUND_REFRESH", "false")
    monkeypatch.setenv("PROMPT_VAULT_THEME", "Dark")

    settings = load_settings()

    assert settings.storage_backend == "sqlite"
    assert settings.sqlite_path == (tmp_path / "vault").resolve() / "promptvault.db"
    assert settings.refresh_interval_minutes == 1
    assert settings.background_refresh_enabled is False
    assert settings.theme_mode == "dark"


def test_json_config_overrides_environment(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Values from the JSON file take precedence over environment variables."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.json").write_text(
        json.dumps({"storage_backend": "memory", "catalog_max_attempts": 5}),
        encoding="utf-8",
    )
    monkeypatch.setenv("PROMPT_VAULT_STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("PROMPT_VAULT_CATALOG_TIMEOUT_SECONDS", "2.5")

    settings = load_settings()

    assert settings.storage_backend == "memory"
    assert settings.catalog_max_attempts == 5
    assert settings.catalog_timeout_seconds == pytest.approx(2.5)


def test_explicit_overrides_win(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPT_VAULT_STORAGE_BACKEND", "sqlite")

    assert load_settings(storage_backend="memory").storage_backend == "memory"


def test_dotenv_file_is_used_without_touching_environ(
    monkeypatch: MonkeyPatch, tmp_path: Path
) -> None:
    """Entries from the .env file fill gaps left by the environment."""
    env_file = tmp_path / "custom.env"
    env_file.write_text("PROMPT_VAULT_CATALOG_URL=https://mirror.example/catalog.json\n")
    monkeypatch.setenv("PROMPT_VAULT_ENV_FILE", str(env_file))

    settings = load_settings()

    assert settings.catalog_url == "https://mirror.example/catalog.json"


def test_missing_explicit_config_raises(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROMPT_VAULT_CONFIG_JSON", str(tmp_path / "absent.json"))

    with pytest.raises(SettingsError, match="not found"):
        load_settings()


def test_invalid_json_config_raises(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{broken", encoding="utf-8")
    monkeypatch.setenv("PROMPT_VAULT_CONFIG_JSON", str(path))

    with pytest.raises(SettingsError, match="Invalid JSON"):
        load_settings()


@pytest.mark.parametrize(
    ("variable", "value"),
    [
        ("PROMPT_VAULT_STORAGE_BACKEND", "postgres"),
        ("PROMPT_VAULT_CATALOG_TIMEOUT_SECONDS", "0"),
        ("PROMPT_VAULT_CATALOG_MAX_ATTEMPTS", "0"),
        ("PROMPT_VAULT_THEME_MODE", "sepia"),
    ],
)
def test_invalid_values_raise_settings_error(
    monkeypatch: MonkeyPatch, variable: str, value: str
) -> None:
    monkeypatch.setenv(variable, value)

    with pytest.raises(SettingsError):
        load_settings()


def test_redis_dsn_in_json_is_ignored(
    monkeypatch: MonkeyPatch, tmp_path: Path, caplog: LogCaptureFixture
) -> None:
    """Credentials must come from the environment, never the JSON file."""
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"redis_dsn": "redis://secret@host/0", "unknown_key": 1}),
        encoding="utf-8",
    )
    monkeypatch.setenv("PROMPT_VAULT_CONFIG_JSON", str(path))

    with caplog.at_level(logging.WARNING, logger="prompt_vault.settings"):
        settings = load_settings()

    assert settings.redis_dsn is None
    assert "Ignoring redis_dsn" in caplog.text
    assert "unknown_key" in caplog.text


def test_redis_dsn_is_trimmed_and_hidden_from_repr(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPT_VAULT_REDIS_URL", "  redis://localhost:6379/2  ")

    settings = PromptVaultSettings()

    assert settings.redis_dsn == "redis://localhost:6379/2"
    assert "redis://" not in repr(settings)
