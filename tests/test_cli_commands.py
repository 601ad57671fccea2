"""Tests for CLI command handlers running against an in-memory session.

Updates:
  v0.2.0 - 2026-10-15 - Cover refresh, import and export commands.
  v0.1.0 - 2026-10-10 - Cover list, show, fill, favorite and rate commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from cli.commands import (
    COMMAND_SPECS,
    EXIT_FAILURE,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
    EXIT_OK,
    run_command,
)
from cli.parser import parse_args
from config import load_settings
from core.exceptions import CatalogFetchError
from core.factory import PromptVaultSession, build_session

LOGGER = logging.getLogger("prompt_vault.tests.cli")

LIBRARY = {
    "prompts": [
        {
            "id": "email",
            "title": "Launch email",
            "content": (
                "Write to [Audience] about [Tone: Formal/Casual] news. Reply to [Contact email]."
            ),
            "category": "marketing",
            "createdAt": "2025-02-01T00:00:00Z",
        },
        {
            "id": "bug",
            "title": "Bug report",
            "content": "Summarise the failure.",
            "category": "development",
            "createdAt": "2025-01-01T00:00:00Z",
        },
    ],
}


class _Fetcher:
    def __init__(self, payload: bytes = b"", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error

    async def fetch(self) -> bytes:
        if self.error is not None:
            raise self.error
        return self.payload


async def _session(fetcher: _Fetcher | None = None) -> PromptVaultSession:
    settings = load_settings(
        storage_backend="memory",
        seed_from_remote=False,
        builtin_catalog_fallback=False,
    )
    session = build_session(settings, fetcher=fetcher or _Fetcher(), start_scheduler=False)
    await session.start()
    await session.vault.import_snapshot(LIBRARY)
    return session


async def _run(argv: list[str], session: PromptVaultSession | None = None) -> tuple[int, Any]:
    session = session or await _session()
    args = parse_args(argv)
    code = await run_command(COMMAND_SPECS[args.command], session, args, LOGGER)
    return code, session.vault


@pytest.mark.asyncio()
async def test_list_filters_by_category(capsys: pytest.CaptureFixture[str]) -> None:
    code, vault = await _run(["list", "--category", "development"])

    output = capsys.readouterr().out
    assert code == EXIT_OK
    assert "bug" in output
    assert "email" not in output
    assert vault.state.selected_category == "all"


@pytest.mark.asyncio()
async def test_list_rejects_negative_limit() -> None:
    code, _ = await _run(["list", "--limit", "-1"])

    assert code == EXIT_INVALID_INPUT


@pytest.mark.asyncio()
async def test_show_records_history(capsys: pytest.CaptureFixture[str]) -> None:
    code, vault = await _run(["show", "bug"])

    assert code == EXIT_OK
    assert "Summarise the failure." in capsys.readouterr().out
    assert vault.state.history == ["bug"]


@pytest.mark.asyncio()
async def test_show_unknown_prompt_returns_not_found() -> None:
    code, _ = await _run(["show", "missing"])

    assert code == EXIT_NOT_FOUND


@pytest.mark.asyncio()
async def test_fill_lists_fields(capsys: pytest.CaptureFixture[str]) -> None:
    code, _ = await _run(["fill", "email", "--fields"])

    output = capsys.readouterr().out
    assert code == EXIT_OK
    assert "audience  (text, required)" in output
    assert "options: Formal / Casual" in output


@pytest.mark.asyncio()
async def test_fill_substitutes_values(capsys: pytest.CaptureFixture[str]) -> None:
    code, vault = await _run(
        [
            "fill",
            "email",
            "--set",
            "audience=investors",
            "--set",
            "tone_formalcasual=Formal",
            "--set",
            "contact_email=ir@example.com",
        ]
    )

    assert code == EXIT_OK
    assert capsys.readouterr().out.strip() == (
        "Write to investors about Formal news. Reply to ir@example.com."
    )
    assert vault.state.history == ["email"]


@pytest.mark.asyncio()
async def test_fill_rejects_invalid_values() -> None:
    code, vault = await _run(
        ["fill", "email", "--set", "audience=x", "--set", "contact_email=nope"]
    )

    assert code == EXIT_INVALID_INPUT
    assert vault.state.history == []


@pytest.mark.asyncio()
async def test_fill_rejects_unknown_fields() -> None:
    code, _ = await _run(["fill", "bug", "--set", "mystery=1"])

    assert code == EXIT_INVALID_INPUT


@pytest.mark.asyncio()
async def test_favorite_toggles(capsys: pytest.CaptureFixture[str]) -> None:
    code, vault = await _run(["favorite", "bug"])

    assert code == EXIT_OK
    assert vault.state.favorites == ["bug"]
    assert "added to favorites" in capsys.readouterr().out

    code, _ = await _run(["favorite", "missing"])
    assert code == EXIT_NOT_FOUND


@pytest.mark.asyncio()
async def test_rate_updates_average(capsys: pytest.CaptureFixture[str]) -> None:
    code, vault = await _run(["rate", "email", "4", "--like", "--comment", "Useful"])

    assert code == EXIT_OK
    rating = vault.rating_for("email")
    assert rating.liked is True
    assert rating.comment == "Useful"
    assert "average 4.0" in capsys.readouterr().out


@pytest.mark.asyncio()
async def test_rate_validates_range_and_prompt() -> None:
    code, _ = await _run(["rate", "email", "7"])
    assert code == EXIT_INVALID_INPUT

    code, _ = await _run(["rate", "missing", "3"])
    assert code == EXIT_NOT_FOUND


@pytest.mark.asyncio()
async def test_categories_report_counts(capsys: pytest.CaptureFixture[str]) -> None:
    code, _ = await _run(["categories"])

    lines = capsys.readouterr().out.splitlines()
    assert code == EXIT_OK
    assert lines[0].split()[0] == "all"
    assert lines[0].split()[-1] == "2"


@pytest.mark.asyncio()
async def test_export_then_import(tmp_path: Path) -> None:
    target = tmp_path / "out" / "library.json"
    code, _ = await _run(["export", str(target)])

    assert code == EXIT_OK
    exported = json.loads(target.read_text(encoding="utf-8"))
    assert [prompt["id"] for prompt in exported["prompts"]] == ["email", "bug"]

    exported["favorites"] = ["bug"]
    target.write_text(json.dumps(exported), encoding="utf-8")
    code, vault = await _run(["import", str(target)])

    assert code == EXIT_OK
    assert vault.state.favorites == ["bug"]


@pytest.mark.asyncio()
async def test_import_rejects_malformed_file(tmp_path: Path) -> None:
    source = tmp_path / "bad.json"
    source.write_text('{"prompts": [{"id": ""}]}', encoding="utf-8")

    code, vault = await _run(["import", str(source)])

    assert code == EXIT_INVALID_INPUT
    assert len(vault.state.prompts) == 2

    code, _ = await _run(["import", str(tmp_path / "absent.json")])
    assert code == EXIT_INVALID_INPUT


@pytest.mark.asyncio()
async def test_clear_requires_confirmation() -> None:
    code, vault = await _run(["clear"])
    assert code == EXIT_INVALID_INPUT
    assert vault.state.prompts

    code, vault = await _run(["clear", "--yes"])
    assert code == EXIT_OK
    assert vault.state.prompts == []


@pytest.mark.asyncio()
async def test_refresh_replaces_catalogue() -> None:
    payload = json.dumps([{"id": "fresh", "title": "Fresh"}]).encode("utf-8")
    session = await _session(_Fetcher(payload))

    code, vault = await _run(["refresh"], session)

    assert code == EXIT_OK
    assert [prompt.id for prompt in vault.state.prompts] == ["fresh"]


@pytest.mark.asyncio()
async def test_refresh_failure_returns_error_and_keeps_catalogue() -> None:
    session = await _session(_Fetcher(error=CatalogFetchError("offline")))

    code, vault = await _run(["refresh"], session)

    assert code == EXIT_FAILURE
    assert len(vault.state.prompts) == 2
    assert vault.cache_metadata.is_stale is True


@pytest.mark.asyncio()
async def test_refresh_if_stale_skips_fresh_cache(capsys: pytest.CaptureFixture[str]) -> None:
    payload = json.dumps([{"id": "fresh", "title": "Fresh"}]).encode("utf-8")
    session = await _session(_Fetcher(payload))
    await session.scheduler.refresh_now(force=True)
    capsys.readouterr()

    code, _ = await _run(["refresh", "--if-stale"], session)

    assert code == EXIT_OK
    assert "up to date" in capsys.readouterr().out


@pytest.mark.asyncio()
async def test_run_command_closes_session() -> None:
    code, vault = await _run(["history"])

    assert code == EXIT_OK
    assert vault.closed
