"""CLI command handlers for Prompt Vault.

Each handler receives an opened :class:`PromptVaultSession` and returns the
process exit code.

Updates:
  v0.3.0 - 2026-10-15 - Add refresh, import and export commands.
  v0.2.0 - 2026-10-13 - Add template filling with typed placeholder validation.
  v0.1.0 - 2026-10-10 - Introduce list, show, favorite, rate and history commands.
"""

from __future__ import annotations

import argparse
import logging
import textwrap
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from core.exceptions import ImportPayloadError
from core.query import filtered_view
from core.templating import PlaceholderValidator, TemplateParser

from .utils import parse_assignments, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.factory import PromptVaultSession
    from models.prompt_model import Prompt

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SETTINGS_ERROR = 2
EXIT_BOOTSTRAP_FAILURE = 3
EXIT_NOT_FOUND = 4
EXIT_INVALID_INPUT = 5

CommandHandler = Callable[
    ["PromptVaultSession", argparse.Namespace, logging.Logger],
    Awaitable[int],
]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler


def _format_prompt_line(prompt: Prompt, *, favorite: bool) -> str:
    marker = "*" if favorite else " "
    category = prompt.category or "-"
    rating = f"{prompt.average_rating:.1f}" if prompt.average_rating else "-"
    return f"{marker} {prompt.id}  {prompt.title}  [{category}]  rating {rating}"


def _print_prompts(session: PromptVaultSession, prompts: list[Prompt], empty_message: str) -> None:
    if not prompts:
        print(empty_message)
        return
    for prompt in prompts:
        print(_format_prompt_line(prompt, favorite=session.vault.is_favorite(prompt.id)))


def _not_found(logger: logging.Logger, prompt_id: str) -> int:
    print_and_log(logger, logging.ERROR, f"Prompt not found: {prompt_id}")
    return EXIT_NOT_FOUND


async def run_list(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    state = session.vault.state
    view_state = replace(
        state,
        selected_category=getattr(args, "category", None) or state.selected_category,
        search_query=(
            state.search_query if getattr(args, "search", None) is None else args.search
        ),
        sort_by=getattr(args, "sort", None) or state.sort_by,
        show_favorites_only=bool(getattr(args, "favorites", False)) or state.show_favorites_only,
    )
    prompts = filtered_view(view_state)
    limit = getattr(args, "limit", None)
    if limit is not None:
        if limit < 0:
            print_and_log(logger, logging.ERROR, "--limit must not be negative")
            return EXIT_INVALID_INPUT
        prompts = prompts[:limit]
    _print_prompts(session, prompts, "No prompts match the current filters.")
    return EXIT_OK


async def run_show(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    vault = session.vault
    prompt = vault.get_prompt(args.prompt_id)
    if prompt is None:
        return _not_found(logger, args.prompt_id)
    await vault.add_to_history(prompt.id)
    rating = vault.rating_for(prompt.id)
    details = [
        f"{prompt.title} ({prompt.id})",
        f"Category: {prompt.category or '-'}",
        f"Author: {prompt.author or '-'}",
        f"Tags: {', '.join(prompt.tags) if prompt.tags else '-'}",
        f"Difficulty: {prompt.difficulty or '-'}",
        f"Average rating: {prompt.average_rating:.1f}",
        f"Favorite: {'yes' if vault.is_favorite(prompt.id) else 'no'}",
    ]
    if rating is not None:
        details.append(f"Your rating: {rating.rating}{' (liked)' if rating.liked else ''}")
    if prompt.description:
        details.append("")
        details.append(textwrap.fill(prompt.description, width=88))
    details.extend(["", prompt.content])
    if prompt.usage_notes:
        details.extend(["", f"Usage notes: {prompt.usage_notes}"])
    print("\n".join(details))
    return EXIT_OK


async def run_fill(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    vault = session.vault
    prompt = vault.get_prompt(args.prompt_id)
    if prompt is None:
        return _not_found(logger, args.prompt_id)
    parser = TemplateParser()
    parsed = parser.parse(prompt.content)
    if getattr(args, "fields", False):
        if not parsed.fields:
            print("This prompt has no placeholders.")
            return EXIT_OK
        for entry in parsed.fields:
            required = "required" if entry.required else "optional"
            line = f"{entry.id}  ({entry.field_type.value}, {required})  {entry.name}"
            if entry.options:
                line += f"  options: {' / '.join(entry.options)}"
            print(line)
        return EXIT_OK

    try:
        values = parse_assignments(getattr(args, "assignments", None))
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_INVALID_INPUT
    unknown = sorted(key for key in values if parsed.get_field(key) is None)
    if unknown:
        print_and_log(logger, logging.ERROR, f"Unknown field(s): {', '.join(unknown)}")
        return EXIT_INVALID_INPUT
    result = PlaceholderValidator().validate(parsed, values)
    if not result.is_valid:
        for error in result.errors:
            print_and_log(logger, logging.ERROR, error)
        return EXIT_INVALID_INPUT
    filled = parser.fill(prompt.content, values)
    await vault.add_to_history(prompt.id)
    print(filled.text)
    return EXIT_OK


async def run_favorite(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    vault = session.vault
    if vault.get_prompt(args.prompt_id) is None and not vault.is_favorite(args.prompt_id):
        return _not_found(logger, args.prompt_id)
    is_favorite = await vault.toggle_favorite(args.prompt_id)
    action = "added to" if is_favorite else "removed from"
    print_and_log(logger, logging.INFO, f"Prompt {args.prompt_id} {action} favorites")
    return EXIT_OK


async def run_rate(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        rating = await session.vault.set_rating(
            args.prompt_id,
            args.rating,
            liked=getattr(args, "liked", None),
            comment=getattr(args, "comment", None),
        )
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_INVALID_INPUT
    if rating is None:
        return _not_found(logger, args.prompt_id)
    prompt = session.vault.get_prompt(args.prompt_id)
    average = prompt.average_rating if prompt is not None else 0.0
    print_and_log(
        logger,
        logging.INFO,
        f"Rated {args.prompt_id} {rating.rating}/5 (average {average:.1f})",
    )
    return EXIT_OK


async def run_history(
    session: PromptVaultSession,
    _args: argparse.Namespace,
    _logger: logging.Logger,
) -> int:
    _print_prompts(session, session.vault.history_prompts(), "No prompts viewed yet.")
    return EXIT_OK


async def run_categories(
    session: PromptVaultSession,
    _args: argparse.Namespace,
    _logger: logging.Logger,
) -> int:
    for category in session.vault.categories():
        print(f"{category.id:<18} {category.name:<20} {category.prompt_count:>4}")
    return EXIT_OK


async def run_export(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    target = getattr(args, "path", "-") or "-"
    content = session.vault.export_json()
    if target == "-":
        print(content)
        return EXIT_OK
    destination = Path(target).expanduser()
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(content + "\n", encoding="utf-8")
    except OSError as exc:
        print_and_log(logger, logging.ERROR, f"Failed to write export: {exc}")
        return EXIT_FAILURE
    print_and_log(logger, logging.INFO, f"Library exported to {destination}")
    return EXIT_OK


async def run_import(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    source = Path(args.path).expanduser()
    try:
        payload = source.read_bytes()
    except OSError as exc:
        print_and_log(logger, logging.ERROR, f"Unable to read {source}: {exc}")
        return EXIT_INVALID_INPUT
    try:
        export = await session.vault.import_snapshot(payload)
    except ImportPayloadError as exc:
        print_and_log(logger, logging.ERROR, f"Import rejected: {exc}")
        return EXIT_INVALID_INPUT
    print_and_log(
        logger,
        logging.INFO,
        f"Imported {len(export.prompts)} prompts and {len(export.favorites)} favorites",
    )
    return EXIT_OK


async def run_clear(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    if not getattr(args, "yes", False):
        print_and_log(logger, logging.ERROR, "Refusing to clear the library without --yes")
        return EXIT_INVALID_INPUT
    await session.vault.clear_all()
    print_and_log(logger, logging.INFO, "Library cleared")
    return EXIT_OK


async def run_refresh(
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    force = not getattr(args, "if_stale", False)
    refreshed = await session.scheduler.refresh_now(force=force)
    if refreshed:
        count = len(session.vault.state.prompts)
        print_and_log(logger, logging.INFO, f"Catalogue refreshed ({count} prompts)")
        return EXIT_OK
    if not force and session.scheduler.last_error is None:
        print_and_log(logger, logging.INFO, "Catalogue is up to date")
        return EXIT_OK
    reason = session.scheduler.last_error or "no prompts received"
    print_and_log(logger, logging.WARNING, f"Catalogue refresh failed: {reason}")
    return EXIT_FAILURE


async def run_command(
    spec: CommandSpec,
    session: PromptVaultSession,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Open *session*, run the handler and always close the session afterwards."""
    try:
        try:
            await session.start()
        except Exception as exc:  # pragma: no cover - surfaced to CLI
            logger.error("Failed to initialise prompt vault: %s", exc)
            return EXIT_BOOTSTRAP_FAILURE
        if session.storage_notice:
            logger.warning(session.storage_notice)
        return await spec.handler(session, args, logger)
    finally:
        await session.aclose()


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    None: CommandSpec(run_list),
    "list": CommandSpec(run_list),
    "show": CommandSpec(run_show),
    "fill": CommandSpec(run_fill),
    "favorite": CommandSpec(run_favorite),
    "rate": CommandSpec(run_rate),
    "history": CommandSpec(run_history),
    "categories": CommandSpec(run_categories),
    "export": CommandSpec(run_export),
    "import": CommandSpec(run_import),
    "clear": CommandSpec(run_clear),
    "refresh": CommandSpec(run_refresh),
}


__all__ = [
    "COMMAND_SPECS",
    "CommandSpec",
    "EXIT_BOOTSTRAP_FAILURE",
    "EXIT_INVALID_INPUT",
    "EXIT_NOT_FOUND",
    "EXIT_OK",
    "EXIT_SETTINGS_ERROR",
    "run_command",
]
