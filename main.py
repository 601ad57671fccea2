"""Application entry point for Prompt Vault.

Updates:
  v0.2.0 - 2026-10-15 - Run commands inside a PromptVaultSession.
  v0.1.0 - 2026-10-10 - Wire settings, logging and CLI commands.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cli.commands import (
    COMMAND_SPECS,
    EXIT_BOOTSTRAP_FAILURE,
    EXIT_OK,
    EXIT_SETTINGS_ERROR,
    run_command,
)
from cli.parser import parse_args
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import build_session

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptVaultSettings
    from core import PromptVaultSession


def _initialise_session(
    settings: PromptVaultSettings,
    logger: logging.Logger,
) -> PromptVaultSession | None:
    try:
        return build_session(settings, start_scheduler=False)
    except Exception as exc:  # pragma: no cover - surfaced to CLI
        logger.error("Failed to initialise services: %s", exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompt_vault.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        cause = f" ({exc.__cause__})" if exc.__cause__ is not None else ""
        logger.error("Failed to load settings: %s%s", exc, cause)
        return EXIT_SETTINGS_ERROR

    if args.print_settings:
        print_settings_summary(settings)
        return EXIT_OK

    spec = COMMAND_SPECS[getattr(args, "command", None)]
    session = _initialise_session(settings, logger)
    if session is None:
        return EXIT_BOOTSTRAP_FAILURE
    return asyncio.run(run_command(spec, session, args, logger))


if __name__ == "__main__":
    raise SystemExit(main())
