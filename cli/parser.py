"""Argument parser for Prompt Vault CLI.

Updates:
  v0.2.0 - 2026-10-15 - Add refresh, import and export subcommands.
  v0.1.0 - 2026-10-10 - Introduce library browsing subcommands.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from core.query import SortMode


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the Prompt Vault launcher."""
    parser = argparse.ArgumentParser(description="Prompt Vault launcher")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List prompts matching the given filters.")
    list_parser.add_argument(
        "--category",
        default=None,
        help="Category id ('all' for every prompt).",
    )
    list_parser.add_argument("--search", default=None, help="Case-insensitive search text.")
    list_parser.add_argument(
        "--sort",
        default=None,
        help=f"Sort order ({', '.join(mode.value for mode in SortMode)}).",
    )
    list_parser.add_argument(
        "--favorites",
        action="store_true",
        help="Only show favorite prompts.",
    )
    list_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of prompts to display.",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Display a prompt and record it in the recently viewed list.",
    )
    show_parser.add_argument("prompt_id", help="Identifier of the prompt to display.")

    fill_parser = subparsers.add_parser(
        "fill",
        help="Fill a prompt's [placeholders] and print the resulting text.",
    )
    fill_parser.add_argument("prompt_id", help="Identifier of the prompt template.")
    fill_parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Value for a placeholder field (repeatable).",
    )
    fill_parser.add_argument(
        "--fields",
        action="store_true",
        help="List the template's fields instead of filling it.",
    )

    favorite_parser = subparsers.add_parser("favorite", help="Toggle a prompt's favorite flag.")
    favorite_parser.add_argument("prompt_id", help="Identifier of the prompt.")

    rate_parser = subparsers.add_parser("rate", help="Rate a prompt from 0 to 5 stars.")
    rate_parser.add_argument("prompt_id", help="Identifier of the prompt.")
    rate_parser.add_argument("rating", type=int, help="Star rating between 0 and 5.")
    like_group = rate_parser.add_mutually_exclusive_group()
    like_group.add_argument("--like", dest="liked", action="store_true", default=None)
    like_group.add_argument("--unlike", dest="liked", action="store_false")
    rate_parser.add_argument("--comment", default=None, help="Optional comment.")

    subparsers.add_parser("history", help="Show recently viewed prompts.")
    subparsers.add_parser("categories", help="List categories with prompt counts.")

    export_parser = subparsers.add_parser(
        "export",
        help="Export prompts, favorites, ratings and history to JSON.",
    )
    export_parser.add_argument(
        "path",
        nargs="?",
        default="-",
        help="Destination file path ('-' or omitted for stdout).",
    )

    import_parser = subparsers.add_parser(
        "import",
        help="Replace prompts and user data with the contents of an export file.",
    )
    import_parser.add_argument("path", type=Path, help="Export file to import.")

    clear_parser = subparsers.add_parser(
        "clear",
        help="Remove every prompt, favorite, rating and history entry.",
    )
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm that all library data should be removed.",
    )

    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Download the remote catalogue and merge it into the library.",
    )
    refresh_parser.add_argument(
        "--if-stale",
        action="store_true",
        help="Only refresh when the refresh interval has elapsed.",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Prompt Vault launcher."""
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
