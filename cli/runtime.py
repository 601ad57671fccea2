"""Runtime boot helpers for Prompt Vault CLI.

Updates:
  v0.1.1 - 2026-10-15 - Report unreadable logging configuration files.
  v0.1.0 - 2026-10-10 - Extract logging configuration helpers.
"""

from __future__ import annotations

import configparser
import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    failure: Exception | None = None
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (configparser.Error, OSError, KeyError, ValueError, RuntimeError) as exc:
            failure = exc
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if failure is not None:
        logging.getLogger("prompt_vault.runtime").warning(
            "Ignoring logging configuration %s: %s", path, failure
        )
