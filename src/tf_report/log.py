"""Logging setup for the command-line entry point."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

_PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Workflow-command prefix per level; INFO is printed as-is.
_COMMANDS: dict[int, str] = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


class GitHubActionsFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands.

    Warnings and errors become ``::warning::`` / ``::error::`` annotations
    on the run, debug records become ``::debug::`` (shown only when step
    debug logging is enabled).
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape(message)}"


def running_in_actions(environ: dict[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def configure_logging(verbose: bool = False, stream: TextIO | None = None) -> logging.Handler:
    """Attach a single handler to the ``tf_report`` logger.

    Args:
        verbose: Log DEBUG records as well.
        stream: Destination (default ``sys.stderr``).

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    if running_in_actions():
        handler.setFormatter(GitHubActionsFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    logger = logging.getLogger("tf_report")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def remove_logging(handler: logging.Handler) -> None:
    """Detach and close a handler installed by :func:`configure_logging`."""
    logging.getLogger("tf_report").removeHandler(handler)
    handler.close()


def _escape(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
