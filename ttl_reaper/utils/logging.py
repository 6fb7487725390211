"""Logging configuration."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Chatty third-party loggers kept at WARNING unless verbose
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def setup_logging(level: str = "INFO", verbose: bool = False, console: Optional[Console] = None) -> None:
    """Configure root logging with a Rich handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        verbose: Show timestamps/paths and let AWS SDK loggers through
        console: Console to log to (default: stderr)
    """
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid log level: {level}")

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level if verbose else max(log_level, logging.WARNING))
