"""Logging setup shared by the service and the CLI."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", rich: bool | None = None) -> None:
    """Configure root logging, replacing any handlers already installed.

    Args:
        level: Log level name
        rich: Use Rich output. Defaults to True when stderr is a terminal;
            Cloud Run and other collectors get plain single-line records.
    """
    if rich is None:
        rich = sys.stderr.isatty()

    handler: logging.Handler
    if rich:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
