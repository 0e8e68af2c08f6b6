"""Logging setup shared by the API app and CLI scripts."""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Log to stdout and quiet down the HTTP transport loggers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
