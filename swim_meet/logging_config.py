"""
Logging setup for the command line front end.
"""

import logging
import os
from typing import Optional

from rich.logging import RichHandler


def resolve_level(verbose: bool = False, default: str = "WARNING") -> str:
    if verbose:
        return "DEBUG"
    return (os.environ.get("LOG_LEVEL") or default).upper()


def setup_logging(level: Optional[str] = None) -> None:
    """Route the swim_meet loggers through rich. Third-party HTTP chatter stays at WARNING."""
    level = (level or "WARNING").upper()
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    logging.getLogger("swim_meet").setLevel(getattr(logging, level, logging.WARNING))
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
