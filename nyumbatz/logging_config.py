"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import sys

_configured = False


def setup_logging(level: str = "INFO", force: bool = False) -> None:
    """Attach a console handler to the ``nyumbatz`` logger.

    Safe to call more than once; later calls are ignored unless ``force``.
    """
    global _configured
    if _configured and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger = logging.getLogger("nyumbatz")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    # The Supabase client stack is chatty at INFO
    for noisy in ("httpx", "httpcore", "hpack", "postgrest", "gotrue", "storage3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True
