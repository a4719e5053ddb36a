"""Logging helpers for the shot probability engine."""

from __future__ import annotations

import logging
from typing import Iterable


def configure_logging(
    level: int | str = logging.INFO,
    handlers: Iterable[logging.Handler] | None = None,
) -> None:
    """Configure root logging for command line sessions.

    Embedding applications may call this to get the same format the CLI
    uses; the engine itself only emits through module level loggers.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=list(handlers) if handlers else None,
    )
