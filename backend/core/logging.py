"""Process-wide logging setup."""

from __future__ import annotations

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HANDLER_NAME = "creatorspace"


def configure_logging(level: str | None = None) -> None:
    """Attach a single stream handler to the root logger.

    Safe to call more than once: the handler is only installed the first time,
    later calls just adjust the level.
    """
    root = logging.getLogger()
    resolved_level = (level or settings.log_level).upper()
    root.setLevel(resolved_level)

    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


__all__ = ["LOG_FORMAT", "configure_logging"]
