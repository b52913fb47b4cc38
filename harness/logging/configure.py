from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER = "harness"

_HANDLER_MARKER = "_harness_handler"


def resolve_level(level: str | int | None = None) -> int:
    """Maps a level name (any case) or number to a logging level; unknown names give INFO."""

    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    if name == "INFORMATION":
        name = "INFO"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int | None = None, log_file: str | Path | None = None) -> logging.Logger:
    """Attaches console (and optionally file) handlers to the harness logger.

    Calling it again replaces the handlers it attached before.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        logger.addHandler(handler)

    logger.setLevel(resolve_level(level))
    return logger
