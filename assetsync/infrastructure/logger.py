"""
Logging setup for AssetSync.

Every module logs through the single ``logger`` defined here.
"""

import logging
from pathlib import Path
from typing import Optional


LOGGER_NAME = "AssetSync"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _build_logger() -> logging.Logger:
    log = logging.getLogger(LOGGER_NAME)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        log.addHandler(handler)
    log.setLevel(logging.INFO)
    return log


logger = _build_logger()


def enable_file_logging(path: Path, level: int = logging.DEBUG) -> logging.FileHandler:
    """
    Mirror log records into a file.

    Args:
        path: Log file location; parent directories are created
        level: Minimum level written to the file

    Returns:
        The installed handler, so callers can remove it again
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and \
                Path(handler.baseFilename) == path.resolve():
            return handler

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return handler


def disable_file_logging(handler: Optional[logging.FileHandler] = None) -> None:
    """Detach one file handler, or all of them when none is given."""

    targets = [handler] if handler else [
        h for h in logger.handlers if isinstance(h, logging.FileHandler)
    ]
    for h in targets:
        logger.removeHandler(h)
        h.close()


__all__ = [
    "logger",
    "enable_file_logging",
    "disable_file_logging",
]
