from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

APP_LOGGER = "compass"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def log_file_path(log_dir: str | None = None) -> str:
    return os.path.join(log_dir or os.environ.get("LOG_DIR", "logs"), "app.log")


def init_logging(
    log_dir: str | None = None,
    level: str | int = "INFO",
    *,
    console: bool = True,
) -> logging.Logger:
    """Configure the 'compass' logger once and return it.

    Writes to <log_dir>/app.log (rotating, 5 MB x 5) and, unless
    ``console`` is False, to stderr. Subsequent calls return the already
    configured logger untouched.
    """
    logger = logging.getLogger(APP_LOGGER)
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    log_path = log_file_path(log_dir)
    os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    file_handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8")
    file_handler.setFormatter(fmt)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        stream.setLevel(level)
        logger.addHandler(stream)

    logger.setLevel(level)
    logger.debug("logging ready | level=%s file=%s", level, log_path)
    return logger


def get_logger(area: str) -> logging.Logger:
    """Child logger, e.g. ``compass.runtime``; inherits the app handlers."""
    return logging.getLogger(f"{APP_LOGGER}.{area}")
