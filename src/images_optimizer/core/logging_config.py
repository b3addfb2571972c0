"""Centralized logging configuration for the images optimizer."""

import os
import sys
import logging
import threading
from typing import Optional

ROOT_LOGGER_NAME = "images-optimizer"

LOG_FORMATS = {
    # Workers log concurrently, so structured records carry the thread name
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | %(threadName)s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, name, logging.INFO)
    return resolved if isinstance(resolved, int) else logging.INFO


def _owns_handler(logger: logging.Logger) -> bool:
    # Subclasses such as capture handlers installed by test runners do not count
    return any(type(handler) is logging.StreamHandler for handler in logger.handlers)


def _build_formatter(format_type: str) -> logging.Formatter:
    chosen = os.getenv("LOG_FORMAT", format_type).lower()
    if chosen == "structured":
        return logging.Formatter(LOG_FORMATS["structured"], datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(LOG_FORMATS["simple"])


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure a logger writing to stdout.

    The level comes from ``level``, else the LOG_LEVEL environment variable,
    else INFO. LOG_FORMAT ("structured" or "simple") overrides
    ``format_type``. Calling this again for the same name does not add a
    second handler.

    Args:
        name: Logger name; components use ``images-optimizer.<component>``
        level: Log level override
        format_type: "structured" or "simple"

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not _owns_handler(logger):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger for ``name`` with the package's handler and level applied."""
    return setup_logger(name)


def current_worker_id() -> str:
    """Name of the worker executing the caller, as shown in log records."""
    return threading.current_thread().name


logger = setup_logger()
