"""Centralized logging configuration for the trace-trees project."""

import logging
import os
import sys
from typing import Optional, Union

PROJECT_LOGGER = "trace_trees"
DEFAULT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
    handler_type: str = "stream",
    log_path: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``trace_trees`` logger once per process.

    Args:
        level: Level as an int or a name such as ``"DEBUG"``
        format_string: Custom format string (optional)
        handler_type: ``"stream"`` (stdout), ``"file"`` (needs ``log_path``)
            or ``"none"``
        log_path: Target file for the ``"file"`` handler

    Returns:
        The project logger. A second call keeps the existing handlers and
        only applies the new level.
    """
    logger = logging.getLogger(PROJECT_LOGGER)
    level = _coerce_level(level)

    if logger.hasHandlers():
        logger.setLevel(level)
        return logger

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    if handler_type == "stream":
        handler = logging.StreamHandler(sys.stdout)
    elif handler_type == "file":
        if log_path is None:
            raise ValueError("handler_type 'file' requires log_path")
        handler = logging.FileHandler(log_path, mode="w")
    elif handler_type == "none":
        handler = logging.NullHandler()
    else:
        raise ValueError(f"Unknown handler type: {handler_type!r}")
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def configure_from(config) -> logging.Logger:
    """Apply ``config.log_level`` (an :class:`~trace_trees.config.EngineConfig`)."""
    return setup_logging(level=config.log_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the project logger.

    ``"base"`` and ``"trace_trees.base"`` name the same logger.
    """
    if not logging.getLogger(PROJECT_LOGGER).hasHandlers():
        setup_logging()

    if name.startswith(PROJECT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PROJECT_LOGGER}.{name}")


def get_test_logger(name: str) -> logging.Logger:
    """
    Logger for the test suite, quiet unless ``TRACE_TREES_TEST_LOG_LEVEL``
    asks for more.
    """
    logger = logging.getLogger(f"Tests.{name}")

    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s'))
        logger.addHandler(handler)
        logger.setLevel(_coerce_level(os.environ.get("TRACE_TREES_TEST_LOG_LEVEL", "WARNING")))
        logger.propagate = False

    return logger
