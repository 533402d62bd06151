"""Unified logging configuration for flowgraph."""
from __future__ import annotations

import logging

from . import config

# Prevent duplicate handlers
_configured_loggers: set[str] = set()


def setup_logger(name: str, filename: str) -> logging.Logger:
    """Setup a logger with console and (optionally) file handlers.

    Args:
        name: Logger name (e.g., 'flowgraph', 'api')
        filename: Log file name (e.g., 'engine.log'), used when LOG_TO_FILE is set

    Returns:
        Configured logger instance
    """
    if name in _configured_loggers:
        return logging.getLogger(name)

    level = getattr(logging, config.LOG_LEVEL, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # Prevent duplicate logs

    if config.LOG_TO_FILE:
        config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(config.LOG_DIR / filename, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
        ))
        logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(message)s"
    ))
    logger.addHandler(sh)

    _configured_loggers.add(name)
    return logger


def get_engine_logger() -> logging.Logger:
    """Logger for the flowgraph package (engine, registry, nodes)."""
    return setup_logger("flowgraph", "engine.log")


def get_api_logger() -> logging.Logger:
    """Logger for HTTP API requests."""
    return setup_logger("flowgraph_server", "api.log")
