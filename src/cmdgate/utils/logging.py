"""Logging setup utilities for cmdgate.

Configures the ``cmdgate`` logger from the logging section of the
settings: a stderr handler plus an optional file handler.
"""

from __future__ import annotations

import logging
import sys

from cmdgate.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``cmdgate`` logger for the server and CLI.

    Safe to call more than once: handlers installed by an earlier call
    are closed and replaced, so records are never emitted twice and the
    new level and file take effect. Library loggers such as uvicorn's
    are left alone.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    app_logger = logging.getLogger("cmdgate")
    app_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)

    app_logger.info("Logging initialized at %s level", config.level)
