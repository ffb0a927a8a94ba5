"""Logging utilities for Travel Translate."""

from __future__ import annotations

import logging

from loguru import logger as loguru_logger


def setup_logging(enable_loguru: bool = True, level: int = logging.INFO) -> None:
    """Configure application-wide logging.

    Library modules log through ``logging.getLogger(__name__)``; this routes
    those records to loguru so the host application gets a single sink.

    Args:
        enable_loguru: When True, bridge stdlib logging to loguru.
        level: Default logging level for stdlib logging.
    """
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if enable_loguru:
        _bridge_standard_logging(loguru_logger, level)


def _bridge_standard_logging(logger: "loguru.Logger", level: int) -> None:
    """Redirect stdlib logging messages to loguru."""
    class LoguruHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                level_name = logger.level(record.levelname).name
            except ValueError:
                level_name = record.levelno
            logger.opt(depth=6, exception=record.exc_info).log(
                level_name, f"[{record.name}] {record.getMessage()}"
            )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(LoguruHandler())
    root.setLevel(level)
