"""Logging helpers for the excelmap package."""

# Module responsibilities:
# - Centralize logging configuration with console + optional rotating file handlers.
# - Provide get_logger() that configures the package root logger once.

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "excelmap"
LOG_FILE_NAME = "excelmap.log"
_LOG_CONFIGURED = False


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _attach_file_handler(root_logger: logging.Logger, log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(_build_formatter())
    file_handler.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)


def _configure_logging(log_dir: Optional[Path] = None) -> None:
    """Configure the package logger once; a file handler is added when log_dir is given."""
    global _LOG_CONFIGURED
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _LOG_CONFIGURED:
        if log_dir is not None and not any(
            isinstance(h, logging.handlers.RotatingFileHandler) for h in root_logger.handlers
        ):
            _attach_file_handler(root_logger, log_dir)
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_build_formatter())
    console_handler.setLevel(logging.INFO)

    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(console_handler)
    if log_dir is not None:
        _attach_file_handler(root_logger, log_dir)
    root_logger.propagate = False

    _LOG_CONFIGURED = True


def set_level(level: int) -> None:
    """Adjust the level of the package logger and its handlers."""

    _configure_logging()
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return a package-scoped logger.

    Args:
        name: Logger name suffix appended to the package root logger namespace.
        log_dir: Optional directory for a rotating ``excelmap.log`` file.

    Returns:
        Configured logger scoped under ``excelmap``.
    """

    _configure_logging(log_dir)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
