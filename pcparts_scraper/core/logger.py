# logger.py
"""
Reusable logging helper.

Usage in a scrape entrypoint (once at startup):
    from pcparts_scraper.core.logger import setup_logging
    setup_logging(log_level="DEBUG")  # optional log_path parameter

Then in any module:
    from pcparts_scraper.core.logger import get_logger
    logger = get_logger(__name__)
    logger.info("message")

Browser-facing modules log through loguru; setup_logging keeps its sink
level in line with the stdlib handlers and writes beside the main log.
"""

from __future__ import annotations

import logging
import sys
from logging import Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

_DEFAULT_LEVEL = logging.INFO
_DEFAULT_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d "
    "| %(funcName)s | %(message)s"
)
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_LOG_DIR = Path("logs")
_DEFAULT_FILENAME = "scraper.log"


def setup_logging(
    *,
    log_level: str | int = _DEFAULT_LEVEL,
    log_path: str | Path | None = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 5,
    propagate: bool = False,
) -> Path:
    """
    Configure root logging with console + rotating file handlers.

    Call this once per scrape run.

    Args:
        log_level: Logging level (name or numeric).
        log_path: Directory or file path for the log file.
                  If a directory, `scraper.log` is created inside.
        max_bytes: Rotate file when size exceeds this many bytes.
        backup_count: How many rotated files to keep.
        propagate: Whether child loggers should propagate to the root handlers.

    Returns:
        The resolved log file path.
    """
    level = _resolve_level(log_level)
    log_path = _resolve_log_path(log_path)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT))
    console_handler.setLevel(level)

    file_handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT))
    file_handler.setLevel(level)

    # Reset root handlers to avoid duplicates
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(console_handler)
    root.addHandler(file_handler)
    root.propagate = propagate

    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=logging.getLevelName(level))
    loguru_logger.add(
        log_path.with_name(f"{log_path.stem}-browser{log_path.suffix}"),
        level=logging.getLevelName(level),
        rotation=max_bytes,
        retention=backup_count,
        encoding="utf-8",
    )

    # Chatty third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.INFO)
    return log_path


def get_logger(name: Optional[str] = None) -> Logger:
    """
    Retrieve a logger instance for the given namespace.
    Falls back to the root logger when `name` is None.
    """
    return logging.getLogger(name)


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Invalid log level: {level}")
    return resolved


def _resolve_log_path(target: str | Path | None) -> Path:
    if target is None:
        directory = _DEFAULT_LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        return directory / _DEFAULT_FILENAME

    target_path = Path(target)
    if target_path.suffix:  # treat as file
        target_path.parent.mkdir(parents=True, exist_ok=True)
        return target_path

    target_path.mkdir(parents=True, exist_ok=True)
    return target_path / _DEFAULT_FILENAME
