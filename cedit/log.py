"""Logging configuration using loguru.

Intercepts stdlib logging so that anthropic, httpx and the modules of this
package that use ``logging.getLogger`` all flow through loguru with a unified
format.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Map stdlib level name -> loguru level
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk the call stack so loguru reports the real call-site
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def log_file_path(log_dir: str | Path) -> Path:
    """Daily log file inside *log_dir*; loguru fills in the date."""
    return Path(log_dir) / "cedit_{time:YYYY-MM-DD}.log"


def setup_logging(level: str = "INFO", log_dir: str | Path | None = None) -> None:
    """Configure loguru as the sole logging sink.

    Call this once at process startup.  With *log_dir* set, records are also
    written to a file that rotates at midnight.
    """
    level = level.upper()

    # Remove default loguru handler and add ours
    logger.remove()
    logger.add(sys.stderr, level=level, format=_FORMAT)
    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file_path(log_dir)),
            level=level,
            format=_FORMAT,
            colorize=False,
            rotation="00:00",
            encoding="utf-8",
        )

    # Intercept all stdlib logging
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # Quiet down noisy libraries
    for name in ("anthropic", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialised (level={}, dir={})", level, log_dir)
