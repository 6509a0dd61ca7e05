"""Loguru setup shared by the API server and the CLI.

stdlib records (uvicorn, httpx, watchfiles) are re-emitted through loguru,
so there is a single sink and a single format per process.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

SERVER_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
CLI_FORMAT = "<level>{level: <8}</level> <level>{message}</level>"

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "watchfiles")


class _StdlibToLoguru(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, compact: bool = False) -> None:
    """Replace every loguru handler with one stderr sink.

    ``compact`` drops timestamps and source locations (CLI output).
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=CLI_FORMAT if compact else SERVER_FORMAT)

    logging.basicConfig(handlers=[_StdlibToLoguru()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging configured (level={}, compact={})", level, compact)
