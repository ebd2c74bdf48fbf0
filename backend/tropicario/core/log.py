"""
Loguru setup.

Routes stdlib logging (uvicorn, sqlalchemy) into loguru so the whole
process writes through one sink.
"""

import logging
import sys
import time

from fastapi import Request, Response
from loguru import logger

from tropicario.core.config import Settings


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(settings: Settings) -> None:
    level = "DEBUG" if settings.debug else settings.log_level.upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        backtrace=settings.debug,
        diagnose=not settings.is_production,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


async def log_requests(request: Request, call_next) -> Response:
    """HTTP middleware logging method, path, status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.1f} ms)"
    )
    return response
