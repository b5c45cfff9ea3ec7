"""Настройка loguru для продакшена."""

from __future__ import annotations

import logging
import sys

from loguru import logger

# Логгеры библиотек, которые пишут через stdlib logging.
STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """Перенаправляет записи stdlib logging в loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(json: bool = False, level: str = "INFO") -> None:
    logger.remove()
    if json:
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, enqueue=True)
    else:
        logger.add(
            sys.stdout,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}",
            level=level,
            colorize=True,
            backtrace=False,
            enqueue=True,
        )
    for name in STDLIB_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


__all__ = ["InterceptHandler", "setup_logging"]
