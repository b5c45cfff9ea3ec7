"""Entry point for the TokenHealth API."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import get_settings

from .logging_config import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(json=settings.log_json, level="INFO" if settings.is_production else "DEBUG")
    logger.info("Запуск API на {host}:{port}", host=settings.server.host, port=settings.server.port)
    uvicorn.run(
        "tokenhealth.web.app:app",
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
