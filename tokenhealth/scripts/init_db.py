"""Создание схемы БД без запуска API: python -m tokenhealth.scripts.init_db."""

from __future__ import annotations

import asyncio

from loguru import logger
from sqlalchemy.engine import make_url

from config.settings import get_settings
from tokenhealth.logging_config import setup_logging
from tokenhealth.middlewares.db import build_engine, init_db


async def _create_schema() -> None:
    settings = get_settings()
    engine = build_engine(settings.database)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()
    logger.info(
        "Схема БД готова: {dsn}",
        dsn=make_url(settings.database.dsn).render_as_string(hide_password=True),
    )


def main() -> None:
    setup_logging()
    asyncio.run(_create_schema())


if __name__ == "__main__":
    main()
