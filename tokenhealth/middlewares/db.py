"""Async-движок SQLModel и выдача сессий в обработчики FastAPI."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config.settings import DatabaseSettings, get_settings
from tokenhealth import models  # noqa: F401  импортируем модели для регистрации метаданных


def build_engine(settings: DatabaseSettings) -> AsyncEngine:
    return create_async_engine(settings.dsn, echo=settings.echo, poolclass=NullPool)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


settings = get_settings()
engine = build_engine(settings.database)
session_maker: async_sessionmaker[AsyncSession] = build_session_maker(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Создаёт таблицы (для прод-схемы используйте Alembic)."""

    target = bind or engine
    url = make_url(str(target.url))
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    async with target.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return session_maker


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: одна AsyncSession на запрос."""

    async with session_maker() as session:
        yield session


__all__ = [
    "build_engine",
    "build_session_maker",
    "engine",
    "get_db_session",
    "get_session_maker",
    "init_db",
]
