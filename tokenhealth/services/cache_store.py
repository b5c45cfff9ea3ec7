"""Кеш метрик поверх таблиц *_cache.

Контракт: get() отдаёт только живую запись, put() делает upsert без слияния.
Сбой хранилища никогда не блокирует ответ: чтение превращается в промах,
ошибка записи логируется и проглатывается.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from tokenhealth.models import CacheCategory
from tokenhealth.models.base import ensure_utc
from tokenhealth.repositories import get_cache_row, get_live_cache_row, upsert_cache_row

STORE_ERRORS = (SQLAlchemyError, OSError)


@dataclass(slots=True)
class CacheEntry:
    """Снимок строки кеша, отвязанный от ORM-сессии."""

    key: str
    category: CacheCategory
    payload: dict[str, Any]
    last_updated: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now <= self.expires_at


class MetricsCache:
    """get/put для пары (ключ токена, категория)."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def get(self, key: str, category: CacheCategory, *, now: datetime) -> CacheEntry | None:
        try:
            async with self._session_maker() as session:
                row = await get_live_cache_row(session, category, key, now=now)
        except STORE_ERRORS as exc:
            logger.warning(
                "Кеш {category} недоступен для {key}, считаем промахом: {error}",
                category=category.value,
                key=key,
                error=exc,
            )
            return None
        if row is None:
            logger.debug("Промах кеша {category} для {key}", category=category.value, key=key)
            return None
        logger.debug("Попадание в кеш {category} для {key}", category=category.value, key=key)
        return self._to_entry(row, category)

    async def get_stale(self, key: str, category: CacheCategory) -> CacheEntry | None:
        """Последняя запись независимо от срока годности."""

        try:
            async with self._session_maker() as session:
                row = await get_cache_row(session, category, key)
        except STORE_ERRORS as exc:
            logger.warning(
                "Кеш {category} недоступен для {key}: {error}",
                category=category.value,
                key=key,
                error=exc,
            )
            return None
        return self._to_entry(row, category) if row is not None else None

    async def put(
        self,
        key: str,
        category: CacheCategory,
        payload: dict[str, Any],
        *,
        ttl_seconds: int,
        now: datetime,
    ) -> bool:
        """True, если запись сохранена."""

        try:
            async with self._session_maker() as session:
                await upsert_cache_row(
                    session,
                    category,
                    key,
                    payload,
                    ttl_seconds=ttl_seconds,
                    now=now,
                )
        except STORE_ERRORS as exc:
            logger.error(
                "Не удалось записать кеш {category} для {key}: {error}",
                category=category.value,
                key=key,
                error=exc,
            )
            return False
        logger.debug(
            "Кеш {category} для {key} обновлён на {ttl} c",
            category=category.value,
            key=key,
            ttl=ttl_seconds,
        )
        return True

    @staticmethod
    def _to_entry(row, category: CacheCategory) -> CacheEntry:
        return CacheEntry(
            key=row.token_id,
            category=category,
            payload=dict(row.payload or {}),
            last_updated=ensure_utc(row.last_updated),
            expires_at=ensure_utc(row.expires_at),
        )


__all__ = ["CacheEntry", "MetricsCache"]
