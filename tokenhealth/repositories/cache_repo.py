"""Работа с кеш-таблицами метрик."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tokenhealth.models import CACHE_TABLES, CacheCategory, CacheRow
from tokenhealth.models.base import ensure_utc


async def get_cache_row(
    session: AsyncSession,
    category: CacheCategory,
    key: str,
) -> CacheRow | None:
    """Строка кеша без учёта срока годности."""

    model = CACHE_TABLES[category]
    stmt = select(model).where(model.token_id == key)
    return (await session.exec(stmt)).one_or_none()


async def get_live_cache_row(
    session: AsyncSession,
    category: CacheCategory,
    key: str,
    *,
    now: datetime,
) -> CacheRow | None:
    """Строка кеша, только если now <= expires_at."""

    row = await get_cache_row(session, category, key)
    if row is None or now > ensure_utc(row.expires_at):
        return None
    return row


async def upsert_cache_row(
    session: AsyncSession,
    category: CacheCategory,
    key: str,
    payload: dict,
    *,
    ttl_seconds: int,
    now: datetime,
) -> CacheRow:
    """Полностью заменяет payload и метки времени для пары (key, category)."""

    model = CACHE_TABLES[category]
    expires_at = now + timedelta(seconds=ttl_seconds)
    row = await get_cache_row(session, category, key)
    if row is None:
        row = model(token_id=key, payload=payload, last_updated=now, expires_at=expires_at)
        session.add(row)
        try:
            await session.commit()
        except IntegrityError:
            # параллельный писатель успел вставить ту же пару
            await session.rollback()
            row = await get_cache_row(session, category, key)
            if row is None:
                raise
            _overwrite(row, payload, now, expires_at)
            session.add(row)
            await session.commit()
    else:
        _overwrite(row, payload, now, expires_at)
        session.add(row)
        await session.commit()
    await session.refresh(row)
    return row


def _overwrite(row: CacheRow, payload: dict, now: datetime, expires_at: datetime) -> None:
    row.payload = payload
    row.last_updated = now
    row.expires_at = expires_at
    row.touch()


__all__ = ["get_cache_row", "get_live_cache_row", "upsert_cache_row"]
