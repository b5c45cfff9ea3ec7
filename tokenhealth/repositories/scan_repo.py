"""История сканирований и дневные квоты."""

from __future__ import annotations

from datetime import date

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tokenhealth.models import Subscriber, SubscriberTier, TokenScan


async def insert_token_scan(
    session: AsyncSession,
    *,
    token_id: str,
    token_symbol: str | None,
    token_name: str | None,
    token_address: str | None,
    health_score: int | None,
    category_scores: dict[str, int] | None,
    user_id: str | None = None,
) -> TokenScan:
    scan = TokenScan(
        token_id=token_id,
        token_symbol=token_symbol,
        token_name=token_name,
        token_address=token_address,
        health_score=health_score,
        category_scores=category_scores,
        user_id=user_id,
    )
    session.add(scan)
    await session.commit()
    await session.refresh(scan)
    return scan


async def list_recent_scans(session: AsyncSession, limit: int = 10) -> list[TokenScan]:
    stmt = select(TokenScan).order_by(TokenScan.created_at.desc(), TokenScan.id.desc()).limit(limit)
    return list((await session.exec(stmt)).all())


async def get_subscriber(session: AsyncSession, user_id: str) -> Subscriber | None:
    stmt = select(Subscriber).where(Subscriber.user_id == user_id)
    return (await session.exec(stmt)).one_or_none()


async def ensure_subscriber(
    session: AsyncSession,
    user_id: str,
    *,
    default_limit: int,
) -> Subscriber:
    subscriber = await get_subscriber(session, user_id)
    if subscriber:
        return subscriber
    subscriber = Subscriber(user_id=user_id, tier=SubscriberTier.FREE, scan_limit=default_limit)
    session.add(subscriber)
    await session.commit()
    await session.refresh(subscriber)
    return subscriber


async def reset_if_new_day(session: AsyncSession, subscriber: Subscriber, today: date) -> Subscriber:
    """Обнуляет счётчик, если последний сброс был не сегодня."""

    if subscriber.scan_reset_date == today:
        return subscriber
    subscriber.scan_count = 0
    subscriber.scan_reset_date = today
    subscriber.touch()
    session.add(subscriber)
    await session.commit()
    await session.refresh(subscriber)
    return subscriber


async def increment_scan_count(session: AsyncSession, subscriber: Subscriber) -> Subscriber:
    subscriber.scan_count += 1
    subscriber.touch()
    session.add(subscriber)
    await session.commit()
    await session.refresh(subscriber)
    return subscriber


__all__ = [
    "ensure_subscriber",
    "get_subscriber",
    "increment_scan_count",
    "insert_token_scan",
    "list_recent_scans",
    "reset_if_new_day",
]
