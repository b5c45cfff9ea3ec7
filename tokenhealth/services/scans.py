"""История сканирований и дневные квоты подписчиков."""

from __future__ import annotations

from datetime import date
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config.settings import QuotaSettings
from tokenhealth.errors import ConnectivityError, QuotaExceededError
from tokenhealth.models import Subscriber, SubscriberTier, TokenScan
from tokenhealth.repositories import (
    ensure_subscriber,
    increment_scan_count,
    insert_token_scan,
    list_recent_scans,
    reset_if_new_day,
)
from tokenhealth.services.cache_store import STORE_ERRORS


def scan_to_dict(scan: TokenScan) -> dict[str, Any]:
    return {
        "id": scan.id,
        "tokenId": scan.token_id,
        "tokenSymbol": scan.token_symbol,
        "tokenName": scan.token_name,
        "tokenAddress": scan.token_address,
        "healthScore": scan.health_score,
        "categoryScores": scan.category_scores or {},
        "userId": scan.user_id,
        "createdAt": scan.created_at.isoformat() if scan.created_at else None,
    }


class ScanService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession], quota: QuotaSettings) -> None:
        self._session_maker = session_maker
        self._quota = quota

    def limit_for(self, tier: str) -> int:
        return self._quota.pro if tier == SubscriberTier.PRO else self._quota.free

    async def _subscriber(self, session: AsyncSession, user_id: str, today: date) -> Subscriber:
        subscriber = await ensure_subscriber(session, user_id, default_limit=self._quota.free)
        return await reset_if_new_day(session, subscriber, today)

    async def usage(self, user_id: str, today: date) -> dict[str, Any]:
        try:
            async with self._session_maker() as session:
                subscriber = await self._subscriber(session, user_id, today)
        except STORE_ERRORS as exc:
            logger.error("Квоты недоступны для {user_id}: {error}", user_id=user_id, error=exc)
            raise ConnectivityError() from exc
        limit = self.limit_for(subscriber.tier)
        return {
            "userId": subscriber.user_id,
            "tier": subscriber.tier,
            "scanCount": subscriber.scan_count,
            "scanLimit": limit,
            "remaining": max(limit - subscriber.scan_count, 0),
            "resetDate": subscriber.scan_reset_date.isoformat() if subscriber.scan_reset_date else None,
        }

    async def check_quota(self, user_id: str, today: date) -> None:
        usage = await self.usage(user_id, today)
        if usage["remaining"] <= 0:
            logger.info("Квота исчерпана для {user_id}", user_id=user_id)
            raise QuotaExceededError(
                f"Daily scan limit of {usage['scanLimit']} reached, try again tomorrow"
            )

    async def consume(self, user_id: str, today: date) -> None:
        try:
            async with self._session_maker() as session:
                subscriber = await self._subscriber(session, user_id, today)
                await increment_scan_count(session, subscriber)
        except STORE_ERRORS as exc:
            logger.error("Не удалось списать скан для {user_id}: {error}", user_id=user_id, error=exc)

    async def record(
        self,
        *,
        token_id: str,
        token_symbol: str | None,
        token_name: str | None,
        token_address: str | None,
        health_score: int,
        category_scores: dict[str, int],
        user_id: str | None = None,
    ) -> None:
        try:
            async with self._session_maker() as session:
                await insert_token_scan(
                    session,
                    token_id=token_id,
                    token_symbol=token_symbol,
                    token_name=token_name,
                    token_address=token_address,
                    health_score=health_score,
                    category_scores=category_scores,
                    user_id=user_id,
                )
        except STORE_ERRORS as exc:
            logger.error("Не удалось записать скан {token}: {error}", token=token_id, error=exc)

    async def recent(self, limit: int = 10) -> list[dict[str, Any]]:
        try:
            async with self._session_maker() as session:
                scans = await list_recent_scans(session, limit)
        except STORE_ERRORS as exc:
            logger.error("История сканов недоступна: {error}", error=exc)
            raise ConnectivityError() from exc
        return [scan_to_dict(scan) for scan in scans]


__all__ = ["ScanService", "scan_to_dict"]
