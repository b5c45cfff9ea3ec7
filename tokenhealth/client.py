"""Асинхронный клиент API метрик для отдельных разделов дашборда.

Каждый раздел (security, liquidity, ...) запрашивает только свою категорию
через mode="<категория>-only". При любой ошибке клиент возвращает запись-
заглушку с сентинелами, чтобы раздел всегда было чем отрисовать.
"""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from loguru import logger

from tokenhealth.models import CacheCategory
from tokenhealth.services.metrics import CATEGORY_SPECS, present


def placeholder_record(category: CacheCategory) -> dict[str, Any]:
    spec = CATEGORY_SPECS[category]
    return {
        **present(spec.empty(), spec.fields),
        "scores": {category.value: 0},
        "healthScore": 0,
        "riskFactors": [],
        "token": {},
        "fromCache": False,
        "cachedCategories": [],
        "placeholder": True,
    }


class CategoryMetricsClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(
        self,
        category: CacheCategory | str,
        token: str,
        *,
        address: str | None = None,
        blockchain: str | None = None,
        force_refresh: bool = False,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        category = CacheCategory(category)
        if category not in CATEGORY_SPECS:
            raise ValueError(f"{category.value} is not a metrics category")
        body = {
            "token": token,
            "address": address,
            "blockchain": blockchain,
            "forceRefresh": force_refresh,
            "mode": f"{category.value}-only",
        }
        headers = {"X-User-Id": user_id} if user_id else None
        try:
            session = await self._ensure_session()
            async with session.post(f"{self._base_url}/api/token-metrics", json=body, headers=headers) as resp:
                data = await resp.json(content_type=None)
                if resp.status != 200:
                    logger.warning(
                        "Метрики {category} для {token}: HTTP {status} {error}",
                        category=category.value,
                        token=token,
                        status=resp.status,
                        error=(data or {}).get("error") if isinstance(data, dict) else data,
                    )
                    return placeholder_record(category)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning(
                "Метрики {category} для {token} недоступны: {error}",
                category=category.value,
                token=token,
                error=exc,
            )
            return placeholder_record(category)
        metrics = data.get("metrics") if isinstance(data, dict) else None
        return metrics if isinstance(metrics, dict) else placeholder_record(category)


__all__ = ["CategoryMetricsClient", "placeholder_record"]
