"""Поиск токенов по символу, имени или адресу контракта."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from loguru import logger

from tokenhealth.errors import InvalidInputError, UpstreamError
from tokenhealth.models import CacheCategory
from tokenhealth.models.base import utcnow
from tokenhealth.services.cache_store import MetricsCache
from tokenhealth.services.resolver import TokenResolver, primary_address
from tokenhealth.services.sources import CoinGeckoClient
from tokenhealth.utils.identifiers import is_contract_address, normalize_address, normalize_token_key

MAX_RESULTS = 10


def market_cap_order(item: dict[str, Any]) -> tuple[bool, float]:
    """По убыванию market_cap; записи без капитализации в конце."""

    cap = item.get("market_cap")
    return (cap is None, -(cap or 0))


def _result(
    coin_id: str,
    symbol: str | None,
    name: str | None,
    *,
    image: str | None = None,
    market_cap: float | None = None,
    market_cap_rank: int | None = None,
    current_price: float | None = None,
    total_volume: float | None = None,
    contract_address: str | None = None,
) -> dict[str, Any]:
    return {
        "id": coin_id,
        "symbol": symbol,
        "name": name,
        "image": image,
        "market_cap": market_cap,
        "market_cap_rank": market_cap_rank,
        "current_price": current_price,
        "total_volume": total_volume,
        "contract_address": contract_address,
    }


class TokenSearchService:
    def __init__(
        self,
        coingecko: CoinGeckoClient,
        resolver: TokenResolver,
        cache: MetricsCache,
        *,
        ttl_seconds: int,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._coingecko = coingecko
        self._resolver = resolver
        self._cache = cache
        self._ttl = ttl_seconds
        self._clock = clock

    async def search(self, query: str) -> list[dict[str, Any]]:
        key = normalize_token_key(query)
        if not key:
            raise InvalidInputError("Query is required")
        now = self._clock()
        entry = await self._cache.get(key, CacheCategory.SEARCH, now=now)
        if entry is not None:
            return list(entry.payload.get("results") or [])

        if is_contract_address(key):
            results = await self._by_address(normalize_address(key))
        else:
            results = await self._by_text(key)
        results.sort(key=market_cap_order)
        logger.info("Поиск {query}: {count} результатов", query=key, count=len(results))
        if results:
            await self._cache.put(key, CacheCategory.SEARCH, {"results": results}, ttl_seconds=self._ttl, now=now)
        return results

    async def _by_address(self, address: str) -> list[dict[str, Any]]:
        data = await self._coingecko.contract_lookup(address)
        if not data or not data.get("id"):
            return []
        market = data.get("market_data") or {}
        image = data.get("image") or {}
        return [
            _result(
                data["id"],
                data.get("symbol"),
                data.get("name"),
                image=image.get("small") or image.get("thumb"),
                market_cap=(market.get("market_cap") or {}).get("usd"),
                market_cap_rank=data.get("market_cap_rank"),
                current_price=(market.get("current_price") or {}).get("usd"),
                total_volume=(market.get("total_volume") or {}).get("usd"),
                contract_address=address,
            )
        ]

    async def _by_text(self, key: str) -> list[dict[str, Any]]:
        candidates = await self._candidates(key)
        if not candidates:
            return []
        ids = [c["id"] for c in candidates]
        try:
            markets = await self._coingecko.markets(ids)
        except UpstreamError as exc:
            logger.warning("Рыночные данные для поиска {query} недоступны: {error}", query=key, error=exc)
            markets = []
        by_id = {m.get("id"): m for m in markets if isinstance(m, dict)}

        results = []
        for coin in candidates:
            market = by_id.get(coin["id"])
            if market is None:
                results.append(
                    _result(
                        coin["id"],
                        coin.get("symbol"),
                        coin.get("name"),
                        image=coin.get("thumb"),
                        market_cap_rank=coin.get("market_cap_rank"),
                        contract_address=primary_address(coin.get("platforms")),
                    )
                )
                continue
            results.append(
                _result(
                    coin["id"],
                    market.get("symbol") or coin.get("symbol"),
                    market.get("name") or coin.get("name"),
                    image=market.get("image"),
                    market_cap=market.get("market_cap"),
                    market_cap_rank=market.get("market_cap_rank"),
                    current_price=market.get("current_price"),
                    total_volume=market.get("total_volume"),
                    contract_address=primary_address(coin.get("platforms")),
                )
            )
        return results

    async def _candidates(self, key: str) -> list[dict[str, Any]]:
        """Сначала точные совпадения символа, затем вхождения в имя."""

        try:
            catalog = await self._resolver.catalog()
        except UpstreamError as exc:
            logger.warning("Каталог недоступен, поиск через /search: {error}", error=exc)
            catalog = []
        if catalog:
            by_symbol = [c for c in catalog if str(c.get("symbol") or "").lower() == key]
            seen = {c["id"] for c in by_symbol}
            by_name = [
                c for c in catalog
                if c["id"] not in seen and key in str(c.get("name") or "").lower()
            ]
            found = (by_symbol + by_name)[:MAX_RESULTS]
            if found:
                return found
        return (await self._coingecko.search(key))[:MAX_RESULTS]


__all__ = ["MAX_RESULTS", "TokenSearchService", "market_cap_order"]
