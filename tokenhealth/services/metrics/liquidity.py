"""Категория liquidity: рынок (CoinGecko), пулы (GeckoTerminal), TVL протокола (DefiLlama)."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from tokenhealth.services.sources import Sources
from tokenhealth.utils.formatters import format_change, format_currency, format_days, format_number

from .base import MetricField, TokenContext, parse_datetime, to_float, to_int, unwrap, usd

TOP_POOLS = 5
LOCK_DISPLAY_CAP_DAYS = 365


@dataclass(slots=True)
class PoolSummary:
    tvl: float | None = None
    tvl_change_24h: float | None = None
    lock_days: int | None = None
    age_days: int | None = None
    transactions_24h: int | None = None


@dataclass(slots=True)
class LiquiditySnapshot:
    market_cap: float | None = None
    market_cap_change_24h: float | None = None
    price: float | None = None
    price_change_24h: float | None = None
    volume_24h: float | None = None
    pool_tvl: float | None = None
    pool_tvl_change_24h: float | None = None
    lock_days: int | None = None
    pool_age_days: int | None = None
    transactions_24h: int | None = None
    protocol_tvl: float | None = None
    protocol_tvl_change_7d: float | None = None
    chain_count: int | None = None


def format_lock(days: int) -> str:
    if days <= 0:
        return "Unlocked"
    if days > LOCK_DISPLAY_CAP_DAYS:
        return "365+ days"
    return format_days(days)


FIELDS: tuple[MetricField, ...] = (
    MetricField("marketCap", "market_cap", format_currency, "marketCapValue"),
    MetricField("marketCapChange24h", "market_cap_change_24h", format_change, "marketCapChange24hValue"),
    MetricField("price", "price", format_currency, "priceValue"),
    MetricField("priceChange24h", "price_change_24h", format_change, "priceChange24hValue"),
    MetricField("volume24h", "volume_24h", format_currency, "volume24hValue"),
    MetricField("tvl", "pool_tvl", format_currency, "tvlValue"),
    MetricField("tvlChange24h", "pool_tvl_change_24h", format_change, "tvlChange24hValue"),
    MetricField("liquidityLock", "lock_days", format_lock, "liquidityLockDays"),
    MetricField("poolAge", "pool_age_days", format_days, "poolAgeDays"),
    MetricField("transactions24h", "transactions_24h", format_number, "transactions24hValue"),
    MetricField("protocolTvl", "protocol_tvl", format_currency, "protocolTvlValue"),
    MetricField("protocolTvlChange7d", "protocol_tvl_change_7d", format_change, "protocolTvlChange7dValue"),
    MetricField("chainCount", "chain_count", str, "chainCountValue"),
)


def _lock_days_for_pool(attributes: dict[str, Any], now: datetime) -> int | None:
    """Оставшиеся дни блокировки; 0 -> явно не заблокирован; None -> нет данных."""

    locked = attributes.get("liquidity_locked")
    if isinstance(locked, dict):
        if locked.get("is_locked") is False:
            return 0
        seconds = to_float(locked.get("duration_in_seconds"))
        if seconds is not None:
            return max(int(seconds // 86400), 0)
        until = parse_datetime(locked.get("locked_until"))
        if until is not None:
            return max(math.ceil((until - now).total_seconds() / 86400), 0)
    duration = to_int(attributes.get("lock_duration"))
    if duration is not None:
        return max(duration, 0)
    until = parse_datetime(attributes.get("liquidity_locked_until"))
    if until is not None:
        return max(math.ceil((until - now).total_seconds() / 86400), 0)
    return None


def summarize_pools(pools: list[dict[str, Any]], now: datetime) -> PoolSummary:
    """Сводка по TOP_POOLS крупнейшим пулам."""

    top = [p.get("attributes") or {} for p in pools[:TOP_POOLS] if isinstance(p, dict)]
    if not top:
        return PoolSummary()

    tvl_values = [v for v in (to_float(a.get("reserve_in_usd")) for a in top) if v is not None]
    changes = [v for v in (to_float(a.get("reserve_change_24h")) for a in top) if v is not None]
    locks = [v for v in (_lock_days_for_pool(a, now) for a in top) if v is not None]

    created = [d for d in (parse_datetime(a.get("pool_created_at") or a.get("creation_timestamp")) for a in top) if d]
    age_days = max((now - min(created)).days, 0) if created else None

    tx_total: int | None = None
    for attrs in top:
        h24 = ((attrs.get("transactions") or {}).get("h24")) or {}
        if not isinstance(h24, dict):
            continue
        buys, sells = to_int(h24.get("buys")), to_int(h24.get("sells"))
        if buys is None and sells is None:
            continue
        tx_total = (tx_total or 0) + (buys or 0) + (sells or 0)

    return PoolSummary(
        tvl=sum(tvl_values) if tvl_values else None,
        tvl_change_24h=sum(changes) / len(changes) if changes else None,
        # Пулы есть, но ни в одном нет блокировки: ликвидность не заблокирована.
        lock_days=max(locks) if locks else 0,
        age_days=age_days,
        transactions_24h=tx_total,
    )


def parse_protocol(protocol: dict[str, Any] | None) -> tuple[float | None, float | None, int | None]:
    if not protocol:
        return None, None, None
    chains = protocol.get("chains")
    return (
        to_float(protocol.get("tvl")),
        to_float(protocol.get("change_7d")),
        len(chains) if isinstance(chains, list) else None,
    )


def build_liquidity(
    market: dict[str, Any],
    pools: PoolSummary | None,
    protocol: dict[str, Any] | None,
) -> LiquiditySnapshot:
    snapshot = LiquiditySnapshot(
        market_cap=usd(market.get("market_cap")),
        market_cap_change_24h=to_float(market.get("market_cap_change_percentage_24h")),
        price=usd(market.get("current_price")),
        price_change_24h=to_float(market.get("price_change_percentage_24h")),
        volume_24h=usd(market.get("total_volume")),
    )
    if pools is not None:
        snapshot.pool_tvl = pools.tvl
        snapshot.pool_tvl_change_24h = pools.tvl_change_24h
        snapshot.lock_days = pools.lock_days
        snapshot.pool_age_days = pools.age_days
        snapshot.transactions_24h = pools.transactions_24h
    tvl, change, chains = parse_protocol(protocol)
    if protocol:
        snapshot.protocol_tvl, snapshot.protocol_tvl_change_7d, snapshot.chain_count = tvl, change, chains
    return snapshot


async def collect_liquidity(ctx: TokenContext, sources: Sources) -> LiquiditySnapshot:
    async def _pools() -> PoolSummary | None:
        if not ctx.contract_address:
            return None
        pools = await sources.geckoterminal.token_pools(ctx.chain.geckoterminal_network, ctx.contract_address)
        return summarize_pools(pools, ctx.now) if pools else None

    async def _protocol() -> dict[str, Any] | None:
        if not (ctx.symbol or ctx.name):
            return None
        return await sources.defillama.find_protocol(ctx.symbol, ctx.name)

    pools, protocol = await asyncio.gather(_pools(), _protocol(), return_exceptions=True)
    return build_liquidity(
        ctx.market_data,
        unwrap(pools, None, source="geckoterminal", key=ctx.key),
        unwrap(protocol, None, source="defillama", key=ctx.key),
    )


__all__ = [
    "FIELDS",
    "LiquiditySnapshot",
    "PoolSummary",
    "build_liquidity",
    "collect_liquidity",
    "format_lock",
    "summarize_pools",
]
