"""Категория tokenomics: предложение, держатели, концентрация и налоги."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from tokenhealth.services.chains import ETHEREUM
from tokenhealth.services.sources import Sources
from tokenhealth.utils.formatters import format_flag, format_number, format_share

from .base import MetricField, TokenContext, to_float, to_int, unwrap


@dataclass(slots=True)
class TokenomicsSnapshot:
    total_supply: float | None = None
    circulating_supply: float | None = None
    max_supply: float | None = None
    holder_count: int | None = None
    top_holder_pct: float | None = None
    top5_pct: float | None = None
    top10_pct: float | None = None
    concentration_risk: str | None = None
    buy_tax: float | None = None
    sell_tax: float | None = None
    tax_level: str | None = None
    is_mintable: bool | None = None
    is_honeypot: bool | None = None


def _tax(value: float) -> str:
    return f"{value:.1f}%"


FIELDS: tuple[MetricField, ...] = (
    MetricField("totalSupply", "total_supply", format_number, "totalSupplyValue"),
    MetricField("circulatingSupply", "circulating_supply", format_number, "circulatingSupplyValue"),
    MetricField("maxSupply", "max_supply", format_number, "maxSupplyValue"),
    MetricField("holders", "holder_count", format_number, "holdersValue"),
    MetricField("topHolderPercentage", "top_holder_pct", format_share, "topHolderValue"),
    MetricField("top5HoldersPercentage", "top5_pct", format_share, "top5HoldersValue"),
    MetricField("topHoldersPercentage", "top10_pct", format_share, "topHoldersValue"),
    MetricField("concentrationRisk", "concentration_risk", str),
    MetricField("buyTax", "buy_tax", _tax, "buyTaxValue"),
    MetricField("sellTax", "sell_tax", _tax, "sellTaxValue"),
    MetricField("taxLevel", "tax_level", str),
    MetricField("tokenomicsMintable", "is_mintable", format_flag, "tokenomicsMintableValue", False),
)


def concentration_band(top_holder_pct: float | None) -> str | None:
    if top_holder_pct is None:
        return None
    if top_holder_pct < 15:
        return "Low"
    if top_holder_pct < 30:
        return "Medium"
    return "High"


def tax_band(buy_tax: float | None, sell_tax: float | None) -> str | None:
    known = [t for t in (buy_tax, sell_tax) if t is not None]
    if not known:
        return None
    worst = max(known)
    if worst > 10:
        return "Excessive"
    if worst > 5:
        return "High"
    return "Normal"


def fraction_to_pct(value: Any) -> float | None:
    """GoPlus отдаёт доли ("0.05"), в записи храним проценты (5.0)."""

    number = to_float(value)
    return round(number * 100, 4) if number is not None else None


def holder_shares(holders: Any) -> tuple[float | None, float | None, float | None]:
    """(top1, top5, top10) в процентах из списка holders GoPlus."""

    if not isinstance(holders, list) or not holders:
        return None, None, None
    shares = [fraction_to_pct(h.get("percent")) for h in holders if isinstance(h, dict)]
    shares = sorted((s for s in shares if s is not None), reverse=True)
    if not shares:
        return None, None, None
    return shares[0], round(sum(shares[:5]), 4), round(sum(shares[:10]), 4)


def build_tokenomics(
    market: dict[str, Any],
    goplus: dict[str, Any] | None,
    etherscan_holders: int | None,
) -> TokenomicsSnapshot:
    goplus = goplus or {}
    top1, top5, top10 = holder_shares(goplus.get("holders"))
    buy_tax = fraction_to_pct(goplus.get("buy_tax"))
    sell_tax = fraction_to_pct(goplus.get("sell_tax"))
    holder_count = etherscan_holders if etherscan_holders is not None else to_int(goplus.get("holder_count"))
    mintable = goplus.get("is_mintable")
    honeypot = goplus.get("is_honeypot")
    return TokenomicsSnapshot(
        total_supply=to_float(market.get("total_supply")) or to_float(goplus.get("total_supply")),
        circulating_supply=to_float(market.get("circulating_supply")),
        max_supply=to_float(market.get("max_supply")),
        holder_count=holder_count,
        top_holder_pct=top1,
        top5_pct=top5,
        top10_pct=top10,
        concentration_risk=concentration_band(top1),
        buy_tax=buy_tax,
        sell_tax=sell_tax,
        tax_level=tax_band(buy_tax, sell_tax),
        is_mintable=None if mintable in (None, "") else str(mintable) == "1",
        is_honeypot=None if honeypot in (None, "") else str(honeypot) == "1",
    )


async def collect_tokenomics(ctx: TokenContext, sources: Sources) -> TokenomicsSnapshot:
    async def _goplus() -> dict[str, Any] | None:
        if not ctx.contract_address:
            return None
        return await sources.goplus.token_security(ctx.chain.goplus_id, ctx.contract_address)

    async def _holders() -> int | None:
        if not ctx.contract_address or ctx.chain != ETHEREUM:
            return None
        return await sources.etherscan.holder_count(ctx.contract_address)

    goplus, holders = await asyncio.gather(_goplus(), _holders(), return_exceptions=True)
    return build_tokenomics(
        ctx.market_data,
        unwrap(goplus, None, source="goplus", key=ctx.key),
        unwrap(holders, None, source="etherscan", key=ctx.key),
    )


__all__ = [
    "FIELDS",
    "TokenomicsSnapshot",
    "build_tokenomics",
    "collect_tokenomics",
    "concentration_band",
    "holder_shares",
    "tax_band",
]
