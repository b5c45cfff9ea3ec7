"""Категория security: флаги рисков контракта (GoPlus) и верификация (Etherscan)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from tokenhealth.services.chains import ETHEREUM
from tokenhealth.services.sources import Sources
from tokenhealth.utils.formatters import format_flag

from .base import MetricField, TokenContext, unwrap

BURN_ADDRESSES = frozenset(
    {
        "0x0000000000000000000000000000000000000000",
        "0x000000000000000000000000000000000000dead",
    }
)

# Флаг снимка -> текст для riskFactors, когда флаг взведён.
RISK_MESSAGES: dict[str, str] = {
    "is_honeypot": "Token is a honeypot: holders cannot sell",
    "owner_change_balance": "Owner can change holder balances",
    "selfdestruct": "Contract can self-destruct",
    "hidden_owner": "Contract has a hidden owner",
    "can_take_back_ownership": "Ownership can be reclaimed",
    "is_mintable": "Supply is mintable",
    "is_blacklisted": "Contract has a blacklist",
    "slippage_modifiable": "Tax / slippage can be modified",
    "transfer_pausable": "Transfers can be paused",
    "trading_cooldown": "Trading cooldown is enforced",
}
CRITICAL_FLAGS = ("is_honeypot", "owner_change_balance", "selfdestruct", "hidden_owner", "can_take_back_ownership")
MODERATE_FLAGS = ("is_mintable", "is_blacklisted", "slippage_modifiable", "transfer_pausable", "trading_cooldown")


@dataclass(slots=True)
class SecuritySnapshot:
    contract_verified: bool | None = None
    ownership_renounced: bool | None = None
    is_honeypot: bool | None = None
    is_mintable: bool | None = None
    owner_change_balance: bool | None = None
    selfdestruct: bool | None = None
    is_blacklisted: bool | None = None
    slippage_modifiable: bool | None = None
    transfer_pausable: bool | None = None
    hidden_owner: bool | None = None
    can_take_back_ownership: bool | None = None
    trading_cooldown: bool | None = None
    is_open_source: bool | None = None
    risk_level: str | None = None
    risk_factors: list[str] = field(default_factory=list)


def _audit(value: bool) -> str:
    return "Verified" if value else "Unverified"


def _honeypot_risk(value: bool) -> str:
    return "High" if value else "Low"


FIELDS: tuple[MetricField, ...] = (
    MetricField("auditStatus", "contract_verified", _audit, "contractVerified", False),
    MetricField("ownershipRenounced", "ownership_renounced", format_flag, "ownershipRenouncedValue", False),
    MetricField("honeypotRisk", "is_honeypot", _honeypot_risk, "isHoneypot", False),
    MetricField("mintable", "is_mintable", format_flag, "mintableValue", False),
    MetricField("ownerCanChangeBalance", "owner_change_balance", format_flag, "ownerCanChangeBalanceValue", False),
    MetricField("selfDestruct", "selfdestruct", format_flag, "selfDestructValue", False),
    MetricField("blacklist", "is_blacklisted", format_flag, "blacklistValue", False),
    MetricField("slippageModifiable", "slippage_modifiable", format_flag, "slippageModifiableValue", False),
    MetricField("transferPausable", "transfer_pausable", format_flag, "transferPausableValue", False),
    MetricField("hiddenOwner", "hidden_owner", format_flag, "hiddenOwnerValue", False),
    MetricField("canTakeBackOwnership", "can_take_back_ownership", format_flag, "canTakeBackOwnershipValue", False),
    MetricField("tradingCooldown", "trading_cooldown", format_flag, "tradingCooldownValue", False),
    MetricField("openSource", "is_open_source", format_flag, "openSourceValue", False),
    MetricField("riskLevel", "risk_level", str),
)


def goplus_flag(data: dict[str, Any], name: str) -> bool | None:
    """GoPlus отдаёт флаги строками "1"/"0"; отсутствие поля -> None."""

    value = data.get(name)
    if value is None or value == "":
        return None
    return str(value) == "1"


def ownership_renounced(data: dict[str, Any]) -> bool | None:
    if "owner_address" not in data:
        return None
    owner = str(data.get("owner_address") or "").lower()
    return owner == "" or owner in BURN_ADDRESSES


def parse_goplus_security(data: dict[str, Any] | None) -> dict[str, bool | None]:
    if not data:
        return {}
    return {
        "ownership_renounced": ownership_renounced(data),
        "is_honeypot": goplus_flag(data, "is_honeypot"),
        "is_mintable": goplus_flag(data, "is_mintable"),
        "owner_change_balance": goplus_flag(data, "owner_change_balance"),
        "selfdestruct": goplus_flag(data, "selfdestruct"),
        "is_blacklisted": goplus_flag(data, "is_blacklisted"),
        "slippage_modifiable": goplus_flag(data, "slippage_modifiable"),
        "transfer_pausable": goplus_flag(data, "transfer_pausable"),
        "hidden_owner": goplus_flag(data, "hidden_owner"),
        "can_take_back_ownership": goplus_flag(data, "can_take_back_ownership"),
        "trading_cooldown": goplus_flag(data, "trading_cooldown"),
        "is_open_source": goplus_flag(data, "is_open_source"),
    }


def parse_verification(source: dict[str, Any] | None) -> bool | None:
    if source is None:
        return None
    return bool(str(source.get("SourceCode") or "").strip())


def assess_risk(snapshot: SecuritySnapshot) -> tuple[str | None, list[str]]:
    """(riskLevel, riskFactors) по взведённым флагам."""

    factors = [msg for attr, msg in RISK_MESSAGES.items() if getattr(snapshot, attr) is True]
    if snapshot.is_open_source is False:
        factors.append("Contract source code is not published")
    known = [getattr(snapshot, attr) for attr in (*CRITICAL_FLAGS, *MODERATE_FLAGS)]
    if all(value is None for value in known):
        return None, factors
    critical = sum(1 for attr in CRITICAL_FLAGS if getattr(snapshot, attr) is True)
    moderate = sum(1 for attr in MODERATE_FLAGS if getattr(snapshot, attr) is True)
    if critical:
        return "High", factors
    if moderate >= 2:
        return "Medium", factors
    return "Low", factors


def build_security(goplus: dict[str, Any] | None, source: dict[str, Any] | None) -> SecuritySnapshot:
    snapshot = SecuritySnapshot(**parse_goplus_security(goplus))
    verified = parse_verification(source)
    snapshot.contract_verified = verified if verified is not None else snapshot.is_open_source
    snapshot.risk_level, snapshot.risk_factors = assess_risk(snapshot)
    return snapshot


async def collect_security(ctx: TokenContext, sources: Sources) -> SecuritySnapshot:
    if not ctx.contract_address:
        logger.debug("security: нет адреса контракта для {key}", key=ctx.key)
        return SecuritySnapshot()

    async def _source_code() -> dict[str, Any] | None:
        if ctx.chain != ETHEREUM:
            return None
        return await sources.etherscan.source_code(ctx.contract_address)

    goplus, source = await asyncio.gather(
        sources.goplus.token_security(ctx.chain.goplus_id, ctx.contract_address),
        _source_code(),
        return_exceptions=True,
    )
    return build_security(
        unwrap(goplus, None, source="goplus", key=ctx.key),
        unwrap(source, None, source="etherscan", key=ctx.key),
    )


__all__ = [
    "FIELDS",
    "SecuritySnapshot",
    "assess_risk",
    "build_security",
    "collect_security",
    "goplus_flag",
    "parse_goplus_security",
]
