"""Агрегатор метрик: кеш -> источники -> нормализация -> скоринг -> кеш.

Каждая категория кешируется отдельно со своим TTL. Свежие категории
собираются параллельно; сбой одной категории или одного источника даёт
сентинелы в её полях, но не роняет весь вызов.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from config.settings import AppSettings
from tokenhealth.errors import InvalidInputError, NotFoundError, UpstreamError
from tokenhealth.models import CacheCategory
from tokenhealth.models.base import utcnow
from tokenhealth.services.cache_store import MetricsCache
from tokenhealth.services.chains import DEFAULT_CHAIN, chain_for, chain_from_platforms
from tokenhealth.services.metrics import (
    CATEGORY_SPECS,
    SCORED_CATEGORIES,
    SocialProfileService,
    TokenContext,
    is_empty_snapshot,
    present,
    snapshot_from_payload,
    snapshot_to_payload,
)
from tokenhealth.services.metrics.community import collect_community
from tokenhealth.services.metrics.development import collect_development
from tokenhealth.services.metrics.liquidity import collect_liquidity
from tokenhealth.services.metrics.security import collect_security
from tokenhealth.services.metrics.tokenomics import FIELDS as TOKENOMICS_FIELDS
from tokenhealth.services.metrics.tokenomics import TokenomicsSnapshot, collect_tokenomics
from tokenhealth.services.resolver import ResolvedToken, TokenResolver
from tokenhealth.services.scans import ScanService
from tokenhealth.services.scoring import health_score, score_category
from tokenhealth.services.sources import Sources
from tokenhealth.utils.identifiers import is_contract_address, normalize_address, normalize_token_key

Clock = Callable[[], datetime]

MODES: dict[str, CacheCategory] = {
    "security-only": CacheCategory.SECURITY,
    "liquidity-only": CacheCategory.LIQUIDITY,
    "tokenomics-only": CacheCategory.TOKENOMICS,
    "community-only": CacheCategory.COMMUNITY,
    "development-only": CacheCategory.DEVELOPMENT,
}

# Категория -> поле CacheTTLSettings.
CATEGORY_TTL: dict[CacheCategory, str] = {
    CacheCategory.SECURITY: "slow",
    CacheCategory.LIQUIDITY: "live",
    CacheCategory.TOKENOMICS: "slow",
    CacheCategory.COMMUNITY: "live",
    CacheCategory.DEVELOPMENT: "slow",
    CacheCategory.GENERIC: "generic",
    CacheCategory.SEARCH: "search",
    CacheCategory.SOCIAL: "social",
}

INFO_KEY_PREFIX = "info:"


def categories_for_mode(mode: str | None) -> tuple[CacheCategory, ...]:
    if not mode:
        return SCORED_CATEGORIES
    try:
        return (MODES[mode],)
    except KeyError:
        raise InvalidInputError(
            f"Unknown mode '{mode}', expected one of: {', '.join(sorted(MODES))}"
        ) from None


@dataclass(slots=True)
class MetricsHints:
    """Уже известные вызывающему сведения о токене."""

    address: str | None = None
    blockchain: str | None = None
    twitter: str | None = None
    github: str | None = None


@dataclass(slots=True)
class MetricsRecord:
    token: dict[str, Any]
    metrics: dict[str, Any]
    scores: dict[str, int]
    health_score: int
    risk_factors: list[str]
    from_cache: bool = False
    cached_categories: list[str] = field(default_factory=list)

    def payload(self) -> dict[str, Any]:
        """Содержимое записи без признаков происхождения (fromCache)."""

        return {
            **self.metrics,
            "scores": dict(self.scores),
            "healthScore": self.health_score,
            "riskFactors": list(self.risk_factors),
            "token": dict(self.token),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.payload(),
            "fromCache": self.from_cache,
            "cachedCategories": list(self.cached_categories),
        }


class MetricsAggregator:
    def __init__(
        self,
        sources: Sources,
        cache: MetricsCache,
        resolver: TokenResolver,
        scans: ScanService,
        settings: AppSettings,
        *,
        social: SocialProfileService | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._sources = sources
        self._cache = cache
        self._resolver = resolver
        self._scans = scans
        self._settings = settings
        self._social = social or SocialProfileService(
            sources.apify, cache, ttl_seconds=settings.cache_ttl.social
        )
        self._clock = clock

    def ttl_for(self, category: CacheCategory) -> int:
        return getattr(self._settings.cache_ttl, CATEGORY_TTL[category])

    async def get_metrics(
        self,
        token: str,
        hints: MetricsHints | None = None,
        *,
        force_refresh: bool = False,
        mode: str | None = None,
        user_id: str | None = None,
    ) -> MetricsRecord:
        categories = categories_for_mode(mode)
        key = normalize_token_key(token)
        if not key:
            raise InvalidInputError("Token identifier is required")
        hints = hints or MetricsHints()
        if hints.address and not is_contract_address(hints.address):
            raise InvalidInputError("Invalid contract address format")

        now = self._clock()
        # Квоту расходует только полный скан; запросы по одной категории бесплатны.
        if user_id and mode is None:
            await self._scans.check_quota(user_id, now.date())

        snapshots: dict[CacheCategory, Any] = {}
        cached: list[CacheCategory] = []
        if not force_refresh:
            for category in categories:
                entry = await self._cache.get(key, category, now=now)
                if entry is not None:
                    snapshots[category] = snapshot_from_payload(CATEGORY_SPECS[category].snapshot_cls, entry.payload)
                    cached.append(category)
        missing = [c for c in categories if c not in snapshots]

        token_info = await self._cached_identity(key, now, allow_stale=not missing)
        if missing:
            ctx, resolved = await self._build_context(key, hints, now)
            fresh = await self._collect(ctx, missing, force_refresh=force_refresh)
            if resolved is None and not ctx.details and all(is_empty_snapshot(s) for s in fresh.values()):
                logger.info("Токен {key} не найден ни в одном источнике", key=key)
                raise NotFoundError(f"Token '{token.strip()}' not found on any data source")
            token_info = self._identity(ctx)
            await self._cache.put(key, CacheCategory.GENERIC, token_info, ttl_seconds=self.ttl_for(CacheCategory.GENERIC), now=now)
            for category, snapshot in fresh.items():
                snapshots[category] = snapshot
                await self._cache.put(
                    key,
                    category,
                    snapshot_to_payload(snapshot),
                    ttl_seconds=self.ttl_for(category),
                    now=now,
                )
        elif token_info is None:
            ctx, _ = await self._build_context(key, hints, now)
            token_info = self._identity(ctx)
            await self._cache.put(key, CacheCategory.GENERIC, token_info, ttl_seconds=self.ttl_for(CacheCategory.GENERIC), now=now)

        record = self._merge(categories, snapshots, token_info, cached)
        logger.info(
            "Метрики {key}: health={health}, категорий из кеша {cached}/{total}",
            key=key,
            health=record.health_score,
            cached=len(cached),
            total=len(categories),
        )

        if mode is None:
            await self._scans.record(
                token_id=token_info.get("id") or key,
                token_symbol=token_info.get("symbol"),
                token_name=token_info.get("name"),
                token_address=token_info.get("contractAddress"),
                health_score=record.health_score,
                category_scores=record.scores,
                user_id=user_id,
            )
            if user_id:
                await self._scans.consume(user_id, now.date())
        return record

    async def get_tokenomics(self, contract_address: str | None, *, force_refresh: bool = False) -> tuple[dict[str, Any], bool]:
        """Tokenomics по адресу контракта. Возвращает (данные, из_кеша)."""

        if not contract_address or not is_contract_address(contract_address):
            raise InvalidInputError("Invalid contract address format")
        key = normalize_address(contract_address)
        now = self._clock()
        if not force_refresh:
            entry = await self._cache.get(key, CacheCategory.TOKENOMICS, now=now)
            if entry is not None:
                return self._tokenomics_data(snapshot_from_payload(TokenomicsSnapshot, entry.payload)), True

        details: dict[str, Any] = {}
        try:
            details = await self._sources.coingecko.contract_lookup(key) or {}
        except UpstreamError as exc:
            logger.warning("coingecko недоступен для {key}: {error}", key=key, error=exc)
        ctx = TokenContext(key=key, now=now, details=details, contract_address=key, chain=DEFAULT_CHAIN)
        snapshot = await collect_tokenomics(ctx, self._sources)
        if is_empty_snapshot(snapshot):
            raise NotFoundError(f"No on-chain data for contract {key}")
        await self._cache.put(
            key,
            CacheCategory.TOKENOMICS,
            snapshot_to_payload(snapshot),
            ttl_seconds=self.ttl_for(CacheCategory.TOKENOMICS),
            now=now,
        )
        return self._tokenomics_data(snapshot), False

    async def get_token_info(self, token: str) -> dict[str, Any]:
        """Результат разрешения и рыночный снимок монеты."""

        key = normalize_token_key(token)
        if not key:
            raise InvalidInputError("Token identifier is required")
        now = self._clock()
        cache_key = f"{INFO_KEY_PREFIX}{key}"
        entry = await self._cache.get(cache_key, CacheCategory.GENERIC, now=now)
        if entry is not None:
            return entry.payload

        resolved = await self._resolver.resolve(key)
        details = await self._sources.coingecko.coin_details(resolved.id) or {}
        market = details.get("market_data") or {}
        image = details.get("image") or {}
        chain, address = chain_from_platforms(details.get("platforms") or resolved.platforms)
        info = {
            **resolved.public(),
            "contractAddress": resolved.contract_address or address,
            "blockchain": chain.name if (resolved.contract_address or address) else None,
            "image": image.get("large") or image.get("small"),
            "marketCapRank": details.get("market_cap_rank"),
            "currentPrice": (market.get("current_price") or {}).get("usd"),
            "marketCap": (market.get("market_cap") or {}).get("usd"),
            "totalVolume": (market.get("total_volume") or {}).get("usd"),
            "priceChange24h": market.get("price_change_percentage_24h"),
            "twitter": (details.get("links") or {}).get("twitter_screen_name") or None,
        }
        await self._cache.put(cache_key, CacheCategory.GENERIC, info, ttl_seconds=self.ttl_for(CacheCategory.GENERIC), now=now)
        return info

    async def _cached_identity(self, key: str, now: datetime, *, allow_stale: bool) -> dict[str, Any] | None:
        entry = await self._cache.get(key, CacheCategory.GENERIC, now=now)
        if entry is None and allow_stale:
            # Категории все в кеше: личность токена не меняется, годится и старая строка.
            entry = await self._cache.get_stale(key, CacheCategory.GENERIC)
        return dict(entry.payload) if entry is not None else None

    async def _build_context(
        self,
        key: str,
        hints: MetricsHints,
        now: datetime,
    ) -> tuple[TokenContext, ResolvedToken | None]:
        chain_hint = chain_for(hints.blockchain) if hints.blockchain else None
        platform = (chain_hint or DEFAULT_CHAIN).coingecko_platform
        resolved: ResolvedToken | None = None
        try:
            resolved = await self._resolver.resolve(key, platform=platform)
        except NotFoundError:
            if not is_contract_address(key):
                raise
            logger.info("Адрес {key} неизвестен CoinGecko, продолжаем по on-chain источникам", key=key)
        except UpstreamError as exc:
            if not is_contract_address(key):
                raise
            logger.warning(
                "{source} недоступен при разрешении {key}, продолжаем по on-chain источникам: {error}",
                source=exc.source,
                key=key,
                error=exc,
            )

        details: dict[str, Any] = {}
        if resolved is not None:
            try:
                details = await self._sources.coingecko.coin_details(resolved.id) or {}
            except UpstreamError as exc:
                logger.warning("Детали coingecko недоступны для {key}: {error}", key=key, error=exc)

        address = hints.address or (key if is_contract_address(key) else None)
        if address is None and resolved is not None:
            address = resolved.contract_address
        platforms = details.get("platforms") or (resolved.platforms if resolved else {})
        if chain_hint is not None:
            chain = chain_hint
            address = address or (platforms or {}).get(chain.coingecko_platform) or None
        elif is_contract_address(key) or hints.address:
            chain = DEFAULT_CHAIN
        else:
            chain, platform_address = chain_from_platforms(platforms)
            address = address or platform_address

        ctx = TokenContext(
            key=key,
            now=now,
            coin_id=resolved.id if resolved else None,
            symbol=(resolved.symbol if resolved else None) or details.get("symbol"),
            name=(resolved.name if resolved else None) or details.get("name"),
            details=details,
            contract_address=normalize_address(address) if address else None,
            chain=chain,
            twitter_handle=hints.twitter.lstrip("@") if hints.twitter else None,
            github_repo=hints.github,
        )
        return ctx, resolved

    async def _collect(
        self,
        ctx: TokenContext,
        categories: list[CacheCategory],
        *,
        force_refresh: bool,
    ) -> dict[CacheCategory, Any]:
        collectors: dict[CacheCategory, Callable[[], Awaitable[Any]]] = {
            CacheCategory.SECURITY: lambda: collect_security(ctx, self._sources),
            CacheCategory.LIQUIDITY: lambda: collect_liquidity(ctx, self._sources),
            CacheCategory.TOKENOMICS: lambda: collect_tokenomics(ctx, self._sources),
            CacheCategory.COMMUNITY: lambda: collect_community(ctx, self._social, force_refresh=force_refresh),
            CacheCategory.DEVELOPMENT: lambda: collect_development(ctx, self._sources),
        }
        results = await asyncio.gather(*(collectors[c]() for c in categories), return_exceptions=True)
        return {
            category: self._unwrap(result, CATEGORY_SPECS[category].empty(), category=category, key=ctx.key)
            for category, result in zip(categories, results)
        }

    def _merge(
        self,
        categories: tuple[CacheCategory, ...],
        snapshots: dict[CacheCategory, Any],
        token_info: dict[str, Any],
        cached: list[CacheCategory],
    ) -> MetricsRecord:
        metrics: dict[str, Any] = {}
        scores: dict[str, int] = {}
        for category in categories:
            snapshot = snapshots[category]
            metrics.update(present(snapshot, CATEGORY_SPECS[category].fields))
            scores[category.value] = score_category(category, snapshot)
        security = snapshots.get(CacheCategory.SECURITY)
        return MetricsRecord(
            token=token_info,
            metrics=metrics,
            scores=scores,
            health_score=health_score(scores, self._settings.scoring.weights),
            risk_factors=list(security.risk_factors) if security is not None else [],
            from_cache=len(cached) == len(categories),
            cached_categories=[c.value for c in cached],
        )

    @staticmethod
    def _identity(ctx: TokenContext) -> dict[str, Any]:
        return {
            "id": ctx.coin_id or ctx.key,
            "symbol": ctx.symbol.upper() if ctx.symbol else None,
            "name": ctx.name,
            "contractAddress": ctx.contract_address,
            "blockchain": ctx.chain.name,
        }

    @staticmethod
    def _tokenomics_data(snapshot: TokenomicsSnapshot) -> dict[str, Any]:
        return {
            **present(snapshot, TOKENOMICS_FIELDS),
            "score": score_category(CacheCategory.TOKENOMICS, snapshot),
        }

    @staticmethod
    def _unwrap(value: Any, fallback: Any, *, category: CacheCategory, key: str) -> Any:
        if isinstance(value, BaseException) and not isinstance(value, Exception):
            raise value
        if isinstance(value, Exception):
            logger.opt(exception=value).warning(
                "Категория {category} для {key} собрана с ошибкой, отдаём сентинелы: {error}",
                category=category.value,
                key=key,
                error=value,
            )
            return fallback
        return value


__all__ = [
    "CATEGORY_TTL",
    "MODES",
    "MetricsAggregator",
    "MetricsHints",
    "MetricsRecord",
    "categories_for_mode",
]
