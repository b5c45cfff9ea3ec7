"""Разрешение пользовательского ввода в монету CoinGecko.

Порядок: адрес контракта -> статическая таблица популярных монет ->
каталог coins/list (кешируется в aiocache) -> полнотекстовый /search.
"""

from __future__ import annotations

from typing import Any

from aiocache.base import BaseCache
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from tokenhealth.errors import NotFoundError, UpstreamError
from tokenhealth.services.chains import KNOWN_CHAINS
from tokenhealth.services.sources import CoinGeckoClient
from tokenhealth.utils.cache import cached_call
from tokenhealth.utils.identifiers import is_contract_address, normalize_address, normalize_token_key

CATALOG_CACHE_KEY = "coingecko:coins_list"

# Быстрый путь для топовых активов: символ -> (id, имя).
WELL_KNOWN: dict[str, tuple[str, str]] = {
    "btc": ("bitcoin", "Bitcoin"),
    "eth": ("ethereum", "Ethereum"),
    "usdt": ("tether", "Tether"),
    "bnb": ("binancecoin", "BNB"),
    "sol": ("solana", "Solana"),
    "xrp": ("ripple", "XRP"),
    "usdc": ("usd-coin", "USDC"),
    "ada": ("cardano", "Cardano"),
    "doge": ("dogecoin", "Dogecoin"),
    "trx": ("tron", "TRON"),
    "dot": ("polkadot", "Polkadot"),
    "matic": ("matic-network", "Polygon"),
    "link": ("chainlink", "Chainlink"),
    "avax": ("avalanche-2", "Avalanche"),
    "uni": ("uniswap", "Uniswap"),
    "shib": ("shiba-inu", "Shiba Inu"),
    "ltc": ("litecoin", "Litecoin"),
    "dai": ("dai", "Dai"),
    "pepe": ("pepe", "Pepe"),
    "pendle": ("pendle", "Pendle"),
    "arb": ("arbitrum", "Arbitrum"),
    "op": ("optimism", "Optimism"),
}


class ResolvedToken(BaseModel):
    """Результат разрешения токена."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    symbol: str
    name: str
    contract_address: str | None = Field(default=None, alias="contractAddress")
    platforms: dict[str, str] = Field(default_factory=dict)

    def public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "contractAddress": self.contract_address,
        }


def primary_address(platforms: dict[str, Any] | None) -> str | None:
    platforms = {k: v for k, v in (platforms or {}).items() if k and v}
    for chain in KNOWN_CHAINS:
        if platforms.get(chain.coingecko_platform):
            return platforms[chain.coingecko_platform]
    return next(iter(platforms.values()), None)


def rank_key(coin: dict[str, Any]) -> tuple[bool, int]:
    rank = coin.get("market_cap_rank")
    return (rank is None, rank if isinstance(rank, int) else 0)


class TokenResolver:
    def __init__(
        self,
        coingecko: CoinGeckoClient,
        *,
        catalog_ttl_seconds: int = 3600,
        cache: BaseCache | None = None,
    ) -> None:
        self._coingecko = coingecko
        self._catalog_ttl = catalog_ttl_seconds
        self._cache = cache

    async def catalog(self) -> list[dict[str, Any]]:
        """Полный список монет CoinGecko, процессный кеш на catalog_ttl."""

        return await cached_call(
            CATALOG_CACHE_KEY,
            self._catalog_ttl,
            self._coingecko.coins_list,
            cache=self._cache,
        ) or []

    async def resolve(self, raw: str, *, platform: str = "ethereum") -> ResolvedToken:
        key = normalize_token_key(raw)
        if not key:
            raise NotFoundError("Token identifier is empty")

        if is_contract_address(key):
            return await self._resolve_address(normalize_address(key), platform)

        known = WELL_KNOWN.get(key)
        if known is not None:
            coin_id, name = known
            logger.debug("Токен {key} найден в статической таблице: {coin_id}", key=key, coin_id=coin_id)
            return ResolvedToken(id=coin_id, symbol=key, name=name)

        catalog_error: UpstreamError | None = None
        try:
            match = self._match_catalog(await self.catalog(), key)
        except UpstreamError as exc:
            logger.warning("Каталог CoinGecko недоступен, пробуем /search: {error}", error=exc)
            catalog_error, match = exc, None
        if match is not None:
            return match

        coins = await self._coingecko.search(key)
        if coins:
            best = sorted(coins, key=rank_key)[0]
            return ResolvedToken(
                id=best["id"],
                symbol=str(best.get("symbol") or key).lower(),
                name=best.get("name") or best["id"],
            )
        if catalog_error is not None:
            raise catalog_error
        raise NotFoundError(f"Token '{raw}' not found")

    async def _resolve_address(self, address: str, platform: str) -> ResolvedToken:
        data = await self._coingecko.contract_lookup(address, platform)
        if not data or not data.get("id"):
            raise NotFoundError(f"No token found for contract {address}")
        platforms = data.get("platforms") or {}
        return ResolvedToken(
            id=data["id"],
            symbol=str(data.get("symbol") or "").lower(),
            name=data.get("name") or data["id"],
            contract_address=address,
            platforms={k: v for k, v in platforms.items() if k and v},
        )

    @staticmethod
    def _match_catalog(catalog: list[dict[str, Any]], key: str) -> ResolvedToken | None:
        """Точное совпадение символа; при нескольких – то, где id или имя равны вводу."""

        matches = [c for c in catalog if str(c.get("symbol") or "").lower() == key]
        if not matches:
            return None
        preferred = next(
            (c for c in matches if str(c.get("id") or "").lower() == key or str(c.get("name") or "").lower() == key),
            matches[0],
        )
        platforms = {k: v for k, v in (preferred.get("platforms") or {}).items() if k and v}
        return ResolvedToken(
            id=preferred["id"],
            symbol=key,
            name=preferred.get("name") or preferred["id"],
            contract_address=primary_address(platforms),
            platforms=platforms,
        )


__all__ = ["ResolvedToken", "TokenResolver", "WELL_KNOWN", "primary_address", "rank_key"]
