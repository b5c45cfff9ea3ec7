"""Таблица поддерживаемых сетей и их идентификаторы во внешних API."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Chain:
    name: str
    goplus_id: str
    geckoterminal_network: str
    coingecko_platform: str


ETHEREUM = Chain("ethereum", "1", "eth", "ethereum")
BSC = Chain("bsc", "56", "bsc", "binance-smart-chain")
POLYGON = Chain("polygon", "137", "polygon_pos", "polygon-pos")
AVALANCHE = Chain("avalanche", "43114", "avax", "avalanche")
ARBITRUM = Chain("arbitrum", "42161", "arbitrum", "arbitrum-one")
OPTIMISM = Chain("optimism", "10", "optimism", "optimistic-ethereum")
FANTOM = Chain("fantom", "250", "ftm", "fantom")
BASE = Chain("base", "8453", "base", "base")

DEFAULT_CHAIN = ETHEREUM

_ALIASES: dict[str, Chain] = {
    "eth": ETHEREUM,
    "ethereum": ETHEREUM,
    "bsc": BSC,
    "bnb": BSC,
    "binance-smart-chain": BSC,
    "polygon": POLYGON,
    "polygon-pos": POLYGON,
    "matic": POLYGON,
    "avalanche": AVALANCHE,
    "avax": AVALANCHE,
    "arbitrum": ARBITRUM,
    "arbitrum-one": ARBITRUM,
    "optimism": OPTIMISM,
    "optimistic-ethereum": OPTIMISM,
    "fantom": FANTOM,
    "ftm": FANTOM,
    "base": BASE,
}

# Порядок важен: при выборе платформы из деталей CoinGecko берём первую известную.
KNOWN_CHAINS: tuple[Chain, ...] = (ETHEREUM, BSC, POLYGON, ARBITRUM, OPTIMISM, BASE, AVALANCHE, FANTOM)


def chain_for(hint: str | None) -> Chain:
    """Сеть по подсказке пользователя; неизвестная подсказка -> Ethereum."""

    if not hint:
        return DEFAULT_CHAIN
    return _ALIASES.get(hint.strip().lower(), DEFAULT_CHAIN)


def chain_from_platforms(platforms: dict[str, str] | None) -> tuple[Chain, str | None]:
    """Выбирает сеть и адрес контракта из поля platforms монеты CoinGecko."""

    platforms = {k: v for k, v in (platforms or {}).items() if k and v}
    for chain in KNOWN_CHAINS:
        address = platforms.get(chain.coingecko_platform)
        if address:
            return chain, address
    return DEFAULT_CHAIN, None


__all__ = [
    "Chain",
    "DEFAULT_CHAIN",
    "ETHEREUM",
    "KNOWN_CHAINS",
    "chain_for",
    "chain_from_platforms",
]
