"""HTTP-клиенты внешних источников данных."""

from __future__ import annotations

from dataclasses import dataclass

from config.settings import AppSettings

from .apify import ApifyClient
from .coingecko import CoinGeckoClient
from .defillama import DefiLlamaClient
from .etherscan import EtherscanClient
from .geckoterminal import GeckoTerminalClient
from .github import GitHubClient, parse_repo_ref
from .goplus import GoPlusClient
from .http import JsonSource


@dataclass(slots=True)
class Sources:
    """Набор клиентов, разделяемый сервисами одного процесса."""

    coingecko: CoinGeckoClient
    geckoterminal: GeckoTerminalClient
    etherscan: EtherscanClient
    goplus: GoPlusClient
    apify: ApifyClient
    defillama: DefiLlamaClient
    github: GitHubClient

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "Sources":
        src, keys = settings.sources, settings.api_keys
        return cls(
            coingecko=CoinGeckoClient(src, keys.coingecko),
            geckoterminal=GeckoTerminalClient(src),
            etherscan=EtherscanClient(src, keys.etherscan),
            goplus=GoPlusClient(src, keys.goplus),
            apify=ApifyClient(src, keys.apify),
            defillama=DefiLlamaClient(src),
            github=GitHubClient(src, keys.github),
        )

    async def close(self) -> None:
        for client in (
            self.coingecko,
            self.geckoterminal,
            self.etherscan,
            self.goplus,
            self.apify,
            self.defillama,
            self.github,
        ):
            await client.close()


__all__ = [
    "ApifyClient",
    "CoinGeckoClient",
    "DefiLlamaClient",
    "EtherscanClient",
    "GeckoTerminalClient",
    "GitHubClient",
    "GoPlusClient",
    "JsonSource",
    "Sources",
    "parse_repo_ref",
]
