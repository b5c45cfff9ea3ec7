"""CoinGecko: каталог монет, детали, поиск и рыночные данные."""

from __future__ import annotations

from typing import Any

import aiohttp
from pydantic import SecretStr

from config.settings import SourcesSettings
from tokenhealth.errors import UpstreamError

from .http import JsonSource


class CoinGeckoClient(JsonSource):
    name = "coingecko"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(settings, api_key, base_url=str(settings.coingecko_url), session=session)

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        key = self._key()
        if key:
            headers["x-cg-demo-api-key"] = key
        return headers

    async def coin_details(self, coin_id: str) -> dict[str, Any] | None:
        return await self.get_json(
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "true",
                "developer_data": "true",
                "sparkline": "false",
            },
        )

    async def contract_lookup(self, address: str, platform: str = "ethereum") -> dict[str, Any] | None:
        return await self.get_json(f"/coins/{platform}/contract/{address.lower()}")

    async def coins_list(self) -> list[dict[str, Any]]:
        data = await self.get_json("/coins/list", params={"include_platform": "true"})
        if data is None:
            return []
        if not isinstance(data, list):
            raise UpstreamError(self.name, "coins/list returned non-list payload")
        return data

    async def search(self, query: str) -> list[dict[str, Any]]:
        data = await self.get_json("/search", params={"query": query})
        coins = (data or {}).get("coins") if isinstance(data, dict) else None
        return coins if isinstance(coins, list) else []

    async def markets(self, ids: list[str], vs_currency: str = "usd") -> list[dict[str, Any]]:
        if not ids:
            return []
        data = await self.get_json(
            "/coins/markets",
            params={
                "vs_currency": vs_currency,
                "ids": ",".join(ids),
                "order": "market_cap_desc",
                "per_page": str(len(ids)),
                "page": "1",
                "sparkline": "false",
            },
        )
        return data if isinstance(data, list) else []


__all__ = ["CoinGeckoClient"]
