"""Etherscan: исходный код контракта и число держателей (только Ethereum)."""

from __future__ import annotations

from typing import Any

import aiohttp
from pydantic import SecretStr

from config.settings import SourcesSettings

from .http import JsonSource


class EtherscanClient(JsonSource):
    name = "etherscan"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(settings, api_key, base_url=str(settings.etherscan_url), session=session)

    async def _call(self, module: str, action: str, **params: str) -> Any:
        query = {"module": module, "action": action, **params}
        key = self._key()
        if key:
            query["apikey"] = key
        data = await self.get_json("", params=query)
        if not isinstance(data, dict) or str(data.get("status")) != "1":
            return None
        return data.get("result")

    async def source_code(self, address: str) -> dict[str, Any] | None:
        result = await self._call("contract", "getsourcecode", address=address)
        if isinstance(result, list) and result and isinstance(result[0], dict):
            return result[0]
        return None

    async def holder_count(self, address: str) -> int | None:
        result = await self._call("token", "tokenholdercount", contractaddress=address)
        try:
            return int(result) if result is not None else None
        except (TypeError, ValueError):
            return None


__all__ = ["EtherscanClient"]
