"""GoPlus Security: флаги рисков контракта и распределение держателей."""

from __future__ import annotations

from typing import Any

import aiohttp
from pydantic import SecretStr

from config.settings import SourcesSettings

from .http import JsonSource


class GoPlusClient(JsonSource):
    name = "goplus"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(settings, api_key, base_url=str(settings.goplus_url), session=session)

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        key = self._key()
        if key:
            headers["Authorization"] = key
        return headers

    async def token_security(self, chain_id: str, address: str) -> dict[str, Any] | None:
        data = await self.get_json(
            f"/token_security/{chain_id}",
            params={"contract_addresses": address.lower()},
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            return None
        entry = result.get(address.lower())
        return entry if isinstance(entry, dict) else None


__all__ = ["GoPlusClient"]
