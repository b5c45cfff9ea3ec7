"""GeckoTerminal: пулы ликвидности токена."""

from __future__ import annotations

from typing import Any

import aiohttp

from config.settings import SourcesSettings

from .http import JsonSource


class GeckoTerminalClient(JsonSource):
    name = "geckoterminal"

    def __init__(self, settings: SourcesSettings, *, session: aiohttp.ClientSession | None = None) -> None:
        super().__init__(settings, base_url=str(settings.geckoterminal_url), session=session)

    def _headers(self) -> dict[str, str]:
        return {"Accept": f"application/json;version={self._settings.geckoterminal_version}"}

    async def token_pools(self, network: str, address: str) -> list[dict[str, Any]]:
        """Пулы токена, отсортированные источником по ликвидности."""

        data = await self.get_json(f"/networks/{network}/tokens/{address.lower()}/pools")
        pools = data.get("data") if isinstance(data, dict) else None
        return pools if isinstance(pools, list) else []


__all__ = ["GeckoTerminalClient"]
