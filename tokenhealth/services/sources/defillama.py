"""DefiLlama: TVL протоколов."""

from __future__ import annotations

from typing import Any

import aiohttp

from config.settings import SourcesSettings

from .http import JsonSource


class DefiLlamaClient(JsonSource):
    name = "defillama"

    def __init__(self, settings: SourcesSettings, *, session: aiohttp.ClientSession | None = None) -> None:
        super().__init__(settings, base_url=str(settings.defillama_url), session=session)

    async def protocols(self) -> list[dict[str, Any]]:
        data = await self.get_json("/protocols")
        return data if isinstance(data, list) else []

    async def find_protocol(self, symbol: str | None, name: str | None) -> dict[str, Any] | None:
        """Сначала точное совпадение символа, затем имени."""

        protocols = await self.protocols()
        if symbol:
            wanted = symbol.lower()
            for item in protocols:
                if str(item.get("symbol") or "").lower() == wanted:
                    return item
        if name:
            wanted = name.lower()
            for item in protocols:
                if str(item.get("name") or "").lower() == wanted:
                    return item
        return None


__all__ = ["DefiLlamaClient"]
