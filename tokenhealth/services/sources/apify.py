"""Apify: профиль Twitter через актор twitter-user-scraper.

Запуск актора асинхронный: стартуем run, опрашиваем его статус с растущей
паузой и читаем первую запись dataset.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import aiohttp
from loguru import logger
from pydantic import SecretStr

from config.settings import SourcesSettings
from tokenhealth.errors import UpstreamError

from .http import JsonSource

FAILED_STATUSES = frozenset({"FAILED", "ABORTED", "TIMED-OUT"})


class ApifyClient(JsonSource):
    name = "apify"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(settings, api_key, base_url=str(settings.apify_url), session=session)
        self._sleep = sleep

    def _token(self) -> dict[str, str]:
        key = self._key()
        return {"token": key} if key else {}

    async def twitter_profile(self, handle: str) -> dict[str, Any] | None:
        """Первая запись dataset или None, если актор ничего не нашёл."""

        if not self.has_key:
            logger.debug("Apify ключ не задан, профиль {handle} не запрашиваем", handle=handle)
            return None
        clean = handle.replace("@", "").strip()
        run = await self._request_json(
            "POST",
            f"/acts/{self._settings.apify_actor_id}/runs",
            params=self._token(),
            json={
                "twitterHandles": [clean],
                "getFollowers": True,
                "maxItems": 1,
                "includeUnavailableUsers": False,
            },
        )
        run_id = ((run or {}).get("data") or {}).get("id")
        if not run_id:
            raise UpstreamError(self.name, "run id missing in actor start response")

        dataset_id = await self._wait_for_run(run_id)
        if dataset_id is None:
            return None
        items = await self.get_json(f"/datasets/{dataset_id}/items", params=self._token())
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            logger.debug("Apify dataset пуст для {handle}", handle=clean)
            return None
        return items[0]

    async def _wait_for_run(self, run_id: str) -> str | None:
        delay = self._settings.apify_poll_delay_seconds
        for attempt in range(1, self._settings.apify_poll_attempts + 1):
            await self._sleep(delay)
            delay *= self._settings.backoff_factor
            payload = await self.get_json(f"/actor-runs/{run_id}", params=self._token())
            data = (payload or {}).get("data") or {}
            status = data.get("status")
            logger.debug(
                "Apify run {run_id}: {status} (попытка {attempt})",
                run_id=run_id,
                status=status,
                attempt=attempt,
            )
            if status == "SUCCEEDED":
                return data.get("defaultDatasetId")
            if status in FAILED_STATUSES:
                logger.warning("Apify run {run_id} завершился статусом {status}", run_id=run_id, status=status)
                return None
        raise UpstreamError(self.name, f"run {run_id} did not finish in time")


__all__ = ["ApifyClient", "FAILED_STATUSES"]
