"""Базовый JSON-клиент внешних источников: ленивая aiohttp-сессия и повторы."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from loguru import logger
from pydantic import SecretStr
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.settings import SourcesSettings
from tokenhealth.errors import UpstreamError


class RetryableStatus(RuntimeError):
    """HTTP 429/5xx: стоит повторить запрос."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"HTTP {status}")
        self.status = status
        self.body = body


RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, RetryableStatus)


class JsonSource:
    """Общий HTTP-слой: сессия создаётся при первом запросе, закрывается close()."""

    name = "source"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        base_url: str = "",
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None

    @property
    def has_key(self) -> bool:
        return self._api_key is not None and bool(self._api_key.get_secret_value())

    def _key(self) -> str | None:
        return self._api_key.get_secret_value() if self._api_key is not None else None

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.request_timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _url(self, path: str) -> str:
        if not path:
            return self._base_url
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[int, Any]:
        """Одна попытка запроса. Возвращает (status, json | None)."""

        session = await self._ensure_session()
        async with session.request(method, url, params=params, json=json, headers=headers) as resp:
            if resp.status == 429 or resp.status >= 500:
                raise RetryableStatus(resp.status, await resp.text())
            if resp.status == 404:
                return resp.status, None
            if resp.status >= 400:
                return resp.status, await resp.text()
            try:
                return resp.status, await resp.json(content_type=None)
            except ValueError as exc:
                raise UpstreamError(self.name, f"malformed JSON from {url}") from exc

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """JSON-ответ источника; None при 404.

        Сетевые ошибки, таймауты, 429 и 5xx повторяются sources.retries раз с
        экспоненциальной паузой, затем превращаются в UpstreamError.
        """

        url = self._url(path)
        merged = {**self._headers(), **(headers or {})}
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.retries + 1),
            wait=wait_exponential(
                multiplier=self._settings.backoff_seconds,
                exp_base=self._settings.backoff_factor,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.debug(
                            "{source}: повтор {attempt} для {url}",
                            source=self.name,
                            attempt=number,
                            url=url,
                        )
                    status, data = await self._send(
                        method, url, params=params, json=json, headers=merged
                    )
        except RETRYABLE_ERRORS as exc:
            logger.warning(
                "{source}: запрос {url} не удался после повторов: {error}",
                source=self.name,
                url=url,
                error=exc,
            )
            raise UpstreamError(self.name, f"request failed: {exc}") from exc
        except RetryError as exc:
            raise UpstreamError(self.name, f"request failed: {exc}") from exc

        if status == 404:
            logger.debug("{source}: 404 для {url}", source=self.name, url=url)
            return None
        if status >= 400:
            logger.warning(
                "{source}: HTTP {status} для {url}",
                source=self.name,
                status=status,
                url=url,
            )
            raise UpstreamError(self.name, f"HTTP {status}")
        return data

    async def get_json(self, path: str, *, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        return await self._request_json("GET", path, params=params, **kwargs)


__all__ = ["JsonSource", "RETRYABLE_ERRORS", "RetryableStatus"]
