"""Процессный кеш aiocache: каталог монет CoinGecko и прочие дорогие списки.

Строки с метриками живут в БД (services/cache_store.py); здесь только то,
что дёшево потерять при рестарте.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable
from urllib.parse import urlparse

from aiocache import SimpleMemoryCache, caches
from aiocache.base import BaseCache
from loguru import logger

from config.settings import CacheSettings, get_settings

_configured = False


def configure_cache(settings: CacheSettings | None = None) -> None:
    """Регистрирует алиас default (memory или redis) один раз на процесс."""

    global _configured
    if _configured:
        return
    cfg = settings or get_settings().cache
    common = {"namespace": cfg.namespace, "ttl": cfg.catalog_ttl_seconds}

    if cfg.backend == "redis":
        try:
            from aiocache import RedisCache
        except (ImportError, AttributeError) as exc:
            raise RuntimeError(
                "Для CACHE__BACKEND=redis установите extra tokenhealth[redis]"
            ) from exc
        backend = {
            "cache": RedisCache,
            **_build_redis_config(cfg.redis_dsn),
            "serializer": {"class": "aiocache.serializers.PickleSerializer"},
        }
    else:
        backend = {"cache": SimpleMemoryCache}
    caches.set_config({"default": {**backend, **common}})
    logger.debug("aiocache: backend={backend}, namespace={ns}", backend=cfg.backend, ns=cfg.namespace)
    _configured = True


def get_cache(alias: str = "default") -> BaseCache:
    configure_cache()
    return caches.get(alias)


async def cached_call(
    key: str,
    ttl: int,
    factory: Callable[[], Awaitable[Any]],
    cache: BaseCache | None = None,
) -> Any:
    """Значение из кеша или результат factory(); None не кешируется."""

    cache = cache or get_cache()
    value = await cache.get(key)
    if value is not None:
        logger.debug("aiocache: попадание {key}", key=key)
        return value
    value = await factory()
    if value is not None:
        await cache.set(key, value, ttl=ttl)
    return value


def _build_redis_config(dsn: str | None) -> dict[str, Any]:
    if not dsn:
        raise RuntimeError("CACHE__BACKEND=redis, но CACHE__REDIS_DSN не указан")
    parsed = urlparse(dsn)
    if parsed.scheme != "redis":
        raise ValueError(f"Неподдерживаемая схема Redis DSN: {parsed.scheme}")
    path = parsed.path.lstrip("/")
    return {
        "endpoint": parsed.hostname or "localhost",
        "port": parsed.port or 6379,
        "password": parsed.password,
        "db": int(path) if path.isdigit() else 0,
    }


__all__ = ["cached_call", "configure_cache", "get_cache"]
