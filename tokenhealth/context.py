"""Глобальные сервисы TokenHealth (один набор на процесс)."""

from __future__ import annotations

from config.settings import get_settings

from .middlewares import get_session_maker
from .services.aggregator import MetricsAggregator
from .services.cache_store import MetricsCache
from .services.resolver import TokenResolver
from .services.scans import ScanService
from .services.search import TokenSearchService
from .services.sources import Sources
from .utils.cache import configure_cache

settings = get_settings()

configure_cache(settings.cache)
session_maker = get_session_maker()

sources = Sources.from_settings(settings)
metrics_cache = MetricsCache(session_maker)
resolver = TokenResolver(sources.coingecko, catalog_ttl_seconds=settings.cache.catalog_ttl_seconds)
scan_service = ScanService(session_maker, settings.quota)
aggregator = MetricsAggregator(sources, metrics_cache, resolver, scan_service, settings)
search_service = TokenSearchService(
    sources.coingecko,
    resolver,
    metrics_cache,
    ttl_seconds=settings.cache_ttl.search,
)

__all__ = [
    "aggregator",
    "metrics_cache",
    "resolver",
    "scan_service",
    "search_service",
    "session_maker",
    "settings",
    "sources",
]
