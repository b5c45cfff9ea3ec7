# tests/integration/test_cache_store.py
"""
Integration tests for the per-category cache tables
"""
from datetime import timedelta

import pytest

from tokenhealth.models import CacheCategory
from tokenhealth.services.cache_store import MetricsCache

from tests.payloads import START, BrokenSessionMaker


class TestMetricsCache:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, metrics_cache):
        assert await metrics_cache.get("exf", CacheCategory.SECURITY, now=START) is None
        saved = await metrics_cache.put("exf", CacheCategory.SECURITY, {"is_honeypot": False}, ttl_seconds=60, now=START)
        assert saved is True
        entry = await metrics_cache.get("exf", CacheCategory.SECURITY, now=START + timedelta(seconds=30))
        assert entry is not None
        assert entry.payload == {"is_honeypot": False}
        assert entry.last_updated == START
        assert entry.expires_at == START + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, metrics_cache):
        await metrics_cache.put("exf", CacheCategory.LIQUIDITY, {"price": 1.0}, ttl_seconds=300, now=START)
        assert await metrics_cache.get("exf", CacheCategory.LIQUIDITY, now=START + timedelta(seconds=300)) is not None
        assert await metrics_cache.get("exf", CacheCategory.LIQUIDITY, now=START + timedelta(seconds=301)) is None

        stale = await metrics_cache.get_stale("exf", CacheCategory.LIQUIDITY)
        assert stale is not None
        assert not stale.is_live(START + timedelta(seconds=301))

    @pytest.mark.asyncio
    async def test_upsert_replaces_payload(self, metrics_cache):
        await metrics_cache.put("exf", CacheCategory.TOKENOMICS, {"a": 1, "b": 2}, ttl_seconds=60, now=START)
        later = START + timedelta(minutes=5)
        await metrics_cache.put("exf", CacheCategory.TOKENOMICS, {"a": 3}, ttl_seconds=60, now=later)

        entry = await metrics_cache.get("exf", CacheCategory.TOKENOMICS, now=later)
        assert entry.payload == {"a": 3}
        assert entry.expires_at == later + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_categories_are_independent(self, metrics_cache):
        await metrics_cache.put("exf", CacheCategory.SECURITY, {"x": 1}, ttl_seconds=60, now=START)
        assert await metrics_cache.get("exf", CacheCategory.DEVELOPMENT, now=START) is None
        assert await metrics_cache.get("other", CacheCategory.SECURITY, now=START) is None

    @pytest.mark.asyncio
    async def test_store_failure_degrades(self):
        cache = MetricsCache(BrokenSessionMaker())
        assert await cache.get("exf", CacheCategory.SECURITY, now=START) is None
        assert await cache.get_stale("exf", CacheCategory.SECURITY) is None
        assert await cache.put("exf", CacheCategory.SECURITY, {}, ttl_seconds=60, now=START) is False
