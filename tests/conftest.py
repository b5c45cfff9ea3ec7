"""
Global pytest configuration and fixtures
"""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from aiocache import SimpleMemoryCache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from config.settings import ApiKeysSettings, AppSettings, SourcesSettings
from tokenhealth.middlewares.db import build_session_maker, init_db
from tokenhealth.services.aggregator import MetricsAggregator
from tokenhealth.services.cache_store import MetricsCache
from tokenhealth.services.resolver import TokenResolver
from tokenhealth.services.scans import ScanService
from tokenhealth.services.search import TokenSearchService
from tokenhealth.services.sources import (
    ApifyClient,
    CoinGeckoClient,
    DefiLlamaClient,
    EtherscanClient,
    GeckoTerminalClient,
    GitHubClient,
    GoPlusClient,
    Sources,
)

from tests.payloads import FakeClock, TOKEN_ADDRESS, coin_details, commits, github_repo, goplus_security, pool


@pytest.fixture
def settings() -> AppSettings:
    """Hand-made settings: no ambient secrets, no backoff delay"""
    return AppSettings(
        _env_file=None,
        sources=SourcesSettings(retries=2, backoff_seconds=0, apify_poll_delay_seconds=0),
        api_keys=ApiKeysSettings(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def engine():
    """In-memory aiosqlite engine shared across sessions"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
def metrics_cache(session_maker) -> MetricsCache:
    return MetricsCache(session_maker)


@pytest.fixture
def sources() -> Sources:
    """Source clients replaced by AsyncMocks returning healthy payloads"""
    coingecko = AsyncMock(spec=CoinGeckoClient)
    coingecko.coin_details.return_value = coin_details()
    coingecko.contract_lookup.return_value = coin_details()
    coingecko.coins_list.return_value = [
        {"id": "examplefi", "symbol": "exf", "name": "ExampleFi", "platforms": {"ethereum": TOKEN_ADDRESS}},
    ]
    coingecko.search.return_value = []
    coingecko.markets.return_value = []

    geckoterminal = AsyncMock(spec=GeckoTerminalClient)
    geckoterminal.token_pools.return_value = [
        pool("6000000", change="4.0", lock_duration="200"),
        pool("2500000", change="2.0"),
    ]

    etherscan = AsyncMock(spec=EtherscanClient)
    etherscan.source_code.return_value = {"SourceCode": "contract ExampleFi {}", "ContractName": "ExampleFi"}
    etherscan.holder_count.return_value = 15234

    goplus = AsyncMock(spec=GoPlusClient)
    goplus.token_security.return_value = goplus_security()

    apify = AsyncMock(spec=ApifyClient)
    apify.twitter_profile.return_value = {
        "followersCount": 150_000,
        "isVerified": True,
        "createdAt": "Wed Jun 02 20:12:29 +0000 2021",
        "statusesCount": 4200,
    }

    defillama = AsyncMock(spec=DefiLlamaClient)
    defillama.find_protocol.return_value = {
        "name": "ExampleFi",
        "symbol": "EXF",
        "tvl": 380_000_000,
        "change_7d": 3.4,
        "chains": ["Ethereum", "Arbitrum"],
    }

    github = AsyncMock(spec=GitHubClient)
    github.repository.return_value = github_repo()
    github.commits_since.return_value = commits(27)

    return Sources(
        coingecko=coingecko,
        geckoterminal=geckoterminal,
        etherscan=etherscan,
        goplus=goplus,
        apify=apify,
        defillama=defillama,
        github=github,
    )


@pytest.fixture
def resolver(sources) -> TokenResolver:
    return TokenResolver(sources.coingecko, catalog_ttl_seconds=60, cache=SimpleMemoryCache())


@pytest.fixture
def scan_service(session_maker, settings) -> ScanService:
    return ScanService(session_maker, settings.quota)


@pytest.fixture
def aggregator(sources, metrics_cache, resolver, scan_service, settings, clock) -> MetricsAggregator:
    return MetricsAggregator(sources, metrics_cache, resolver, scan_service, settings, clock=clock)


@pytest.fixture
def search_service(sources, resolver, metrics_cache, settings, clock) -> TokenSearchService:
    return TokenSearchService(
        sources.coingecko,
        resolver,
        metrics_cache,
        ttl_seconds=settings.cache_ttl.search,
        clock=clock,
    )
