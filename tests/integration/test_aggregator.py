# tests/integration/test_aggregator.py
"""
Integration tests for the metrics aggregator: cache, sources, scoring, scans
"""
import pytest

from tokenhealth.errors import InvalidInputError, NotFoundError, QuotaExceededError, UpstreamError
from tokenhealth.models import CacheCategory
from tokenhealth.services.aggregator import MetricsHints, categories_for_mode
from tokenhealth.services.metrics import CATEGORY_SPECS, field_names
from tokenhealth.utils.formatters import NA

from tests.payloads import TOKEN_ADDRESS


def _names(category):
    return set(field_names(CATEGORY_SPECS[category].fields))


class TestGetMetrics:
    @pytest.mark.asyncio
    async def test_full_record(self, aggregator):
        record = await aggregator.get_metrics("exf")

        assert record.token == {
            "id": "examplefi",
            "symbol": "EXF",
            "name": "ExampleFi",
            "contractAddress": TOKEN_ADDRESS,
            "blockchain": "ethereum",
        }
        assert set(record.scores) == {"security", "liquidity", "tokenomics", "community", "development"}
        assert all(0 <= score <= 100 for score in record.scores.values())
        assert 0 <= record.health_score <= 100
        assert record.metrics["marketCap"] == "$450.00M"
        assert record.metrics["liquidityLock"] == "200 days"
        assert record.metrics["topHoldersPercentage"] != NA
        assert record.metrics["socialFollowers"] == "150.0K"
        assert record.metrics["githubCommits"] == "27"
        assert record.risk_factors == []
        assert record.from_cache is False

    @pytest.mark.asyncio
    async def test_repeat_call_is_served_from_cache(self, aggregator, sources):
        first = await aggregator.get_metrics("exf")
        second = await aggregator.get_metrics("exf")

        assert second.payload() == first.payload()
        assert second.from_cache is True
        assert second.to_dict()["fromCache"] is True
        assert sources.coingecko.coin_details.await_count == 1
        assert sources.goplus.token_security.await_count == 2

    @pytest.mark.asyncio
    async def test_input_forms_share_cache_key(self, aggregator, sources):
        await aggregator.get_metrics("EXF")
        assert (await aggregator.get_metrics("$exf")).from_cache is True
        assert (await aggregator.get_metrics("  exf ")).from_cache is True
        assert sources.coingecko.coin_details.await_count == 1

    @pytest.mark.asyncio
    async def test_live_categories_expire_first(self, aggregator, sources, clock):
        await aggregator.get_metrics("exf")
        clock.advance(301)
        record = await aggregator.get_metrics("exf")

        assert record.from_cache is False
        assert record.cached_categories == ["security", "tokenomics", "development"]
        assert sources.geckoterminal.token_pools.await_count == 2
        assert sources.github.repository.await_count == 1
        # профиль Twitter живёт в своём кеше сутки
        assert sources.apify.twitter_profile.await_count == 1

    @pytest.mark.asyncio
    async def test_force_refresh_rewrites_cache(self, aggregator, sources, metrics_cache, clock):
        await aggregator.get_metrics(TOKEN_ADDRESS)
        clock.advance(60)
        record = await aggregator.get_metrics(TOKEN_ADDRESS.upper().replace("0X", "0x"), force_refresh=True)

        assert record.from_cache is False
        assert record.metrics["topHoldersPercentage"] == "31.0%"
        assert sources.goplus.token_security.await_count == 4
        entry = await metrics_cache.get(TOKEN_ADDRESS, CacheCategory.TOKENOMICS, now=clock())
        assert entry is not None
        assert entry.last_updated == clock()
        assert entry.expires_at > clock()

    @pytest.mark.asyncio
    async def test_failed_source_degrades_its_fields(self, aggregator, sources):
        sources.goplus.token_security.side_effect = UpstreamError("goplus", "HTTP 503")
        record = await aggregator.get_metrics("exf")

        assert record.metrics["topHoldersPercentage"] == NA
        assert record.metrics["topHoldersValue"] == 0
        assert record.metrics["honeypotRisk"] == NA
        assert record.metrics["holders"] == "15.23K"
        assert record.metrics["tvl"] != NA
        assert all(0 <= score <= 100 for score in record.scores.values())

    @pytest.mark.asyncio
    async def test_github_outage_falls_back_to_coingecko_data(self, aggregator, sources):
        sources.github.repository.side_effect = RuntimeError("boom")
        sources.github.commits_since.side_effect = RuntimeError("boom")
        record = await aggregator.get_metrics("exf")

        assert record.metrics["githubStars"] == "300"
        assert record.metrics["liquidityLock"] == "200 days"

    @pytest.mark.asyncio
    async def test_empty_commit_window_survives_repo_outage(self, aggregator, sources):
        sources.github.repository.side_effect = UpstreamError("github", "HTTP 503")
        sources.github.commits_since.return_value = []
        record = await aggregator.get_metrics("exf")

        assert record.metrics["githubCommits"] == "0"
        assert record.metrics["githubActivity"] == "Inactive"

    @pytest.mark.asyncio
    async def test_merged_record_keeps_each_category_fields(self, aggregator, sources):
        sources.github.repository.return_value = None
        sources.github.commits_since.return_value = None
        full = await aggregator.get_metrics("exf")
        for category in CATEGORY_SPECS:
            single = await aggregator.get_metrics("exf", mode=f"{category.value}-only")
            for name in _names(category):
                assert full.metrics[name] == single.metrics[name], name

        assert full.metrics["openSource"] == "Yes"
        assert full.metrics["openSourceValue"] is True
        assert full.metrics["githubPublic"] == NA

    @pytest.mark.asyncio
    async def test_address_scan_survives_resolution_outage(self, aggregator, sources):
        sources.coingecko.contract_lookup.side_effect = UpstreamError("coingecko", "HTTP 429")
        record = await aggregator.get_metrics(TOKEN_ADDRESS, force_refresh=True)

        assert record.token["contractAddress"] == TOKEN_ADDRESS
        assert record.metrics["honeypotRisk"] != NA
        assert record.metrics["holders"] == "15.23K"
        assert record.metrics["marketCap"] == NA
        sources.coingecko.coin_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_symbol_resolution_outage_still_fails(self, aggregator, sources):
        sources.coingecko.coins_list.side_effect = UpstreamError("coingecko", "HTTP 429")
        with pytest.raises(UpstreamError):
            await aggregator.get_metrics("exf")

    @pytest.mark.asyncio
    async def test_unknown_token_writes_nothing(self, aggregator, metrics_cache, scan_service, clock):
        with pytest.raises(NotFoundError):
            await aggregator.get_metrics("nosuchtoken")
        for category in CacheCategory:
            assert await metrics_cache.get("nosuchtoken", category, now=clock()) is None
        assert await scan_service.recent() == []

    @pytest.mark.asyncio
    async def test_unknown_address_without_onchain_data(self, aggregator, sources):
        sources.coingecko.contract_lookup.return_value = None
        sources.goplus.token_security.return_value = None
        sources.geckoterminal.token_pools.return_value = []
        sources.etherscan.source_code.return_value = None
        sources.etherscan.holder_count.return_value = None
        with pytest.raises(NotFoundError):
            await aggregator.get_metrics(TOKEN_ADDRESS)

    @pytest.mark.asyncio
    async def test_invalid_address_hint(self, aggregator):
        with pytest.raises(InvalidInputError):
            await aggregator.get_metrics("exf", MetricsHints(address="0x1234"))

    @pytest.mark.asyncio
    async def test_scan_is_recorded(self, aggregator, scan_service):
        record = await aggregator.get_metrics("exf")
        scans = await scan_service.recent()

        assert len(scans) == 1
        assert scans[0]["tokenId"] == "examplefi"
        assert scans[0]["tokenSymbol"] == "EXF"
        assert scans[0]["tokenAddress"] == TOKEN_ADDRESS
        assert scans[0]["healthScore"] == record.health_score
        assert scans[0]["categoryScores"] == record.scores


class TestModes:
    @pytest.mark.asyncio
    async def test_single_category(self, aggregator, scan_service, sources):
        record = await aggregator.get_metrics("exf", mode="security-only")

        assert set(record.scores) == {"security"}
        assert record.health_score == record.scores["security"]
        assert set(record.metrics) == _names(CacheCategory.SECURITY)
        sources.geckoterminal.token_pools.assert_not_awaited()
        assert await scan_service.recent() == []

    @pytest.mark.asyncio
    async def test_single_category_reuses_full_cache(self, aggregator, sources):
        await aggregator.get_metrics("exf")
        record = await aggregator.get_metrics("exf", mode="liquidity-only")
        assert record.from_cache is True
        assert sources.geckoterminal.token_pools.await_count == 1

    def test_unknown_mode(self):
        with pytest.raises(InvalidInputError):
            categories_for_mode("everything")


class TestQuota:
    @pytest.mark.asyncio
    async def test_daily_limit(self, aggregator):
        for _ in range(3):
            await aggregator.get_metrics("exf", user_id="user-1")
        with pytest.raises(QuotaExceededError):
            await aggregator.get_metrics("exf", user_id="user-1")

    @pytest.mark.asyncio
    async def test_single_category_calls_do_not_consume(self, aggregator, scan_service, clock):
        for category in CATEGORY_SPECS:
            await aggregator.get_metrics("exf", mode=f"{category.value}-only", user_id="user-1")

        usage = await scan_service.usage("user-1", clock().date())
        assert usage["scanCount"] == 0
        for _ in range(3):
            await aggregator.get_metrics("exf", user_id="user-1")
        assert (await scan_service.usage("user-1", clock().date()))["remaining"] == 0

    @pytest.mark.asyncio
    async def test_anonymous_calls_are_unlimited(self, aggregator):
        for _ in range(5):
            await aggregator.get_metrics("exf")


class TestTokenomics:
    @pytest.mark.asyncio
    async def test_fetch_then_cached(self, aggregator, sources):
        data, cached = await aggregator.get_tokenomics(TOKEN_ADDRESS)
        assert cached is False
        assert data["topHolderPercentage"] == "12.0%"
        assert data["holders"] == "15.23K"
        assert isinstance(data["score"], int)

        again, cached = await aggregator.get_tokenomics(TOKEN_ADDRESS.upper().replace("0X", "0x"))
        assert cached is True
        assert again == data
        assert sources.goplus.token_security.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", [None, "", "0x1234", "examplefi"])
    async def test_invalid_address(self, aggregator, address):
        with pytest.raises(InvalidInputError):
            await aggregator.get_tokenomics(address)

    @pytest.mark.asyncio
    async def test_no_data(self, aggregator, sources):
        sources.coingecko.contract_lookup.return_value = None
        sources.goplus.token_security.return_value = None
        sources.etherscan.holder_count.return_value = None
        with pytest.raises(NotFoundError):
            await aggregator.get_tokenomics(TOKEN_ADDRESS)


class TestTokenInfo:
    @pytest.mark.asyncio
    async def test_info_is_cached(self, aggregator, sources):
        info = await aggregator.get_token_info("EXF")
        assert info["id"] == "examplefi"
        assert info["contractAddress"] == TOKEN_ADDRESS
        assert info["blockchain"] == "ethereum"
        assert info["currentPrice"] == 4.2
        assert info["marketCapRank"] == 120
        assert info["twitter"] == "examplefi"

        assert await aggregator.get_token_info("exf") == info
        assert sources.coingecko.coin_details.await_count == 1
