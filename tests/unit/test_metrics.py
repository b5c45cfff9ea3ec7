# tests/unit/test_metrics.py
"""
Unit tests for per-category normalization and the presentation boundary
"""
import dataclasses

import pytest

from tokenhealth.models import CacheCategory
from tokenhealth.services.metrics import (
    CATEGORY_SPECS,
    CategorySpec,
    check_disjoint_fields,
    field_names,
    present,
    snapshot_from_payload,
    snapshot_to_payload,
)
from tokenhealth.services.metrics.base import TokenContext
from tokenhealth.services.metrics.community import build_community, extract_twitter_handle, follower_growth, TwitterProfile
from tokenhealth.services.metrics.development import build_development
from tokenhealth.services.metrics.liquidity import build_liquidity, format_lock, summarize_pools
from tokenhealth.services.metrics.security import build_security, goplus_flag
from tokenhealth.services.metrics.tokenomics import build_tokenomics, concentration_band, tax_band
from tokenhealth.utils.formatters import NA

from tests.payloads import START, coin_details, commits, github_repo, goplus_security, pool


class TestSentinelCompleteness:
    @pytest.mark.parametrize("category", list(CATEGORY_SPECS))
    def test_empty_snapshot_renders_every_field(self, category):
        spec = CATEGORY_SPECS[category]
        record = present(spec.empty(), spec.fields)
        assert set(record) == set(field_names(spec.fields))
        for item in spec.fields:
            assert record[item.name] == NA
            if item.raw_name:
                assert record[item.raw_name] in (0, False, None)

    @pytest.mark.parametrize("category", list(CATEGORY_SPECS))
    def test_fields_map_to_snapshot_attributes(self, category):
        spec = CATEGORY_SPECS[category]
        attrs = {f.name for f in dataclasses.fields(spec.snapshot_cls)}
        for item in spec.fields:
            assert item.attr in attrs

    def test_field_names_are_disjoint_across_categories(self):
        seen = []
        for spec in CATEGORY_SPECS.values():
            seen.extend(field_names(spec.fields))
        assert len(seen) == len(set(seen))

    def test_overlapping_fields_are_rejected(self):
        security = CATEGORY_SPECS[CacheCategory.SECURITY]
        clash = CategorySpec(CacheCategory.DEVELOPMENT, security.snapshot_cls, security.fields[:1])
        with pytest.raises(RuntimeError, match="declared by both"):
            check_disjoint_fields({CacheCategory.SECURITY: security, CacheCategory.DEVELOPMENT: clash})

    def test_raw_companion_carries_value(self):
        spec = CATEGORY_SPECS[CacheCategory.LIQUIDITY]
        snapshot = spec.empty()
        snapshot.lock_days = 180
        record = present(snapshot, spec.fields)
        assert record["liquidityLock"] == "180 days"
        assert record["liquidityLockDays"] == 180

    def test_payload_round_trip_ignores_unknown_keys(self):
        spec = CATEGORY_SPECS[CacheCategory.SECURITY]
        snapshot = build_security(goplus_security(is_mintable="1"), None)
        payload = {**snapshot_to_payload(snapshot), "legacy_field": 1}
        assert snapshot_from_payload(spec.snapshot_cls, payload) == snapshot


class TestSecurity:
    def test_goplus_flags(self):
        assert goplus_flag({"a": "1"}, "a") is True
        assert goplus_flag({"a": "0"}, "a") is False
        assert goplus_flag({"a": ""}, "a") is None
        assert goplus_flag({}, "a") is None

    def test_clean_contract(self):
        snapshot = build_security(goplus_security(), {"SourceCode": "pragma solidity"})
        assert snapshot.ownership_renounced is True
        assert snapshot.contract_verified is True
        assert snapshot.risk_level == "Low"
        assert snapshot.risk_factors == []

    def test_honeypot_is_high_risk(self):
        snapshot = build_security(goplus_security(is_honeypot="1", owner_address="0xabc"), {"SourceCode": ""})
        assert snapshot.is_honeypot is True
        assert snapshot.ownership_renounced is False
        assert snapshot.contract_verified is False
        assert snapshot.risk_level == "High"
        assert any("honeypot" in factor for factor in snapshot.risk_factors)

    def test_verification_falls_back_to_goplus(self):
        snapshot = build_security(goplus_security(is_open_source="1"), None)
        assert snapshot.contract_verified is True

    def test_no_data(self):
        snapshot = build_security(None, None)
        assert snapshot.risk_level is None
        record = present(snapshot, CATEGORY_SPECS[CacheCategory.SECURITY].fields)
        assert record["auditStatus"] == NA
        assert record["honeypotRisk"] == NA


class TestLiquidity:
    def test_pool_summary(self):
        pools = [
            pool("6000000", change="4.0", lock_duration="200"),
            pool("2500000", change="2.0", created="2025-12-16T12:00:00Z"),
        ]
        summary = summarize_pools(pools, START)
        assert summary.tvl == pytest.approx(8_500_000)
        assert summary.tvl_change_24h == pytest.approx(3.0)
        assert summary.lock_days == 200
        assert summary.age_days == (START - START.replace(year=2024, month=6, day=1, hour=0)).days
        assert summary.transactions_24h == 1100

    def test_only_top_five_pools(self):
        pools = [pool("1000") for _ in range(8)]
        assert summarize_pools(pools, START).tvl == pytest.approx(5000)

    def test_lock_until_date(self):
        pools = [pool("1000", liquidity_locked_until="2026-02-14T12:00:00Z")]
        assert summarize_pools(pools, START).lock_days == 30

    def test_explicit_unlocked(self):
        pools = [pool("1000", liquidity_locked={"is_locked": False})]
        assert summarize_pools(pools, START).lock_days == 0

    def test_lock_display(self):
        assert format_lock(0) == "Unlocked"
        assert format_lock(1) == "1 day"
        assert format_lock(180) == "180 days"
        assert format_lock(400) == "365+ days"

    def test_partial_failure_keeps_market_fields(self):
        snapshot = build_liquidity(coin_details()["market_data"], None, None)
        record = present(snapshot, CATEGORY_SPECS[CacheCategory.LIQUIDITY].fields)
        assert record["marketCap"] == "$450.00M"
        assert record["marketCapValue"] == 450_000_000
        assert record["tvl"] == NA
        assert record["tvlValue"] == 0
        assert record["liquidityLock"] == NA

    def test_protocol_fields(self):
        protocol = {"tvl": 2.5e9, "change_7d": -4.2, "chains": ["Ethereum"]}
        snapshot = build_liquidity({}, None, protocol)
        assert snapshot.protocol_tvl == 2.5e9
        assert snapshot.protocol_tvl_change_7d == -4.2
        assert snapshot.chain_count == 1


class TestTokenomics:
    def test_holder_shares_and_taxes(self):
        snapshot = build_tokenomics(coin_details()["market_data"], goplus_security(buy_tax="0.06", sell_tax="0.12"), 15234)
        assert snapshot.top_holder_pct == pytest.approx(12.0)
        assert snapshot.top5_pct == pytest.approx(30.0)
        assert snapshot.top10_pct == pytest.approx(31.0)
        assert snapshot.holder_count == 15234
        assert snapshot.buy_tax == pytest.approx(6.0)
        assert snapshot.tax_level == "Excessive"
        assert snapshot.concentration_risk == "Low"

    def test_record_percentages(self):
        snapshot = build_tokenomics({}, goplus_security(), None)
        record = present(snapshot, CATEGORY_SPECS[CacheCategory.TOKENOMICS].fields)
        assert record["topHoldersPercentage"] == "31.0%"
        assert record["topHoldersValue"] == pytest.approx(31.0)
        assert record["holders"] == "15.00K"

    def test_missing_goplus(self):
        snapshot = build_tokenomics({}, None, None)
        record = present(snapshot, CATEGORY_SPECS[CacheCategory.TOKENOMICS].fields)
        assert record["topHoldersPercentage"] == NA
        assert record["topHoldersValue"] == 0

    def test_bands(self):
        assert [concentration_band(v) for v in (10, 20, 45, None)] == ["Low", "Medium", "High", None]
        assert tax_band(1, 2) == "Normal"
        assert tax_band(6, None) == "High"
        assert tax_band(None, 11) == "Excessive"
        assert tax_band(None, None) is None


class TestCommunity:
    def test_twitter_handle_sources(self):
        assert extract_twitter_handle({"links": {"twitter_screen_name": "@abc"}}) == "abc"
        assert extract_twitter_handle({"links": {"homepage": ["https://x.com/someproj?lang=en"]}}) == "someproj"
        assert extract_twitter_handle({"links": {}}) is None

    def test_growth(self):
        assert follower_growth(110, 100) == pytest.approx(10.0)
        assert follower_growth(100, 0) is None
        assert follower_growth(None, 100) is None

    def test_build_from_profile(self):
        ctx = TokenContext(key="exf", now=START, details=coin_details())
        profile = TwitterProfile(
            handle="examplefi",
            followers=1200,
            verified=True,
            created_at="2024-01-15T12:00:00Z",
            tweet_count=800,
            previous_followers=1000,
        )
        snapshot = build_community(ctx, profile, "examplefi")
        assert snapshot.follower_growth_pct == pytest.approx(20.0)
        assert snapshot.account_age_days == (START - START.replace(year=2024)).days
        assert snapshot.reddit_subscribers == 12_000
        assert snapshot.telegram_members == 8_000


class TestDevelopment:
    def test_from_github(self):
        snapshot = build_development("examplefi/protocol", github_repo(), commits(27), {}, START)
        assert snapshot.commits_30d == 27
        assert snapshot.activity_level == "Active"
        assert snapshot.stars == 1500
        assert snapshot.is_open_source is True
        assert snapshot.roadmap_progress == 90
        record = present(snapshot, CATEGORY_SPECS[CacheCategory.DEVELOPMENT].fields)
        assert record["lastCommitDate"] == "2026-01-14"
        assert record["roadmapProgress"] == "90%"

    def test_zero_open_issues(self):
        snapshot = build_development("a/b", github_repo(open_issues_count=0), [], {}, START)
        assert snapshot.roadmap_progress == 100
        assert snapshot.activity_level == "Inactive"

    def test_developer_data_fallback(self):
        snapshot = build_development(None, None, None, coin_details()["developer_data"], START)
        assert snapshot.stars == 300
        assert snapshot.open_issues == 10
        assert snapshot.commits_30d == 12
        assert snapshot.activity_level == "Moderate"
