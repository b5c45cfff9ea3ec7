# tests/unit/test_scoring.py
"""
Unit tests for scorecards and the overall health score
"""
import random

import pytest

from tokenhealth.models import CacheCategory
from tokenhealth.services.metrics import CATEGORY_SPECS
from tokenhealth.services.metrics.development import DevelopmentSnapshot, roadmap_progress, activity_level
from tokenhealth.services.metrics.security import SecuritySnapshot
from tokenhealth.services.metrics.tokenomics import TokenomicsSnapshot
from tokenhealth.services.scoring import SCORECARDS, Cap, Flag, Ladder, health_score, score_category

from tests.payloads import START


def _random_snapshot(category: CacheCategory, rng: random.Random):
    """Snapshot with every scored attribute set to an extreme or unknown value"""
    snapshot = CATEGORY_SPECS[category].empty()
    for rule in SCORECARDS[category].rules:
        if isinstance(rule, (Flag, Cap)):
            value = rng.choice([True, False, None])
        else:
            value = rng.choice([None, -1e12, -50.0, 0, 3.5, 29.9, 1e3, 1e6, 1e12])
        setattr(snapshot, rule.attr, value)
    return snapshot


class TestScoreBounds:
    @pytest.mark.parametrize("category", list(SCORECARDS))
    def test_scores_stay_in_range(self, category):
        rng = random.Random(category.value)
        for _ in range(300):
            score = score_category(category, _random_snapshot(category, rng))
            assert 0 <= score <= 100

    @pytest.mark.parametrize("category", list(SCORECARDS))
    def test_unknown_everything_is_baseline(self, category):
        assert score_category(category, CATEGORY_SPECS[category].empty()) == SCORECARDS[category].baseline

    def test_health_score_in_range(self):
        rng = random.Random(7)
        weights = {"security": 0.25, "liquidity": 0.25, "tokenomics": 0.2, "community": 0.15, "development": 0.15}
        for _ in range(200):
            scores = {name: rng.randint(0, 100) for name in weights}
            assert 0 <= health_score(scores, weights) <= 100


class TestRules:
    def test_ladder_first_band_wins(self):
        ladder = Ladder("market_cap", "gt", ((1e9, 15), (1e8, 10), (1e7, 5)), otherwise=-5)

        class Snap:
            market_cap = None

        snap = Snap()
        for value, expected in ((2e9, 15), (5e8, 10), (2e7, 5), (1e6, -5), (None, 0)):
            snap.market_cap = value
            assert ladder.delta(snap) == expected

    def test_top_holder_concentration_is_monotonic(self):
        deltas = []
        for pct in (5, 14.9, 15, 29.9, 30, 60):
            deltas.append(score_category(CacheCategory.TOKENOMICS, TokenomicsSnapshot(top_holder_pct=pct)))
        assert deltas == sorted(deltas, reverse=True)
        assert deltas[0] > deltas[2] > deltas[4]

    def test_tax_tiers_lower_score(self):
        normal = score_category(CacheCategory.TOKENOMICS, TokenomicsSnapshot(sell_tax=2))
        high = score_category(CacheCategory.TOKENOMICS, TokenomicsSnapshot(sell_tax=7))
        excessive = score_category(CacheCategory.TOKENOMICS, TokenomicsSnapshot(sell_tax=12))
        assert normal > high > excessive

    def test_honeypot_caps_security(self):
        snapshot = SecuritySnapshot(
            is_honeypot=True,
            ownership_renounced=True,
            is_open_source=True,
            contract_verified=True,
        )
        assert score_category(CacheCategory.SECURITY, snapshot) <= 30

    def test_honeypot_caps_tokenomics(self):
        snapshot = TokenomicsSnapshot(top_holder_pct=1, top5_pct=5, holder_count=500_000, is_honeypot=True)
        assert score_category(CacheCategory.TOKENOMICS, snapshot) == 20

    def test_development_commits_ladder(self):
        scores = [
            score_category(CacheCategory.DEVELOPMENT, DevelopmentSnapshot(commits_30d=n))
            for n in (0, 1, 21, 51, 101)
        ]
        assert scores == sorted(scores)


class TestHealthScore:
    def test_weighted_blend(self):
        weights = {"security": 0.25, "liquidity": 0.25, "tokenomics": 0.2, "community": 0.15, "development": 0.15}
        scores = {"security": 80, "liquidity": 60, "tokenomics": 50, "community": 70, "development": 41}
        assert health_score(scores, weights) == round(80 * 0.25 + 60 * 0.25 + 50 * 0.2 + 70 * 0.15 + 41 * 0.15)

    def test_weights_renormalize_over_computed_categories(self):
        weights = {"security": 0.25, "liquidity": 0.25}
        assert health_score({"security": 40}, weights) == 40

    def test_no_scores(self):
        assert health_score({}, {"security": 1.0}) == 0


class TestRoadmapProgress:
    def test_no_open_issues_is_complete(self):
        assert roadmap_progress(0, None, START) == 100

    def test_unknown_issues(self):
        assert roadmap_progress(None, None, START) is None

    def test_ladder_is_monotonic_in_issue_density(self):
        created = START.replace(year=2016)
        tiers = [roadmap_progress(n, created, START) for n in (5, 100, 300, 1000, 5000)]
        assert tiers == [90, 75, 60, 40, 25]

    def test_high_density_gives_low_tier(self):
        created = START.replace(day=1)
        assert roadmap_progress(500, created, START) == 25

    def test_activity_levels(self):
        assert [activity_level(n) for n in (0, 1, 6, 21, 51)] == [
            "Inactive",
            "Low",
            "Moderate",
            "Active",
            "Very Active",
        ]
        assert activity_level(None) is None
