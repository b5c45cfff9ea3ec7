"""Эвристики скоринга категорий.

Политика задана данными: у каждой категории есть базовое значение и список
правил. Неизвестное значение (None) ничего не добавляет. Итог округляется и
зажимается в [0, 100].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from tokenhealth.models import CacheCategory

SCORE_MIN = 0
SCORE_MAX = 100


@dataclass(frozen=True, slots=True)
class Ladder:
    """Пороговая лестница: срабатывает первая подходящая ступень."""

    attr: str
    op: str
    bands: tuple[tuple[float, int], ...]
    otherwise: int = 0

    def delta(self, snapshot: Any) -> int:
        value = getattr(snapshot, self.attr, None)
        if value is None:
            return 0
        for threshold, delta in self.bands:
            if (self.op == "gt" and value > threshold) or (self.op == "lt" and value < threshold):
                return delta
        return self.otherwise


@dataclass(frozen=True, slots=True)
class Flag:
    attr: str
    if_true: int
    if_false: int = 0

    def delta(self, snapshot: Any) -> int:
        value = getattr(snapshot, self.attr, None)
        if value is None:
            return 0
        return self.if_true if value else self.if_false


@dataclass(frozen=True, slots=True)
class Cap:
    """Потолок итогового балла при взведённом флаге."""

    attr: str
    ceiling: int

    def delta(self, snapshot: Any) -> int:
        return 0

    def limit(self, snapshot: Any) -> int | None:
        return self.ceiling if getattr(snapshot, self.attr, None) is True else None


Rule = Ladder | Flag | Cap


@dataclass(frozen=True, slots=True)
class Scorecard:
    baseline: int
    rules: tuple[Rule, ...]


SCORECARDS: dict[CacheCategory, Scorecard] = {
    CacheCategory.SECURITY: Scorecard(
        baseline=50,
        rules=(
            Flag("is_honeypot", -40),
            Flag("ownership_renounced", 15, -10),
            Flag("owner_change_balance", -20),
            Flag("selfdestruct", -15),
            Flag("is_mintable", -5),
            Flag("is_blacklisted", -5),
            Flag("slippage_modifiable", -5),
            Flag("transfer_pausable", -5),
            Flag("hidden_owner", -5),
            Flag("is_open_source", 10, -10),
            Flag("contract_verified", 5, -5),
            Cap("is_honeypot", 30),
        ),
    ),
    CacheCategory.LIQUIDITY: Scorecard(
        baseline=65,
        rules=(
            Ladder("market_cap", "gt", ((1e9, 15), (1e8, 10), (1e7, 5)), otherwise=-5),
            Ladder("volume_24h", "gt", ((1e8, 10), (1e7, 5), (1e6, 0)), otherwise=-5),
            Ladder("pool_tvl", "gt", ((1e7, 10), (1e6, 5), (1e5, 0)), otherwise=-10),
            Ladder("lock_days", "gt", ((365, 10), (180, 5), (0, 0)), otherwise=-10),
            Ladder("pool_age_days", "gt", ((365, 5), (30, 0)), otherwise=-5),
            Ladder("transactions_24h", "gt", ((1000, 5), (100, 0)), otherwise=-5),
            Ladder("protocol_tvl", "gt", ((1e9, 10), (1e8, 5))),
            Ladder("protocol_tvl_change_7d", "gt", ((10, 5), (-10, 0)), otherwise=-5),
        ),
    ),
    CacheCategory.TOKENOMICS: Scorecard(
        baseline=65,
        rules=(
            Ladder("top_holder_pct", "lt", ((15, 10), (30, 0)), otherwise=-15),
            Ladder("top5_pct", "lt", ((30, 5), (50, 0)), otherwise=-10),
            Ladder("buy_tax", "gt", ((10, -10), (5, -5))),
            Ladder("sell_tax", "gt", ((10, -15), (5, -10))),
            Flag("is_mintable", -10),
            Ladder("holder_count", "gt", ((100_000, 10), (10_000, 5), (1_000, 0)), otherwise=-5),
            Cap("is_honeypot", 20),
        ),
    ),
    CacheCategory.COMMUNITY: Scorecard(
        baseline=70,
        rules=(
            Ladder("twitter_followers", "gt", ((1_000_000, 15), (100_000, 10), (10_000, 5), (1_000, 0)), otherwise=-10),
            Ladder("follower_growth_pct", "gt", ((5, 5), (0, 0)), otherwise=-5),
            Flag("twitter_verified", 5),
            Ladder("account_age_days", "gt", ((730, 5), (180, 0)), otherwise=-5),
            Ladder("tweet_count", "gt", ((5_000, 5), (500, 0)), otherwise=-5),
            Ladder("reddit_subscribers", "gt", ((100_000, 5), (10_000, 0))),
            Ladder("telegram_members", "gt", ((50_000, 5), (5_000, 0))),
        ),
    ),
    CacheCategory.DEVELOPMENT: Scorecard(
        baseline=60,
        rules=(
            Ladder("commits_30d", "gt", ((100, 20), (50, 15), (20, 10), (0, 5)), otherwise=-10),
            Ladder("stars", "gt", ((10_000, 10), (1_000, 5), (100, 0)), otherwise=-5),
            Ladder("forks", "gt", ((1_000, 5), (100, 0))),
            Flag("is_open_source", 5, -10),
        ),
    ),
}


def clamp(value: float) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, int(round(value))))


def score_category(category: CacheCategory, snapshot: Any, scorecards: Mapping[CacheCategory, Scorecard] | None = None) -> int:
    card = (scorecards or SCORECARDS)[category]
    score = card.baseline + sum(rule.delta(snapshot) for rule in card.rules)
    for rule in card.rules:
        if isinstance(rule, Cap):
            limit = rule.limit(snapshot)
            if limit is not None:
                score = min(score, limit)
    return clamp(score)


def health_score(scores: Mapping[str, int], weights: Mapping[str, float]) -> int:
    """Взвешенная смесь; веса нормируются по фактически посчитанным категориям."""

    used = [(name, weights.get(name, 0.0)) for name in scores]
    total = sum(w for _, w in used)
    if total <= 0:
        if not scores:
            return 0
        return clamp(sum(scores.values()) / len(scores))
    return clamp(sum(scores[name] * w for name, w in used) / total)


__all__ = [
    "Cap",
    "Flag",
    "Ladder",
    "SCORECARDS",
    "Scorecard",
    "clamp",
    "health_score",
    "score_category",
]
