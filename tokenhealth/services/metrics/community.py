"""Категория community: Twitter (Apify), Reddit и Telegram из CoinGecko.

Профиль Twitter кешируется на сутки в social_profile_cache; предыдущее
значение подписчиков берётся из той же строки (даже просроченной) и даёт
рост в процентах.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from tokenhealth.errors import UpstreamError
from tokenhealth.models import CacheCategory
from tokenhealth.services.cache_store import MetricsCache
from tokenhealth.services.sources import ApifyClient
from tokenhealth.utils.formatters import format_change, format_flag, format_followers, format_number, format_text

from .base import MetricField, TokenContext, parse_datetime, to_int

TWITTER_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/([^/?#]+)", re.IGNORECASE)


@dataclass(slots=True)
class CommunitySnapshot:
    twitter_handle: str | None = None
    twitter_followers: int | None = None
    follower_growth_pct: float | None = None
    twitter_verified: bool | None = None
    account_age_days: int | None = None
    tweet_count: int | None = None
    reddit_subscribers: int | None = None
    telegram_members: int | None = None


def _age(days: int) -> str:
    if days >= 365:
        years = days / 365
        return f"{years:.1f} years"
    return "1 day" if days == 1 else f"{days} days"


FIELDS: tuple[MetricField, ...] = (
    MetricField("twitterHandle", "twitter_handle", format_text),
    MetricField("socialFollowers", "twitter_followers", format_followers, "socialFollowersCount"),
    MetricField("socialFollowersChange", "follower_growth_pct", format_change, "socialFollowersChangeValue"),
    MetricField("verifiedAccount", "twitter_verified", format_flag, "verifiedAccountValue", False),
    MetricField("accountAge", "account_age_days", _age, "accountAgeDays"),
    MetricField("tweetCount", "tweet_count", format_number, "tweetCountValue"),
    MetricField("redditSubscribers", "reddit_subscribers", format_followers, "redditSubscribersValue"),
    MetricField("telegramMembers", "telegram_members", format_followers, "telegramMembersValue"),
)


def extract_twitter_handle(details: dict[str, Any]) -> str | None:
    """twitter_screen_name или ссылка на twitter.com / x.com в links."""

    links = details.get("links") or {}
    handle = links.get("twitter_screen_name")
    if handle:
        return str(handle).lstrip("@")
    for group in ("announcement_url", "homepage"):
        for url in links.get(group) or []:
            match = TWITTER_URL_RE.search(str(url or ""))
            if match:
                return match.group(1)
    return None


def follower_growth(current: int | None, previous: int | None) -> float | None:
    if current is None or not previous:
        return None
    return round((current - previous) / previous * 100, 2)


@dataclass(slots=True)
class TwitterProfile:
    handle: str
    followers: int | None = None
    verified: bool | None = None
    created_at: str | None = None
    tweet_count: int | None = None
    previous_followers: int | None = None
    stale: bool = False

    def payload(self) -> dict[str, Any]:
        return {
            "handle": self.handle,
            "followers": self.followers,
            "verified": self.verified,
            "created_at": self.created_at,
            "tweet_count": self.tweet_count,
            "previous_followers": self.previous_followers,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, stale: bool = False) -> "TwitterProfile":
        return cls(
            handle=payload.get("handle") or "",
            followers=to_int(payload.get("followers")),
            verified=payload.get("verified"),
            created_at=payload.get("created_at"),
            tweet_count=to_int(payload.get("tweet_count")),
            previous_followers=to_int(payload.get("previous_followers")),
            stale=stale,
        )


class SocialProfileService:
    """Профили Twitter через Apify с суточным кешем."""

    def __init__(self, apify: ApifyClient, cache: MetricsCache, *, ttl_seconds: int) -> None:
        self._apify = apify
        self._cache = cache
        self._ttl = ttl_seconds

    async def profile(self, handle: str, *, now: datetime, force_refresh: bool = False) -> TwitterProfile | None:
        key = handle.lstrip("@").strip().lower()
        if not force_refresh:
            entry = await self._cache.get(key, CacheCategory.SOCIAL, now=now)
            if entry is not None:
                return TwitterProfile.from_payload(entry.payload)

        previous = await self._cache.get_stale(key, CacheCategory.SOCIAL)
        try:
            raw = await self._apify.twitter_profile(key)
        except UpstreamError as exc:
            logger.warning("Twitter профиль {handle} недоступен: {error}", handle=key, error=exc)
            raw = None
        if raw is None:
            if previous is not None:
                # Устаревшие данные без роста.
                profile = TwitterProfile.from_payload(previous.payload, stale=True)
                profile.previous_followers = None
                return profile
            return None

        followers = to_int(raw.get("followersCount") or raw.get("followers_count"))
        old = to_int(previous.payload.get("followers")) if previous is not None else None
        profile = TwitterProfile(
            handle=key,
            followers=followers,
            verified=bool(raw.get("isVerified") or raw.get("isBlueVerified") or raw.get("verified")),
            created_at=raw.get("createdAt") or raw.get("created_at"),
            tweet_count=to_int(raw.get("statusesCount") or raw.get("tweetsCount")),
            previous_followers=old if old is not None else followers,
        )
        await self._cache.put(key, CacheCategory.SOCIAL, profile.payload(), ttl_seconds=self._ttl, now=now)
        return profile


def build_community(
    ctx: TokenContext,
    profile: TwitterProfile | None,
    handle: str | None,
) -> CommunitySnapshot:
    community = ctx.details.get("community_data") or {}
    snapshot = CommunitySnapshot(
        twitter_handle=handle,
        reddit_subscribers=to_int(community.get("reddit_subscribers")) or None,
        telegram_members=to_int(community.get("telegram_channel_user_count")),
    )
    if profile is not None:
        snapshot.twitter_followers = profile.followers
        snapshot.follower_growth_pct = follower_growth(profile.followers, profile.previous_followers)
        snapshot.twitter_verified = profile.verified
        snapshot.tweet_count = profile.tweet_count
        created = parse_datetime(profile.created_at)
        if created is not None:
            snapshot.account_age_days = max((ctx.now - created).days, 0)
    elif community.get("twitter_followers"):
        snapshot.twitter_followers = to_int(community.get("twitter_followers"))
    return snapshot



async def collect_community(
    ctx: TokenContext,
    social: SocialProfileService,
    *,
    force_refresh: bool = False,
) -> CommunitySnapshot:
    handle = ctx.twitter_handle or extract_twitter_handle(ctx.details)
    profile = None
    if handle:
        profile = await social.profile(handle, now=ctx.now, force_refresh=force_refresh)
    return build_community(ctx, profile, handle)


__all__ = [
    "CommunitySnapshot",
    "FIELDS",
    "SocialProfileService",
    "TwitterProfile",
    "build_community",
    "collect_community",
    "extract_twitter_handle",
    "follower_growth",
]
