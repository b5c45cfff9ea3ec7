"""SQLModel сущности TokenHealth."""

from .cache import (  # noqa: F401
    CACHE_TABLES,
    CacheCategory,
    CacheRow,
    SocialProfileCache,
    TokenCommunityCache,
    TokenDataCache,
    TokenDevelopmentCache,
    TokenLiquidityCache,
    TokenSearchCache,
    TokenSecurityCache,
    TokenTokenomicsCache,
)
from .scan import TokenScan  # noqa: F401
from .subscriber import Subscriber, SubscriberTier  # noqa: F401

__all__ = [
    "CACHE_TABLES",
    "CacheCategory",
    "CacheRow",
    "SocialProfileCache",
    "Subscriber",
    "SubscriberTier",
    "TokenCommunityCache",
    "TokenDataCache",
    "TokenDevelopmentCache",
    "TokenLiquidityCache",
    "TokenScan",
    "TokenSearchCache",
    "TokenSecurityCache",
    "TokenTokenomicsCache",
]
