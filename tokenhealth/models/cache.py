"""Кеш-таблицы метрик: одна таблица на категорию."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON
from sqlmodel import Field

from .base import TimeStampedModel, UTCDateTime, utcnow


class CacheCategory(str, Enum):
    SECURITY = "security"
    LIQUIDITY = "liquidity"
    TOKENOMICS = "tokenomics"
    COMMUNITY = "community"
    DEVELOPMENT = "development"
    GENERIC = "generic"
    SEARCH = "search"
    SOCIAL = "social"


class CacheRow(TimeStampedModel, table=False):
    """Общие колонки: ключ, JSON payload и срок годности."""

    id: Optional[int] = Field(default=None, primary_key=True)
    token_id: str = Field(max_length=256, unique=True, index=True)
    payload: dict = Field(default_factory=dict, sa_type=JSON)
    last_updated: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCDateTime)
    expires_at: datetime = Field(default_factory=utcnow, nullable=False, index=True, sa_type=UTCDateTime)


class TokenSecurityCache(CacheRow, table=True):
    __tablename__ = "token_security_cache"


class TokenLiquidityCache(CacheRow, table=True):
    __tablename__ = "token_liquidity_cache"


class TokenTokenomicsCache(CacheRow, table=True):
    __tablename__ = "token_tokenomics_cache"


class TokenCommunityCache(CacheRow, table=True):
    __tablename__ = "token_community_cache"


class TokenDevelopmentCache(CacheRow, table=True):
    __tablename__ = "token_development_cache"


class TokenDataCache(CacheRow, table=True):
    __tablename__ = "token_data_cache"


class TokenSearchCache(CacheRow, table=True):
    __tablename__ = "token_search_cache"


class SocialProfileCache(CacheRow, table=True):
    __tablename__ = "social_profile_cache"


CACHE_TABLES: dict[CacheCategory, type[CacheRow]] = {
    CacheCategory.SECURITY: TokenSecurityCache,
    CacheCategory.LIQUIDITY: TokenLiquidityCache,
    CacheCategory.TOKENOMICS: TokenTokenomicsCache,
    CacheCategory.COMMUNITY: TokenCommunityCache,
    CacheCategory.DEVELOPMENT: TokenDevelopmentCache,
    CacheCategory.GENERIC: TokenDataCache,
    CacheCategory.SEARCH: TokenSearchCache,
    CacheCategory.SOCIAL: SocialProfileCache,
}


__all__ = [
    "CACHE_TABLES",
    "CacheCategory",
    "CacheRow",
    "SocialProfileCache",
    "TokenCommunityCache",
    "TokenDataCache",
    "TokenDevelopmentCache",
    "TokenLiquidityCache",
    "TokenSearchCache",
    "TokenSecurityCache",
    "TokenTokenomicsCache",
]
