"""Категории метрик: снимки, таблицы полей и сборщики."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tokenhealth.models import CacheCategory

from . import community, development, liquidity, security, tokenomics
from .base import (
    MetricField,
    TokenContext,
    field_names,
    is_empty_snapshot,
    present,
    snapshot_from_payload,
    snapshot_to_payload,
)
from .community import CommunitySnapshot, SocialProfileService
from .development import DevelopmentSnapshot
from .liquidity import LiquiditySnapshot
from .security import SecuritySnapshot
from .tokenomics import TokenomicsSnapshot


@dataclass(frozen=True, slots=True)
class CategorySpec:
    category: CacheCategory
    snapshot_cls: type
    fields: tuple[MetricField, ...]

    def empty(self) -> Any:
        return self.snapshot_cls()


SCORED_CATEGORIES: tuple[CacheCategory, ...] = (
    CacheCategory.SECURITY,
    CacheCategory.LIQUIDITY,
    CacheCategory.TOKENOMICS,
    CacheCategory.COMMUNITY,
    CacheCategory.DEVELOPMENT,
)

CATEGORY_SPECS: dict[CacheCategory, CategorySpec] = {
    CacheCategory.SECURITY: CategorySpec(CacheCategory.SECURITY, SecuritySnapshot, security.FIELDS),
    CacheCategory.LIQUIDITY: CategorySpec(CacheCategory.LIQUIDITY, LiquiditySnapshot, liquidity.FIELDS),
    CacheCategory.TOKENOMICS: CategorySpec(CacheCategory.TOKENOMICS, TokenomicsSnapshot, tokenomics.FIELDS),
    CacheCategory.COMMUNITY: CategorySpec(CacheCategory.COMMUNITY, CommunitySnapshot, community.FIELDS),
    CacheCategory.DEVELOPMENT: CategorySpec(CacheCategory.DEVELOPMENT, DevelopmentSnapshot, development.FIELDS),
}


def check_disjoint_fields(specs: dict[CacheCategory, CategorySpec]) -> None:
    """Поля категорий сливаются в одну запись, поэтому имена не должны пересекаться."""

    owners: dict[str, CacheCategory] = {}
    for spec in specs.values():
        for name in field_names(spec.fields):
            if name in owners:
                raise RuntimeError(
                    f"Field {name!r} is declared by both {owners[name].value} and {spec.category.value}"
                )
            owners[name] = spec.category


check_disjoint_fields(CATEGORY_SPECS)


__all__ = [
    "CATEGORY_SPECS",
    "CategorySpec",
    "CommunitySnapshot",
    "DevelopmentSnapshot",
    "LiquiditySnapshot",
    "MetricField",
    "SCORED_CATEGORIES",
    "SecuritySnapshot",
    "SocialProfileService",
    "TokenContext",
    "TokenomicsSnapshot",
    "check_disjoint_fields",
    "field_names",
    "is_empty_snapshot",
    "present",
    "snapshot_from_payload",
    "snapshot_to_payload",
]
