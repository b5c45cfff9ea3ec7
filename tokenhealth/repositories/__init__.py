"""Репозитории для работы с БД."""

from .cache_repo import get_cache_row, get_live_cache_row, upsert_cache_row
from .scan_repo import (
    ensure_subscriber,
    get_subscriber,
    increment_scan_count,
    insert_token_scan,
    list_recent_scans,
    reset_if_new_day,
)

__all__ = [
    "ensure_subscriber",
    "get_cache_row",
    "get_live_cache_row",
    "get_subscriber",
    "increment_scan_count",
    "insert_token_scan",
    "list_recent_scans",
    "reset_if_new_day",
    "upsert_cache_row",
]
