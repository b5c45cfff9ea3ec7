"""Учёт дневной квоты сканирований."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlmodel import Field

from .base import TimeStampedModel


class SubscriberTier:
    FREE = "free"
    PRO = "pro"


class Subscriber(TimeStampedModel, table=True):
    """Пользователь дашборда и его счётчик сканов за день."""

    __tablename__ = "subscribers"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, unique=True, index=True)
    tier: str = Field(default=SubscriberTier.FREE, max_length=16)
    scan_count: int = Field(default=0)
    scan_limit: int = Field(default=3)
    scan_reset_date: Optional[date] = Field(default=None)


__all__ = ["Subscriber", "SubscriberTier"]
