"""История сканирований (append-only)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import JSON
from sqlmodel import Field

from .base import TimeStampedModel


class TokenScan(TimeStampedModel, table=True):
    __tablename__ = "token_scans"

    id: Optional[int] = Field(default=None, primary_key=True)
    token_id: str = Field(max_length=256, index=True)
    token_symbol: Optional[str] = Field(default=None, max_length=64)
    token_name: Optional[str] = Field(default=None, max_length=256)
    token_address: Optional[str] = Field(default=None, max_length=128)
    health_score: Optional[int] = Field(default=None)
    category_scores: Optional[dict] = Field(default=None, sa_type=JSON)
    user_id: Optional[str] = Field(default=None, max_length=128, index=True)


__all__ = ["TokenScan"]
