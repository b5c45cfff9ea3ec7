"""Базовые примеси для SQLModel моделей."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """SQLite возвращает naive datetime, считаем его UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UTCDateTime(TypeDecorator):
    """Метка времени, которая пишется и читается только в UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value).astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        return ensure_utc(value) if value is not None else None


class TimeStampedModel(SQLModel, table=False):
    """Добавляет created_at / updated_at."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTCDateTime)

    def touch(self) -> None:
        self.updated_at = utcnow()


__all__ = ["TimeStampedModel", "UTCDateTime", "ensure_utc", "utcnow"]
