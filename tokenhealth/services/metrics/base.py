"""Общие типы категорий метрик.

Внутри сервиса каждая категория представлена dataclass-снимком, где None означает
«неизвестно». В плоскую запись со строками для UI и сырыми значениями он
превращается только на границе ответа через таблицу полей MetricField.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, TypeVar

from loguru import logger

from tokenhealth.services.chains import DEFAULT_CHAIN, Chain
from tokenhealth.utils.formatters import NA

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class MetricField:
    """Одно поле записи: отображаемая строка и (опционально) сырой двойник."""

    name: str
    attr: str
    fmt: Callable[[Any], str]
    raw_name: str | None = None
    raw_default: Any = 0


def present(snapshot: Any, fields: Iterable[MetricField]) -> dict[str, Any]:
    """Снимок -> плоский словарь. Ни одно объявленное поле не пропускается."""

    out: dict[str, Any] = {}
    for item in fields:
        value = getattr(snapshot, item.attr, None)
        out[item.name] = NA if value is None else item.fmt(value)
        if item.raw_name:
            out[item.raw_name] = item.raw_default if value is None else value
    return out


def field_names(fields: Iterable[MetricField]) -> list[str]:
    names: list[str] = []
    for item in fields:
        names.append(item.name)
        if item.raw_name:
            names.append(item.raw_name)
    return names


def snapshot_to_payload(snapshot: Any) -> dict[str, Any]:
    return dataclasses.asdict(snapshot)


def snapshot_from_payload(cls: type[S], payload: dict[str, Any] | None) -> S:
    """Восстанавливает снимок из JSON кеша, игнорируя неизвестные ключи."""

    known = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: v for k, v in (payload or {}).items() if k in known})


def is_empty_snapshot(snapshot: Any) -> bool:
    for item in dataclasses.fields(snapshot):
        value = getattr(snapshot, item.name)
        if value not in (None, [], {}, ""):
            return False
    return True


@dataclass(slots=True)
class TokenContext:
    """Всё, что известно о токене к моменту сбора категорий."""

    key: str
    now: datetime
    coin_id: str | None = None
    symbol: str | None = None
    name: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    contract_address: str | None = None
    chain: Chain = DEFAULT_CHAIN
    twitter_handle: str | None = None
    github_repo: str | None = None

    @property
    def market_data(self) -> dict[str, Any]:
        data = self.details.get("market_data")
        return data if isinstance(data, dict) else {}


def unwrap(value: Any, fallback: Any, *, source: str, key: str) -> Any:
    """Результат gather(return_exceptions=True) или fallback при ошибке."""

    if isinstance(value, BaseException) and not isinstance(value, Exception):
        raise value
    if isinstance(value, Exception):
        logger.warning(
            "Источник {source} недоступен для {key}, поля деградируют: {error}",
            source=source,
            key=key,
            error=value,
        )
        return fallback
    return value


def to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if result == result else None


def to_int(value: Any) -> int | None:
    number = to_float(value)
    return int(number) if number is not None else None


def usd(block: Any) -> float | None:
    """market_data.*: {"usd": 1.0, ...} -> 1.0."""

    if isinstance(block, dict):
        return to_float(block.get("usd"))
    return to_float(block)


def parse_datetime(value: Any) -> datetime | None:
    """ISO-8601, unix-секунды или формат Twitter ('Wed Jun 02 20:12:29 +0000 2010')."""

    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    text = str(value).strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%a %b %d %H:%M:%S %z %Y")
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "MetricField",
    "TokenContext",
    "field_names",
    "is_empty_snapshot",
    "parse_datetime",
    "present",
    "snapshot_from_payload",
    "snapshot_to_payload",
    "to_float",
    "to_int",
    "unwrap",
    "usd",
]
