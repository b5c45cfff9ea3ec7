"""Форматирование значений для UI. Пустое значение -> сентинел "N/A"."""

from __future__ import annotations

NA = "N/A"


def format_currency(value: float | None) -> str:
    if value is None:
        return NA
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    if 0 < value < 0.01:
        return f"${value:.6f}"
    return f"${value:.2f}"


def format_number(value: float | None) -> str:
    if value is None:
        return NA
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.2f}K"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_followers(value: int | None) -> str:
    if value is None:
        return NA
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def format_share(value: float | None) -> str:
    """Доля в процентах: 42.5 -> '42.5%'."""

    if value is None:
        return NA
    return f"{value:.1f}%"


def format_change(value: float | None) -> str:
    """Изменение со знаком: 1.234 -> '+1.23%'."""

    if value is None:
        return NA
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def format_days(value: int | None) -> str:
    if value is None:
        return NA
    return "1 day" if value == 1 else f"{value} days"


def format_flag(value: bool | None) -> str:
    if value is None:
        return NA
    return "Yes" if value else "No"


def format_text(value: str | None) -> str:
    if value is None or value == "":
        return NA
    return str(value)


__all__ = [
    "NA",
    "format_change",
    "format_currency",
    "format_days",
    "format_flag",
    "format_followers",
    "format_number",
    "format_share",
    "format_text",
]
