"""Исключения TokenHealth.

Каждое исключение знает свой HTTP-статус, поэтому web-слой переводит их
в ответ без дополнительных таблиц соответствия.
"""

from __future__ import annotations


class TokenHealthError(RuntimeError):
    """Базовое исключение сервиса."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(TokenHealthError):
    """Токен не найден ни в одном источнике."""

    status_code = 404


class UpstreamError(TokenHealthError):
    """Внешний источник ответил ошибкой или мусором."""

    status_code = 502

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class ConnectivityError(TokenHealthError):
    """Недоступно собственное хранилище сервиса."""

    status_code = 503

    def __init__(self, message: str = "Storage is temporarily unavailable, please retry shortly") -> None:
        super().__init__(message)


class InvalidInputError(TokenHealthError):
    """Некорректный запрос (формат адреса, обязательное поле)."""

    status_code = 400


class QuotaExceededError(TokenHealthError):
    """Исчерпан дневной лимит сканирований."""

    status_code = 429


__all__ = [
    "ConnectivityError",
    "InvalidInputError",
    "NotFoundError",
    "QuotaExceededError",
    "TokenHealthError",
    "UpstreamError",
]
