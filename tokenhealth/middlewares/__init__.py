"""Инфраструктура запросов: БД-сессии и обработка ошибок."""

from .db import get_db_session, get_session_maker, init_db
from .errors import register_exception_handlers

__all__ = [
    "get_db_session",
    "get_session_maker",
    "init_db",
    "register_exception_handlers",
]
