"""Нормализация идентификаторов токенов."""

from __future__ import annotations

import re

CONTRACT_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def normalize_token_key(raw: str) -> str:
    """'$ETH', 'eth', ' Eth ' -> 'eth'. Ключ кеша для любой формы ввода."""

    value = (raw or "").strip()
    if value.startswith("$"):
        value = value[1:]
    return value.strip().lower()


def is_contract_address(value: str | None) -> bool:
    return bool(value) and CONTRACT_ADDRESS_RE.match(value.strip()) is not None


def normalize_address(value: str) -> str:
    return value.strip().lower()


__all__ = [
    "CONTRACT_ADDRESS_RE",
    "is_contract_address",
    "normalize_address",
    "normalize_token_key",
]
