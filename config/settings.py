"""Глобальные настройки TokenHealth.

Настройки разделены по доменам (сервер, БД, кеш, внешние источники, скоринг,
квоты), чтобы сервисы получали только свой срез конфигурации.
Значения читаются из переменных окружения и .env через Pydantic Settings;
вложенные поля задаются через "__", например CACHE_TTL__LIVE=300.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ACCESSIBLE_ENV_FILE = BASE_DIR / "config" / "runtime.env"
DEFAULT_ENV_FILE = BASE_DIR / ".env"
ENV_FILE = ACCESSIBLE_ENV_FILE if ACCESSIBLE_ENV_FILE.exists() else DEFAULT_ENV_FILE


class ServerSettings(BaseModel):
    """Параметры HTTP API дашборда."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class DatabaseSettings(BaseModel):
    """SQLModel + aiosqlite (по умолчанию) и готовность к Postgres."""

    dsn: str = Field(
        "sqlite+aiosqlite:///./database/tokenhealth.db",
        description="Строка подключения SQLAlchemy/SQLModel",
    )
    echo: bool = False


class CacheSettings(BaseModel):
    """Настройки процессного кеша (aiocache поддерживает memory / redis)."""

    backend: Literal["memory", "redis"] = "memory"
    redis_dsn: str | None = None
    namespace: str = "tokenhealth"
    catalog_ttl_seconds: int = Field(3600, description="Сколько держим список монет CoinGecko")


class CacheTTLSettings(BaseModel):
    """Время жизни строк в кеш-таблицах, секунды."""

    live: PositiveInt = 5 * 60
    generic: PositiveInt = 15 * 60
    slow: PositiveInt = 24 * 60 * 60
    search: PositiveInt = 60 * 60
    social: PositiveInt = 24 * 60 * 60


class SourcesSettings(BaseModel):
    """Адреса внешних API и политика повторов."""

    coingecko_url: AnyHttpUrl = Field("https://api.coingecko.com/api/v3")
    geckoterminal_url: AnyHttpUrl = Field("https://api.geckoterminal.com/api/v2")
    geckoterminal_version: str = "20230302"
    etherscan_url: AnyHttpUrl = Field("https://api.etherscan.io/api")
    goplus_url: AnyHttpUrl = Field("https://api.gopluslabs.io/api/v1")
    apify_url: AnyHttpUrl = Field("https://api.apify.com/v2")
    apify_actor_id: str = "apidojo~twitter-user-scraper"
    apify_poll_attempts: PositiveInt = 10
    apify_poll_delay_seconds: float = 2.0
    defillama_url: AnyHttpUrl = Field("https://api.llama.fi")
    github_url: AnyHttpUrl = Field("https://api.github.com")
    request_timeout: PositiveFloat = 10.0
    retries: int = Field(2, ge=0, description="Повторы после первой неудачной попытки")
    backoff_seconds: float = Field(1.0, ge=0)
    backoff_factor: PositiveFloat = 1.5


class ApiKeysSettings(BaseModel):
    """Ключи внешних API (все опциональны, без ключа источник деградирует)."""

    coingecko: SecretStr | None = None
    etherscan: SecretStr | None = None
    goplus: SecretStr | None = None
    github: SecretStr | None = None
    apify: SecretStr | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ScoringSettings(BaseModel):
    """Веса категорий в итоговом health score."""

    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "security": 0.25,
            "liquidity": 0.25,
            "tokenomics": 0.20,
            "community": 0.15,
            "development": 0.15,
        }
    )


class QuotaSettings(BaseModel):
    """Дневные лимиты сканирований по тарифам."""

    free: PositiveInt = 3
    pro: PositiveInt = 5


class AppSettings(BaseSettings):
    """Главный контейнер настроек TokenHealth."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Literal["dev", "prod"] = "dev"
    log_json: bool = False
    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    cache: CacheSettings = CacheSettings()
    cache_ttl: CacheTTLSettings = CacheTTLSettings()
    sources: SourcesSettings = SourcesSettings()
    api_keys: ApiKeysSettings = ApiKeysSettings()
    scoring: ScoringSettings = ScoringSettings()
    quota: QuotaSettings = QuotaSettings()

    @property
    def is_production(self) -> bool:
        """True, если сервис запущен в продовой среде."""

        return self.environment == "prod"


# Ленивый синглтон (избегаем глобальных переменных в модулях).
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Возвращает единый экземпляр настроек.

    Вызываем только на верхнем уровне (context, web). Сервисы получают нужный
    срез настроек через конструктор, чтобы тесты могли подставить свой.
    """

    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


__all__ = [
    "ApiKeysSettings",
    "AppSettings",
    "CacheSettings",
    "CacheTTLSettings",
    "DatabaseSettings",
    "QuotaSettings",
    "ScoringSettings",
    "ServerSettings",
    "SourcesSettings",
    "get_settings",
]
