"""FastAPI backend дашборда здоровья токенов."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from config.settings import get_settings
from tokenhealth import __version__, context
from tokenhealth.middlewares import init_db, register_exception_handlers
from tokenhealth.models.base import utcnow
from tokenhealth.services.aggregator import MetricsAggregator, MetricsHints
from tokenhealth.services.resolver import TokenResolver
from tokenhealth.services.scans import ScanService
from tokenhealth.services.search import TokenSearchService

settings = get_settings()


# ============================================================================
# Модели запросов и ответов
# ============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TokenRequest(CamelModel):
    token: str = Field(..., min_length=1)


class SearchRequest(CamelModel):
    query: str = Field(..., min_length=1)


class MetricsRequest(CamelModel):
    token: str = Field(..., min_length=1)
    address: str | None = None
    blockchain: str | None = None
    twitter: str | None = None
    github: str | None = None
    force_refresh: bool = Field(False, alias="forceRefresh")
    mode: str | None = None

    def hints(self) -> MetricsHints:
        return MetricsHints(
            address=self.address or None,
            blockchain=self.blockchain or None,
            twitter=self.twitter or None,
            github=self.github or None,
        )


class TokenomicsRequest(CamelModel):
    contract_address: str | None = Field(None, alias="contractAddress")
    force_refresh: bool = Field(False, alias="forceRefresh")


class SearchResponse(BaseModel):
    results: list[dict[str, Any]]


class MetricsResponse(BaseModel):
    metrics: dict[str, Any]


class TokenomicsResponse(BaseModel):
    data: dict[str, Any]
    cached: bool


class RecentScansResponse(BaseModel):
    scans: list[dict[str, Any]]


# ============================================================================
# Зависимости
# ============================================================================

def get_aggregator() -> MetricsAggregator:
    return context.aggregator


def get_resolver() -> TokenResolver:
    return context.resolver


def get_search_service() -> TokenSearchService:
    return context.search_service


def get_scan_service() -> ScanService:
    return context.scan_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("TokenHealth API {version} запущен", version=__version__)
    yield
    await context.sources.close()
    logger.info("TokenHealth API остановлен")


app = FastAPI(title="TokenHealth API", version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/api/resolve-token")
async def resolve_token(
    payload: TokenRequest,
    resolver: TokenResolver = Depends(get_resolver),
) -> dict[str, Any]:
    resolved = await resolver.resolve(payload.token)
    return resolved.public()


@app.post("/api/search-tokens", response_model=SearchResponse)
async def search_tokens(
    payload: SearchRequest,
    search: TokenSearchService = Depends(get_search_service),
) -> SearchResponse:
    return SearchResponse(results=await search.search(payload.query))


@app.post("/api/token-metrics", response_model=MetricsResponse)
async def token_metrics(
    payload: MetricsRequest,
    aggregator: MetricsAggregator = Depends(get_aggregator),
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> MetricsResponse:
    record = await aggregator.get_metrics(
        payload.token,
        payload.hints(),
        force_refresh=payload.force_refresh,
        mode=payload.mode,
        user_id=x_user_id or None,
    )
    return MetricsResponse(metrics=record.to_dict())


@app.post("/api/token-tokenomics", response_model=TokenomicsResponse)
async def token_tokenomics(
    payload: TokenomicsRequest,
    aggregator: MetricsAggregator = Depends(get_aggregator),
) -> TokenomicsResponse:
    data, cached = await aggregator.get_tokenomics(payload.contract_address, force_refresh=payload.force_refresh)
    return TokenomicsResponse(data=data, cached=cached)


@app.post("/api/token-info")
async def token_info(
    payload: TokenRequest,
    aggregator: MetricsAggregator = Depends(get_aggregator),
) -> dict[str, Any]:
    return await aggregator.get_token_info(payload.token)


@app.get("/api/scans/recent", response_model=RecentScansResponse)
async def recent_scans(
    limit: int = Query(10, ge=1, le=100),
    scans: ScanService = Depends(get_scan_service),
) -> RecentScansResponse:
    return RecentScansResponse(scans=await scans.recent(limit))


@app.get("/api/quota/{user_id}")
async def quota(
    user_id: str,
    scans: ScanService = Depends(get_scan_service),
) -> dict[str, Any]:
    return await scans.usage(user_id, utcnow().date())


__all__ = ["app"]
