"""Глобальный перехват и логирование ошибок API."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from tokenhealth.errors import TokenHealthError


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def token_health_error_handler(request: Request, exc: TokenHealthError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{method} {path} -> {status}: {error}", method=request.method, path=request.url.path, status=exc.status_code, error=exc.message)
    else:
        logger.info("{method} {path} -> {status}: {error}", method=request.method, path=request.url.path, status=exc.status_code, error=exc.message)
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.info("Некорректный запрос {path}: {problems}", path=request.url.path, problems=problems)
    return error_response(400, problems or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Ошибка при обработке {path}: {error}", path=request.url.path, error=exc)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TokenHealthError, token_health_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = ["register_exception_handlers"]
