from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
import redis.exceptions
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError

from dm_service.api.middleware.correlation_id import CorrelationIdMiddleware
from dm_service.api.middleware.metrics import RequestTimingMiddleware
from dm_service.api.v1.routers import call_invitations, calls, conversations, health, messages
from dm_service.application.exceptions import (
    AppError,
    InvalidInputError,
    UpstreamUnavailableError,
)
from dm_service.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    logger.info("Redis connection pool created")

    yield

    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="DM Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(calls.router)
    app.include_router(call_invitations.router)

    return app


def _error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "code": exc.code, "retryable": exc.retryable},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(req: Request, exc: AppError) -> JSONResponse:
        logger.info("%s %s -> %s: %s", req.method, req.url.path, exc.code, exc.detail)
        return _error_response(exc)

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    @app.exception_handler(redis.exceptions.ConnectionError)
    @app.exception_handler(TimeoutError)
    async def _upstream(req: Request, exc: Exception) -> JSONResponse:
        logger.warning("%s %s -> upstream failure: %r", req.method, req.url.path, exc)
        return _error_response(UpstreamUnavailableError("Upstream service unavailable, retry later"))

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(req: Request, exc: RequestValidationError) -> JSONResponse:
        detail = _validation_detail(exc)
        logger.info("%s %s -> invalid_input: %s", req.method, req.url.path, detail)
        return _error_response(InvalidInputError(detail))

    # Only reached when a row references a party the store does not know,
    # or a value overflows its column; both are caller mistakes.
    @app.exception_handler(IntegrityError)
    @app.exception_handler(DataError)
    async def _rejected_by_store(req: Request, exc: Exception) -> JSONResponse:
        logger.info("%s %s -> rejected by store: %s", req.method, req.url.path, exc)
        return _error_response(InvalidInputError("Unknown party or malformed identifier"))


def _validation_detail(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc) or "body"
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {first.get('msg', 'invalid value')}"
