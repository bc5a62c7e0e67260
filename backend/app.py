"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes.auth import router as auth_router
from api.routes.content import articles_router, posts_router, projects_router
from api.routes.interactions import follows_router, likes_router, watches_router
from api.routes.users import router as users_router
from core import configure_logging, settings
from services import RateLimitMiddleware, get_rate_limiter
from services.rate_limiter import interaction_write_scope

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
HEALTH_PATH = f"{API_PREFIX}/health"


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(
        str(part) for part in first.get("loc", ()) if part not in {"body", "query", "path"}
    )
    message = str(first.get("msg", "Invalid request"))
    return f"{location}: {message}" if location else message


async def _validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return JSONResponse(
        {"detail": _first_validation_message(exc)},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        {"detail": "Server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _build_api_router() -> APIRouter:
    api = APIRouter(prefix=API_PREFIX)

    @api.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    api.include_router(auth_router)
    api.include_router(users_router)
    api.include_router(projects_router)
    api.include_router(posts_router)
    api.include_router(articles_router)
    api.include_router(likes_router)
    api.include_router(follows_router)
    api.include_router(watches_router)
    return api


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Next-Offset", "Retry-After"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        limiter_factory=get_rate_limiter,
        exempt_paths={HEALTH_PATH},
        scope_resolver=interaction_write_scope,
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(_build_api_router())
    return app


__all__ = ["API_PREFIX", "HEALTH_PATH", "create_app"]
