"""
Application factory.

Wires the cache store and origin fetcher into a FastAPI app and installs
exception handlers that render every error as a plain-text response.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .cache_manager import ImageCacheStore
from .config import Settings
from .errors import CacheStorageError, CatCacheError, InvalidKeyError
from .origin_fetcher import OriginFetcher
from .routes_fastapi import method_not_allowed, router

logger = logging.getLogger(__name__)


def _request_context(request: Request) -> str:
    return f"{request.method} {request.url.path}"


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return method_not_allowed(request)
        return PlainTextResponse(
            str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(InvalidKeyError)
    async def invalid_key_handler(request: Request, exc: InvalidKeyError):
        logger.warning(f"[ImageCache] Bad request ({_request_context(request)}): {exc.message}")
        return PlainTextResponse(f"Bad Request: {exc.message}", status_code=400)

    @app.exception_handler(CacheStorageError)
    async def storage_error_handler(request: Request, exc: CacheStorageError):
        logger.error(
            f"[ImageCache] Storage error ({_request_context(request)}, key={exc.key}): {exc.message}"
        )
        return PlainTextResponse("Internal Server Error", status_code=500)

    @app.exception_handler(CatCacheError)
    async def cache_error_handler(request: Request, exc: CatCacheError):
        logger.error(f"[ImageCache] Error ({_request_context(request)}, key={exc.key}): {exc.message}")
        return PlainTextResponse("Internal Server Error", status_code=500)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"[ImageCache] Unexpected error ({_request_context(request)}): {exc}")
        return PlainTextResponse("Internal Server Error", status_code=500)


def create_app(
    settings: Optional[Settings] = None,
    *,
    cache_store: Optional[ImageCacheStore] = None,
    origin_fetcher: Optional[OriginFetcher] = None,
) -> FastAPI:
    """
    Build the cache proxy application.

    Either ``settings`` or both ``cache_store`` and ``origin_fetcher`` must be
    given; explicit components take precedence over settings.
    """
    if cache_store is None or origin_fetcher is None:
        if settings is None:
            raise ValueError("create_app() needs settings or explicit components")
        cache_store = cache_store or ImageCacheStore(settings.cache_dir)
        origin_fetcher = origin_fetcher or OriginFetcher(
            base_url=settings.origin_url,
            timeout=settings.origin_timeout,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await origin_fetcher.close()

    app = FastAPI(
        title="HTTP Cat Cache",
        description="Caching proxy for status-code images",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.cache_store = cache_store
    app.state.origin_fetcher = origin_fetcher

    _install_exception_handlers(app)
    app.include_router(router)
    return app
