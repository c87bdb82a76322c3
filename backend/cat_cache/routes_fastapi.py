"""
Image Cache API Routes

Provides endpoints for:
- GET    /{code}  - serve from cache, or fetch from origin and cache
- PUT    /{code}  - store request body as the cached image
- DELETE /{code}  - remove the cached image

Only the first path segment is used as the cache key; anything after it
is ignored.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.requests import ClientDisconnect

from .cache_manager import ImageCacheStore
from .config import IMAGE_CONTENT_TYPE
from .errors import CacheMissError, InvalidKeyError, UpstreamError
from .origin_fetcher import OriginFetcher

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, PUT, DELETE"

# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Cache"])


# ============================================
# Dependencies
# ============================================

def extract_key(path: str) -> Optional[str]:
    """Return the first non-empty path segment, or None."""
    segments = [segment for segment in path.split("/") if segment]
    return segments[0] if segments else None


def get_cache_store(request: Request) -> ImageCacheStore:
    return request.app.state.cache_store


def get_origin_fetcher(request: Request) -> OriginFetcher:
    return request.app.state.origin_fetcher


def resolve_key(path: str) -> str:
    """Extract and validate the cache key from the request path."""
    key = extract_key(path)
    if key is None:
        raise HTTPException(status_code=400, detail="Bad Request: expected path /<http-code>")
    try:
        return ImageCacheStore.validate_key(key)
    except InvalidKeyError as e:
        logger.warning(f"[ImageCache] Rejected key {key!r}: {e.message}")
        raise HTTPException(status_code=400, detail=f"Bad Request: {e.message}")


def image_response(data: bytes, cache_status: str) -> Response:
    return Response(
        content=data,
        media_type=IMAGE_CONTENT_TYPE,
        headers={"X-Cache": cache_status},
    )


# ============================================
# Endpoints
# ============================================

@router.get("/{path:path}")
async def get_image(
    key: str = Depends(resolve_key),
    store: ImageCacheStore = Depends(get_cache_store),
    fetcher: OriginFetcher = Depends(get_origin_fetcher),
):
    """
    Serve an image for a status code.

    This endpoint:
    1. Returns the cached image if present
    2. Otherwise fetches it from the origin
    3. Caches the fetched image before responding

    Any origin failure (unknown code, timeout, network error) is reported
    as 404 and nothing is cached.
    """
    try:
        data = await store.read(key)
    except CacheMissError:
        pass
    else:
        logger.info(f"[ImageCache] Served from cache: {key}")
        return image_response(data, "HIT")

    logger.info(f"[ImageCache] Cache miss for {key}, fetching from {fetcher.url_for(key)}")
    try:
        data = await fetcher.fetch(key)
    except UpstreamError as e:
        logger.warning(f"[ImageCache] Not found on origin: {key} ({e.message})")
        return PlainTextResponse("Not Found", status_code=404)

    await store.write(key, data)
    logger.info(f"[ImageCache] Fetched and cached: {key} ({len(data)} bytes)")
    return image_response(data, "MISS")


@router.put("/{path:path}", status_code=201)
async def put_image(
    request: Request,
    key: str = Depends(resolve_key),
    store: ImageCacheStore = Depends(get_cache_store),
):
    """Store the request body as the image for a key, replacing any existing one."""
    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning(f"[ImageCache] Client disconnected during upload: {key}")
        return PlainTextResponse("Bad Request", status_code=400)

    await store.write(key, body)
    logger.info(f"[ImageCache] Saved to cache (PUT): {key} ({len(body)} bytes)")
    return PlainTextResponse("Created", status_code=201)


@router.delete("/{path:path}")
async def delete_image(
    key: str = Depends(resolve_key),
    store: ImageCacheStore = Depends(get_cache_store),
):
    """Remove the cached image for a key."""
    try:
        await store.delete(key)
    except CacheMissError:
        logger.info(f"[ImageCache] Delete requested for missing key: {key}")
        return PlainTextResponse("Not Found", status_code=404)

    logger.info(f"[ImageCache] Deleted from cache: {key}")
    return PlainTextResponse("Deleted")


def method_not_allowed(request: Request) -> PlainTextResponse:
    """
    Answer a method that has no route.

    The key is still checked first, so a missing or unsafe key gives 400
    whatever the method.
    """
    try:
        key = resolve_key(request.scope["path"])
    except HTTPException as e:
        return PlainTextResponse(str(e.detail), status_code=e.status_code)

    logger.info(f"[ImageCache] Method not allowed: {request.method} {key}")
    return PlainTextResponse(
        "Method Not Allowed",
        status_code=405,
        headers={"Allow": ALLOWED_METHODS},
    )
