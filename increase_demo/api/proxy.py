"""
Pass-through proxy to the Increase sandbox.

The browser cannot call the sandbox directly, so /api/<path>
is forwarded to <INCREASE_BASE_URL>/<path>. The caller's
Authorization header goes through untouched; browser headers
that would make the sandbox reject the request are stripped.
"""

from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from increase_demo.config import get_settings
from increase_demo.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Proxy"])

STRIPPED_REQUEST_HEADERS = frozenset({
    "host",
    "content-length",
    "connection",
    "accept-encoding",
    "origin",
    "referer",
    "sec-fetch-site",
    "sec-fetch-mode",
    "sec-fetch-dest",
    "sec-ch-ua",
    "sec-ch-ua-mobile",
    "sec-ch-ua-platform",
})

# Hop-by-hop headers, plus the ones that no longer describe the
# body once httpx has decoded it
DROPPED_RESPONSE_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
})


async def get_proxy_client() -> AsyncIterator[httpx.AsyncClient]:
    """FastAPI dependency: one AsyncClient per proxied request."""
    settings = get_settings()
    async with httpx.AsyncClient(
        base_url=settings.INCREASE_BASE_URL.rstrip("/"),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    ) as client:
        yield client


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def proxy(
    path: str,
    request: Request,
    client: httpx.AsyncClient = Depends(get_proxy_client),
):
    headers = {
        name: value
        for name, value in request.headers.items()
        if name.lower() not in STRIPPED_REQUEST_HEADERS
    }
    body = await request.body()

    try:
        upstream = await client.request(
            request.method,
            f"/{path}",
            params=request.url.query,
            content=body,
            headers=headers,
        )
    except httpx.HTTPError as e:
        logger.error(f"Proxy {request.method} /{path} failed: {e}")
        return JSONResponse(status_code=502, content={"detail": "Could not reach Increase"})

    logger.debug(f"Proxy {request.method} /{path} -> {upstream.status_code}")
    response_headers = {
        name: value
        for name, value in upstream.headers.items()
        if name.lower() not in DROPPED_RESPONSE_HEADERS
    }
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=response_headers,
    )
