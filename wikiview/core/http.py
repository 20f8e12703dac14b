#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Shared HTTP client for the article API, and the render pipeline built from
settings.  Both are created once and handed to routes as dependencies.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache

import httpx

from wikiview.services.articles import ArticleClient
from wikiview.services.renderer import RenderPipeline, build_pipeline

from .config import get_settings


# -----------------------------------------------------------------------------

_http_client: httpx.AsyncClient | None = None


# -----------------------------------------------------------------------------

def init_http(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the shared client.  Call once at startup."""
    global _http_client
    settings = get_settings()
    _http_client = httpx.AsyncClient(
        timeout=settings.request_timeout,
        transport=transport,
        headers={"User-Agent": f"{settings.app_name}/{settings.app_version}"},
    )
    return _http_client


async def close_http() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


# -----------------------------------------------------------------------------

def get_article_client() -> ArticleClient:
    """FastAPI dependency: article client bound to the shared HTTP client."""
    if _http_client is None:
        raise RuntimeError("HTTP client not initialised; init_http() runs in the app lifespan")
    return ArticleClient(_http_client, get_settings().article_api_url)


@lru_cache
def get_pipeline() -> RenderPipeline:
    """FastAPI dependency: the process-wide render pipeline."""
    return build_pipeline(get_settings())


# -----------------------------------------------------------------------------
