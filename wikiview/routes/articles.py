#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Articles router
===============
GET  /api/v1/articles/{slug}         rendered article (JSON)
GET  /api/v1/articles?title=...      rendered article looked up by title (JSON)
GET  /wiki/{slug}                    rendered article (HTML)
GET  /wiki?title=...                 rendered article looked up by title (HTML)

Upstream failures surface as ``FetchError`` and are turned into responses by
the handler registered in ``wikiview.main``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from wikiview.core.http import get_article_client, get_pipeline
from wikiview.schemas import ArticlePage, ErrorResponse
from wikiview.services.articles import ArticleClient, load_article
from wikiview.services.renderer import RenderPipeline


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/articles", tags=["articles"])

page_router = APIRouter(prefix="/wiki", tags=["wiki"])

# Upstream failures, relayed by the FetchError handler.
_FETCH_ERRORS = {
    404: {"model": ErrorResponse, "description": "Article not found upstream"},
    502: {"model": ErrorResponse, "description": "Article API unreachable"},
}


# ── JSON ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=ArticlePage, responses=_FETCH_ERRORS)
async def get_article_by_title(
    title:    str            = Query(..., min_length=1, max_length=512),
    client:   ArticleClient  = Depends(get_article_client),
    pipeline: RenderPipeline = Depends(get_pipeline),
):
    return await load_article(client, pipeline, title=title)


@router.get("/{slug}", response_model=ArticlePage, responses=_FETCH_ERRORS)
async def get_article(
    slug:     str,
    client:   ArticleClient  = Depends(get_article_client),
    pipeline: RenderPipeline = Depends(get_pipeline),
):
    return await load_article(client, pipeline, slug=slug)


# ── HTML ─────────────────────────────────────────────────────────────────────

@page_router.get("", response_class=HTMLResponse, responses=_FETCH_ERRORS)
async def wiki_page_by_title(
    title:    str            = Query(..., min_length=1, max_length=512),
    client:   ArticleClient  = Depends(get_article_client),
    pipeline: RenderPipeline = Depends(get_pipeline),
):
    page = await load_article(client, pipeline, title=title)
    return HTMLResponse(page.html)


@page_router.get("/{slug}", response_class=HTMLResponse, responses=_FETCH_ERRORS)
async def wiki_page(
    slug:     str,
    client:   ArticleClient  = Depends(get_article_client),
    pipeline: RenderPipeline = Depends(get_pipeline),
):
    page = await load_article(client, pipeline, slug=slug)
    return HTMLResponse(page.html)


# -----------------------------------------------------------------------------
