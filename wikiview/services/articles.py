#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Article service: fetch raw article markdown from the article API and render
it for display.

Articles are addressed either by slug (``GET {base}/{slug}``) or by title
(``GET {base}?title=...``).  A non-success response becomes a ``FetchError``
carrying the upstream status and body; the renderer is never called for it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from wikiview.core.errors import FetchError
from wikiview.schemas import ArticlePage
from wikiview.services.renderer import RenderPipeline


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class ArticleClient:

    def __init__(self, http: httpx.AsyncClient, base_url: str) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")

    async def fetch(self, slug: Optional[str] = None, title: Optional[str] = None) -> str:
        """Return the markdown source of an article.  Exactly one of *slug* / *title*."""
        if (slug is None) == (title is None):
            raise ValueError("pass exactly one of slug or title")

        if slug is not None:
            url, params = f"{self.base_url}/{quote(slug, safe='')}", None
        else:
            url, params = self.base_url, {"title": title}

        log.info("Fetching article %s", slug if slug is not None else f"title={title!r}")
        try:
            resp = await self.http.get(url, params=params)
        except httpx.RequestError as exc:
            log.warning("Article API unreachable: %s", exc)
            raise FetchError(502, str(exc)) from exc

        if not resp.is_success:
            log.warning("Article API returned %s for %s", resp.status_code, url)
            raise FetchError(resp.status_code, resp.text)
        return resp.text


# -----------------------------------------------------------------------------

async def load_article(
    client: ArticleClient,
    pipeline: RenderPipeline,
    slug: Optional[str] = None,
    title: Optional[str] = None,
) -> ArticlePage:
    """Fetch an article and render it.  ``FetchError`` propagates before rendering."""
    markdown = await client.fetch(slug=slug, title=title)
    return ArticlePage(slug=slug, title=title, html=pipeline.render(markdown))


# -----------------------------------------------------------------------------
