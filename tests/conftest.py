#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for WikiView tests.
The upstream article API is replaced by an httpx MockTransport so no network
services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wikiview.core.http import get_article_client, get_pipeline
from wikiview.main import create_app
from wikiview.services.articles import ArticleClient
from wikiview.services.renderer import make_pipeline
from wikiview.services.wikilinks import ResolverConfig, wiki_href_template


# -----------------------------------------------------------------------------

ARTICLE_API = "http://articles.test/api/article"

ARTICLES = {
    "Target_Page": "# Target Page\n\nSee [[Other Page]] and [[Main Page|home]].\n",
    "Evil": 'Hello <img src="x" onerror="alert(1)"> world\n',
}

TITLES = {
    "Some Title": "Article found by **title**.\n",
}


# -----------------------------------------------------------------------------

def upstream_handler(request: httpx.Request) -> httpx.Response:
    """Fake article API: /api/article/<slug> or /api/article?title=<title>."""
    path = request.url.path
    if path == "/api/article":
        title = request.url.params.get("title", "")
        if title in TITLES:
            return httpx.Response(200, text=TITLES[title])
        return httpx.Response(404, text="not found")
    slug = path.rsplit("/", 1)[-1]
    if slug == "broken":
        return httpx.Response(500, text="upstream exploded")
    if slug in ARTICLES:
        return httpx.Response(200, text=ARTICLES[slug])
    return httpx.Response(404, text="not found")


@pytest.fixture
def resolver_config() -> ResolverConfig:
    return ResolverConfig(href_template=wiki_href_template("/wiki"))


@pytest_asyncio.fixture(scope="function")
async def upstream():
    """httpx client whose requests are answered by ``upstream_handler``."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream_handler)) as http:
        yield http


@pytest_asyncio.fixture(scope="function")
async def article_client(upstream) -> ArticleClient:
    return ArticleClient(upstream, ARTICLE_API)


@pytest_asyncio.fixture(scope="function")
async def client(article_client, resolver_config):
    """HTTP test client wired to the fake article API."""
    app = create_app()
    app.dependency_overrides[get_article_client] = lambda: article_client
    app.dependency_overrides[get_pipeline] = lambda: make_pipeline(resolver_config)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
