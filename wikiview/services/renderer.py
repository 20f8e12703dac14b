#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders wiki article markdown to safe HTML.

The pipeline is three explicit stages with a document tree between each:

    parse (mistune)  →  resolve [[WikiLinks]]  →  compile (convert, sanitize, serialize)

Rendering is a pure function of the source text and the pipeline's
configuration; a ``RenderPipeline`` holds no per-request state and can be
shared by concurrent requests.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from wikiview.core.config import Settings
from wikiview.services.compiler import DEFAULT_ALLOW_LIST, AllowList, HtmlCompiler
from wikiview.services.parser import parse
from wikiview.services.tree import Node
from wikiview.services.wikilinks import (
    ResolutionEvent,
    ResolverConfig,
    WikiLinkResolver,
    slug_page_resolver,
    wiki_href_template,
)


# -----------------------------------------------------------------------------

class Stage(Protocol):
    def transform(self, tree: Node) -> Node: ...


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderPipeline:
    stages: tuple[Stage, ...]
    compiler: HtmlCompiler
    gfm: bool = True

    def parse(self, content: str) -> Node:
        return parse(content, gfm=self.gfm)

    def transform(self, tree: Node) -> Node:
        for stage in self.stages:
            tree = stage.transform(tree)
        return tree

    def render(self, content: str) -> str:
        return self.compiler.compile(self.transform(self.parse(content)))

    __call__ = render


# -----------------------------------------------------------------------------

def make_pipeline(
    config: ResolverConfig,
    *,
    gfm: bool = True,
    allow_list: AllowList = DEFAULT_ALLOW_LIST,
    highlight: bool = False,
) -> RenderPipeline:
    return RenderPipeline(
        stages=(WikiLinkResolver(config),),
        compiler=HtmlCompiler(allow_list, highlight=highlight),
        gfm=gfm,
    )


def build_pipeline(
    settings: Settings,
    on_resolve: Optional[Callable[[ResolutionEvent], None]] = None,
) -> RenderPipeline:
    """Assemble the pipeline described by *settings*."""
    config = ResolverConfig(
        href_template=wiki_href_template(
            base_path=settings.wiki_base_path,
            space_replacement=settings.href_space_replacement or None,
            space_pattern=settings.href_space_pattern,
        ),
        alias_divider=settings.alias_divider,
        page_resolver=slug_page_resolver if settings.page_resolver == "slug" else None,
        on_resolve=on_resolve,
    )
    allow_list = dataclasses.replace(DEFAULT_ALLOW_LIST, raw_html=settings.raw_html)
    return make_pipeline(
        config,
        gfm=settings.gfm,
        allow_list=allow_list,
        highlight=settings.highlight_code,
    )


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render(
    content: str,
    config: Optional[ResolverConfig] = None,
    *,
    gfm: bool = True,
    allow_list: AllowList = DEFAULT_ALLOW_LIST,
) -> str:
    """
    Render *content* to HTML.

    Parameters
    ----------
    content    : raw markdown source
    config     : wiki-link resolver configuration; defaults to ``/wiki/`` hrefs
                 with spaces turned into underscores
    gfm        : enable GitHub-flavoured extensions (tables, strikethrough,
                 task lists, bare URLs)
    allow_list : sanitization allow-list
    """
    if config is None:
        config = ResolverConfig(href_template=wiki_href_template())
    return make_pipeline(config, gfm=gfm, allow_list=allow_list).render(content)


# -----------------------------------------------------------------------------
