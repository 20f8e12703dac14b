"""
Tests for the assembled render pipeline: parse → resolve → compile.

All tests use the renderer directly: no HTTP round-trip needed.
"""
from __future__ import annotations

import dataclasses

import pytest
from wikiview.core.config import Settings
from wikiview.services.compiler import DEFAULT_ALLOW_LIST, HtmlCompiler
from wikiview.services.parser import parse
from wikiview.services.renderer import RenderPipeline, build_pipeline, make_pipeline, render
from wikiview.services.wikilinks import ResolverConfig, resolve, wiki_href_template


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


# ── Wiki links end to end ────────────────────────────────────────────────────

def test_render_wikilink():
    html = render("See [[Target Page]]")
    assert html == '<p>See <a href="/wiki/Target_Page" class="wikilink">Target Page</a></p>'


def test_render_alias():
    html = render("[[Target|Display Name]]")
    assert '<a href="/wiki/Target" class="wikilink">Display Name</a>' in html


def test_render_two_links_in_order():
    html = render("[[A]] and [[B]]")
    assert html == (
        '<p><a href="/wiki/A" class="wikilink">A</a> and '
        '<a href="/wiki/B" class="wikilink">B</a></p>'
    )


def test_render_label_is_escaped():
    html = render("[[Page|a < b & c]]")
    assert ">a &lt; b &amp; c</a>" in html


def test_render_with_page_resolver():
    config = ResolverConfig(
        href_template=wiki_href_template("/wiki"),
        page_resolver=lambda name: [name.lower(), name.upper()],
    )
    assert 'href="/wiki/some_page"' in render("[[Some Page]]", config)


def test_render_malformed_brackets_literal():
    assert render("[[]] and [[A[[B]]") == (
        '<p>[[]] and [[A<a href="/wiki/B" class="wikilink">B</a></p>'
    )


# ── Idempotent structural conversion ─────────────────────────────────────────

@pytest.mark.parametrize("md", [
    "# Heading\n\nA paragraph with *emphasis*, `code` and [a link](https://example.com).\n",
    "- one\n- two\n\n1. first\n2. second\n",
    "> quote\n\n```python\nprint('x')\n```\n",
    "| a | b |\n|---|---|\n| 1 | 2 |\n",
    "single [bracket] text",
])
def test_resolver_is_noop_without_wikilinks(md):
    tree = parse(md)
    config = ResolverConfig(href_template=wiki_href_template())
    compiler = HtmlCompiler()
    assert compiler.compile(resolve(tree, config)) == compiler.compile(tree)


# ── Totality ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("md", [
    "",
    "[[",
    "[[unterminated",
    "]]]][[[[",
    "[[a|]]",
    "[[|]]",
    "*" * 200 + "x" + "*" * 200,
    "_" * 300,
    "> " * 40 + "[[Deep]]",
    "<script>alert(1)</script>",
    "<div onclick='x'>[[A]]</div>",
    "[[" * 500 + "]]" * 500,
    "\x00[[\x00]]",
])
def test_render_never_raises(md):
    assert isinstance(render(md), str)


# ── Sanitization boundary ────────────────────────────────────────────────────

def test_render_strips_script_bearing_markup():
    html = render('Hi <img src="x" onerror="alert(1)"> [[Page]]')
    assert "onerror" not in html
    assert 'href="/wiki/Page"' in html


# ── build_pipeline(settings) ─────────────────────────────────────────────────

def test_build_pipeline_defaults():
    pipeline = build_pipeline(_settings())
    assert isinstance(pipeline, RenderPipeline)
    assert pipeline.render("[[Main Page]]") == (
        '<p><a href="/wiki/Main_Page" class="wikilink">Main Page</a></p>'
    )


def test_build_pipeline_keeps_spaces():
    pipeline = build_pipeline(_settings(href_space_replacement=""))
    assert 'href="/wiki/Main%20Page"' in pipeline.render("[[Main Page]]")


def test_build_pipeline_regex_whitespace_and_base_path():
    pipeline = build_pipeline(_settings(href_space_pattern=r"\s+", wiki_base_path="/articles/"))
    assert 'href="/articles/Main_Page"' in pipeline.render("[[Main   Page]]")


def test_build_pipeline_slug_resolver():
    pipeline = build_pipeline(_settings(page_resolver="slug"))
    html = pipeline.render("[[Main Page]]")
    assert 'href="/wiki/main_page"' in html
    assert ">Main Page</a>" in html


def test_build_pipeline_alias_divider():
    pipeline = build_pipeline(_settings(alias_divider="::"))
    assert ">shown</a>" in pipeline.render("[[Target::shown]]")


def test_build_pipeline_without_gfm():
    pipeline = build_pipeline(_settings(gfm=False))
    assert "<del>" not in pipeline.render("~~gone~~")
    assert "<del>gone</del>" in build_pipeline(_settings()).render("~~gone~~")


def test_build_pipeline_clean_raw_html():
    pipeline = build_pipeline(_settings(raw_html="clean"))
    html = pipeline.render("press <kbd onclick='x'>Ctrl</kbd> now")
    assert html == "<p>press <kbd>Ctrl</kbd> now</p>"


def test_clean_raw_html_keeps_inline_pairs_and_wikilinks():
    allow = dataclasses.replace(DEFAULT_ALLOW_LIST, raw_html="clean")
    assert render("a <b>bold</b> c", allow_list=allow) == "<p>a <b>bold</b> c</p>"
    assert render("<i>see [[Main Page]]</i>", allow_list=allow) == (
        '<p><i>see <a href="/wiki/Main_Page" class="wikilink">Main Page</a></i></p>'
    )


# ── Escapes and autolinks around wiki links ──────────────────────────────────

@pytest.mark.parametrize("md, expected", [
    (r"\[[A]]", "<p>[[A]]</p>"),
    (r"[[A\]]", "<p>[[A]]</p>"),
    (r"\[\[A\]\]", "<p>[[A]]</p>"),
])
def test_escaped_brackets_render_literally(md, expected):
    assert render(md) == expected


def test_escape_before_wikilink_keeps_the_link():
    assert render(r"\[[[A]]") == '<p>[<a href="/wiki/A" class="wikilink">A</a></p>'


def test_url_inside_wikilink_is_not_autolinked():
    assert render("[[https://example.com]]") == (
        '<p><a href="/wiki/https://example.com" class="wikilink">https://example.com</a></p>'
    )


def test_bare_url_still_autolinked_next_to_wikilink():
    html = render("[[A]] then https://example.com")
    assert '<a href="/wiki/A" class="wikilink">A</a>' in html
    assert '<a href="https://example.com">https://example.com</a>' in html


def test_wikilink_fragment():
    assert 'href="/wiki/Main_Page#History"' in render("[[Main Page#History|history]]")


def test_build_pipeline_on_resolve_sink():
    events = []
    build_pipeline(_settings(), on_resolve=events.append).render("[[A]]")
    assert [e.href for e in events] == ["/wiki/A"]


def test_pipeline_is_callable():
    pipeline = make_pipeline(ResolverConfig(href_template=wiki_href_template()))
    assert pipeline("[[A]]") == pipeline.render("[[A]]")


def test_pipeline_runs_extra_stages_in_order():
    class FirstBlockOnly:
        def transform(self, tree):
            return tree.with_children(tree.children[:1])

    base = make_pipeline(ResolverConfig(href_template=wiki_href_template()))
    pipeline = RenderPipeline(stages=base.stages + (FirstBlockOnly(),), compiler=base.compiler)
    assert pipeline.render("[[A]]\n\nsecond\n") == (
        '<p><a href="/wiki/A" class="wikilink">A</a></p>'
    )
