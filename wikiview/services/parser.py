#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markdown parser
===============
Turns raw markdown into a document tree via mistune's AST mode.

mistune hands back a list of token dicts; this module folds them into
``Node`` values so later stages never see mistune's internals.  Adjacent
text tokens are merged: mistune emits ``[`` characters of failed link
attempts as separate tokens, which would otherwise split ``[[Target]]``
across several nodes.

Two inline rules are replaced so that ``[[...]]`` survives parsing intact:

* backslash escapes that produce a bracket become text nodes marked
  ``escaped`` and are never merged, so ``\\[[A]]`` stays literal;
* the GFM bare-URL autolinker leaves URLs inside an open ``[[`` alone, so
  ``[[https://example.com]]`` reaches the resolver as one text run.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import re
from functools import lru_cache
from typing import Any, Iterable

import mistune
from mistune.helpers import unescape_char
from mistune.plugins.url import parse_url_link

from wikiview.services.tree import Node


# GitHub-flavoured extensions, enabled together.
GFM_PLUGINS = ("table", "strikethrough", "task_lists", "url")


# -----------------------------------------------------------------------------
# Inline rule overrides
# -----------------------------------------------------------------------------

def _parse_escape(inline, m: re.Match, state) -> int:
    chars = unescape_char(m.group(0))
    if "[" not in chars and "]" not in chars:
        return inline.parse_escape(m, state)
    state.append_token({"type": "text", "raw": chars, "escaped": True, "_emphasis": False})
    return m.end()


def _open_wikilink_close(src: str, start: int) -> int | None:
    """Position of the ``]]`` closing a ``[[`` that is open at *start*, if any."""
    opener = src.rfind("[[", 0, start)
    if opener == -1 or src[opener - 1:opener] == "\\":
        return None
    if any(ch in src[opener + 2:start] for ch in "[]"):
        return None
    close = src.find("]]", start)
    if close == -1 or "[" in src[start:close]:
        return None
    return close


def _parse_url_link(inline, m: re.Match, state) -> int:
    close = _open_wikilink_close(state.src, m.start())
    if close is None:
        return parse_url_link(inline, m, state)
    inline.process_text(state.src[m.start():close], state)
    return close


# -----------------------------------------------------------------------------

@lru_cache(maxsize=2)
def _get_md_parser(gfm: bool) -> mistune.Markdown:
    md = mistune.create_markdown(
        renderer=None,
        plugins=list(GFM_PLUGINS) if gfm else [],
    )
    md.inline.register("escape", None, _parse_escape)
    if gfm:
        md.inline.register("url_link", None, _parse_url_link)
    return md


# -----------------------------------------------------------------------------

def parse(source: str | None, *, gfm: bool = True) -> Node:
    """Parse *source* into a ``root`` node.  Never raises on malformed markdown."""
    tokens, _state = _get_md_parser(gfm).parse(source or "")
    return Node("root", _convert_tokens(tokens))


# -----------------------------------------------------------------------------
# Token → Node conversion
# -----------------------------------------------------------------------------

# Token fields copied into Node.attrs besides mistune's own "attrs" dict.
_EXTRA_FIELDS = ("tight", "bullet", "style", "marker")


def _convert_tokens(tokens: Iterable[dict[str, Any]]) -> tuple[Node, ...]:
    nodes: list[Node] = []
    for token in tokens:
        node = _convert_token(token)
        if node is None:
            continue
        if _mergeable(node) and nodes and _mergeable(nodes[-1]):
            nodes[-1] = Node("text", value=(nodes[-1].value or "") + (node.value or ""))
        else:
            nodes.append(node)
    return tuple(nodes)


def _mergeable(node: Node) -> bool:
    return node.type == "text" and not node.attrs.get("escaped")


def _convert_token(token: dict[str, Any]) -> Node | None:
    ttype = token.get("type", "")
    if ttype == "blank_line":
        return None

    attrs = dict(token.get("attrs") or {})
    for key in _EXTRA_FIELDS:
        if key in token:
            attrs[key] = token[key]
    if isinstance(attrs.get("url"), str):
        attrs["url"] = html.unescape(attrs["url"])

    if ttype == "text":
        if token.get("escaped"):
            return Node("text", value=token.get("raw", ""), attrs={"escaped": True})
        return Node("text", value=html.unescape(token.get("raw", "")))

    if ttype == "codespan":
        # mistune escapes code spans while parsing; the serializer escapes again
        return Node(ttype, value=html.unescape(token.get("raw", "")), attrs=attrs)

    if ttype in ("block_code", "inline_html", "block_html"):
        return Node(ttype, value=token.get("raw", ""), attrs=attrs)

    children = token.get("children")
    if isinstance(children, list):
        return Node(ttype, _convert_tokens(children), attrs=attrs)

    # Leaf tokens without text: thematic_break, linebreak, softbreak, ...
    raw = token.get("raw")
    return Node(ttype, value=raw if isinstance(raw, str) else None, attrs=attrs)


# -----------------------------------------------------------------------------
