#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML compiler
=============
Document tree → HTML string, in three steps that always run in order:

  1. convert   : markdown-oriented tree → HTML-oriented tree
  2. sanitize  : drop everything not on the allow-list
  3. serialize : sanitized HTML tree → string

``serialize`` only accepts the ``SanitizedTree`` that ``sanitize`` returns,
so no caller can write out a tree that skipped the allow-list.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional
from urllib.parse import urlsplit

import nh3

from wikiview.services.tree import Node, element, plain_text, raw, root, text


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Allow-list
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AllowList:
    tags: frozenset[str]
    attributes: Mapping[str, frozenset[str]]
    url_attributes: frozenset[str] = frozenset({"href", "src", "cite"})
    url_schemes: frozenset[str] = frozenset({"http", "https", "mailto"})
    drop_content_tags: frozenset[str] = frozenset(
        {"script", "style", "iframe", "object", "embed", "template", "textarea", "noscript", "title"}
    )
    raw_html: Literal["strip", "clean"] = "strip"

    def allowed_attributes(self, tag: str) -> frozenset[str]:
        return self.attributes.get(tag, frozenset()) | self.attributes.get("*", frozenset())

    def url_allowed(self, url: str) -> bool:
        # Control characters and whitespace are ignored by browsers inside a scheme.
        compact = "".join(ch for ch in url if ch > " ")
        try:
            scheme = urlsplit(compact).scheme
        except ValueError:
            return False
        return not scheme or scheme.lower() in self.url_schemes

    def nh3_attributes(self) -> dict[str, set[str]]:
        return {
            tag: set(self.allowed_attributes(tag))
            for tag in self.tags
            if self.allowed_attributes(tag)
        }


DEFAULT_ALLOW_LIST = AllowList(
    tags=frozenset({
        "h1", "h2", "h3", "h4", "h5", "h6",
        "p", "a", "ul", "ol", "li",
        "code", "pre", "blockquote",
        "em", "strong", "del", "b", "i", "s", "kbd", "sup", "sub",
        "table", "thead", "tbody", "tr", "th", "td",
        "br", "hr", "img", "span", "div", "input",
        "dl", "dt", "dd",
    }),
    attributes={
        "a": frozenset({"href", "title", "class"}),
        "img": frozenset({"src", "alt", "title"}),
        "input": frozenset({"type", "checked", "disabled"}),
        "ol": frozenset({"start"}),
        "li": frozenset({"class"}),
        "span": frozenset({"class"}),
        "code": frozenset({"class"}),
        "div": frozenset({"class"}),
        "th": frozenset({"align"}),
        "td": frozenset({"align"}),
    },
)


# -----------------------------------------------------------------------------
# Step 1: structural conversion
# -----------------------------------------------------------------------------

_SIMPLE_TAGS = {
    "paragraph":    "p",
    "emphasis":     "em",
    "strong":       "strong",
    "strikethrough": "del",
    "block_quote":  "blockquote",
    "table":        "table",
    "table_body":   "tbody",
    "table_row":    "tr",
}

# Containers whose children are laid out one block per line.
_BLOCK_CONTAINERS = frozenset({"blockquote", "ul", "ol", "table", "thead", "tbody", "tr"})


def _highlight_nodes(code: str, lang: str) -> Optional[list[Node]]:
    """Tokenize *code* with Pygments into ``span`` nodes; ``None`` on unknown language."""
    from pygments import lex
    from pygments.lexers import get_lexer_by_name
    from pygments.token import STANDARD_TYPES
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        return None
    nodes: list[Node] = []
    for ttype, value in lex(code, lexer):
        css = STANDARD_TYPES.get(ttype)
        while css is None and ttype.parent is not None:
            ttype = ttype.parent
            css = STANDARD_TYPES.get(ttype)
        if css:
            nodes.append(element("span", {"class": css}, text(value)))
        else:
            nodes.append(text(value))
    return nodes


def _block_lines(children: list[Node]) -> list[Node]:
    if not children:
        return children
    out: list[Node] = [text("\n")]
    for child in children:
        out.append(child)
        out.append(text("\n"))
    return out


class _Converter:

    def __init__(self, highlight: bool = False) -> None:
        self.highlight = highlight

    def convert(self, node: Node) -> Node:
        blocks = [self.node(c) for c in node.children]
        blocks = [b for b in blocks if b is not None]
        out: list[Node] = []
        for i, b in enumerate(blocks):
            if i:
                out.append(text("\n"))
            out.append(b)
        return root(*out)

    def children(self, node: Node) -> list[Node]:
        out = [self.node(c) for c in node.children]
        return [c for c in out if c is not None]

    def node(self, node: Node) -> Optional[Node]:
        ntype = node.type
        attrs = node.attrs

        if ntype == "text":
            return text(node.value or "")
        if ntype == "softbreak":
            return text("\n")
        if ntype == "linebreak":
            return element("br")
        if ntype == "thematic_break":
            return element("hr")
        if ntype in ("inline_html", "block_html"):
            return raw(node.value or "")
        if ntype == "codespan":
            return element("code", None, text(node.value or ""))
        if ntype == "block_code":
            return self.block_code(node)
        if ntype == "heading":
            level = min(max(int(attrs.get("level", 1)), 1), 6)
            return element(f"h{level}", None, *self.children(node))
        if ntype == "link":
            props = {"href": attrs.get("url") or ""}
            if attrs.get("title"):
                props["title"] = attrs["title"]
            if attrs.get("wikilink"):
                props["class"] = "wikilink"
            return element("a", props, *self.children(node))
        if ntype == "image":
            props = {"src": attrs.get("url") or "", "alt": plain_text(node)}
            if attrs.get("title"):
                props["title"] = attrs["title"]
            return element("img", props)
        if ntype == "list":
            return self.list_node(node)
        if ntype in ("list_item", "task_list_item"):
            return self.list_item(node)
        if ntype == "block_text":
            # tight list item content: inline children without a <p>
            return Node("root", tuple(self.children(node)))
        if ntype == "table_cell":
            tag = "th" if attrs.get("head") else "td"
            props = {"align": attrs["align"]} if attrs.get("align") else {}
            return element(tag, props, *self.children(node))
        if ntype == "table_head":
            # mistune puts header cells straight under table_head
            row = element("tr", None, *_block_lines(self.children(node)))
            return element("thead", None, *_block_lines([row]))
        if ntype in _SIMPLE_TAGS:
            tag = _SIMPLE_TAGS[ntype]
            kids = self.children(node)
            if tag in _BLOCK_CONTAINERS:
                kids = _block_lines(kids)
            return element(tag, None, *kids)

        # Unknown token kinds keep their content, or their text when they are leaves.
        if node.children:
            return Node("root", tuple(self.children(node)))
        if node.value:
            return text(node.value)
        return None

    def block_code(self, node: Node) -> Node:
        code = node.value or ""
        info = (node.attrs.get("info") or "").strip()
        lang = info.split()[0] if info else ""
        props = {"class": f"language-{lang}"} if lang else {}
        body: Optional[list[Node]] = None
        if lang and self.highlight:
            body = _highlight_nodes(code, lang)
        if body is None:
            body = [text(code)]
        return element("pre", None, element("code", props, *body))

    def list_node(self, node: Node) -> Node:
        ordered = bool(node.attrs.get("ordered"))
        props = {}
        start = node.attrs.get("start")
        if ordered and start is not None and int(start) != 1:
            props["start"] = str(start)
        return element("ol" if ordered else "ul", props, *_block_lines(self.children(node)))

    def list_item(self, node: Node) -> Node:
        kids = self.children(node)
        props = {}
        if node.type == "task_list_item":
            props["class"] = "task-list-item"
            checkbox = {"type": "checkbox", "disabled": ""}
            if node.attrs.get("checked"):
                checkbox["checked"] = ""
            kids = [element("input", checkbox), text(" ")] + kids
        if any(c.type == "paragraph" for c in node.children):
            kids = _block_lines(kids)
        return element("li", props, *kids)


def convert(tree: Node, *, highlight: bool = False) -> Node:
    """Map a markdown document tree onto an HTML tree."""
    return _Converter(highlight).convert(tree)


# -----------------------------------------------------------------------------
# Step 2: sanitization
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SanitizedTree:
    root: Node
    allow_list: AllowList = field(repr=False)


def _clean_attrs(tag: str, attrs: Mapping[str, object], allow: AllowList) -> dict[str, str]:
    allowed = allow.allowed_attributes(tag)
    clean: dict[str, str] = {}
    for name, value in attrs.items():
        name = name.lower()
        if name.startswith("on") or name not in allowed or value is None:
            continue
        value = str(value)
        if name in allow.url_attributes and not allow.url_allowed(value):
            log.debug("sanitizer dropped %s=%r on <%s>", name, value, tag)
            continue
        clean[name] = value
    if tag == "input" and clean.get("type") != "checkbox":
        return {}
    return clean


def _clean_html(fragment: str, allow: AllowList) -> str:
    return nh3.clean(
        fragment,
        tags=set(allow.tags),
        clean_content_tags=set(allow.drop_content_tags - allow.tags),
        attributes=allow.nh3_attributes(),
        url_schemes=set(allow.url_schemes),
        link_rel=None,
    )


def _sanitize_nodes(nodes, allow: AllowList) -> list[Node]:
    out = _filter_nodes(nodes, allow)
    if not any(node.type == "raw" for node in out):
        return out
    # Inline HTML arrives one tag per node (``<b>``, text, ``</b>``), so the
    # whole sibling run is cleaned as a single fragment.
    fragment: list[str] = []
    for node in out:
        _write(node, fragment)
    cleaned = _clean_html("".join(fragment), allow)
    return [raw(cleaned)] if cleaned else []


def _filter_nodes(nodes, allow: AllowList) -> list[Node]:
    out: list[Node] = []
    for node in nodes:
        if node.type == "text":
            out.append(node)
        elif node.type == "raw":
            if allow.raw_html == "clean" and node.value:
                out.append(node)
        elif node.type == "root":
            out.extend(_filter_nodes(node.children, allow))
        elif node.type == "element":
            tag = (node.tag or "").lower()
            if tag in allow.drop_content_tags:
                continue
            kids = _sanitize_nodes(node.children, allow)
            if tag in allow.tags:
                out.append(Node("element", tuple(kids), attrs=_clean_attrs(tag, node.attrs, allow), tag=tag))
            else:
                out.extend(kids)
        # anything else is not part of the HTML tree model and is dropped
    return out


def sanitize(tree: Node, allow_list: AllowList = DEFAULT_ALLOW_LIST) -> SanitizedTree:
    """Filter *tree* against *allow_list*.  Disallowed content is removed, never reported."""
    return SanitizedTree(root(*_sanitize_nodes(tree.children, allow_list)), allow_list)


# -----------------------------------------------------------------------------
# Step 3: serialization
# -----------------------------------------------------------------------------

VOID_TAGS = frozenset({"br", "hr", "img", "input"})


def _write(node: Node, out: list[str]) -> None:
    if node.type == "text":
        out.append(html.escape(node.value or "", quote=False))
    elif node.type == "raw":
        out.append(node.value or "")
    elif node.type == "root":
        for child in node.children:
            _write(child, out)
    elif node.type == "element":
        out.append(f"<{node.tag}")
        for name, value in node.attrs.items():
            if value == "":
                out.append(f" {name}")
            else:
                out.append(f' {name}="{html.escape(value, quote=True)}"')
        out.append(">")
        if node.tag in VOID_TAGS:
            return
        for child in node.children:
            _write(child, out)
        out.append(f"</{node.tag}>")


def serialize(tree: SanitizedTree) -> str:
    if not isinstance(tree, SanitizedTree):
        raise TypeError("serialize() only accepts the output of sanitize()")
    out: list[str] = []
    _write(tree.root, out)
    return "".join(out)


# -----------------------------------------------------------------------------

class HtmlCompiler:
    """convert → sanitize → serialize, with the allow-list injected once."""

    def __init__(self, allow_list: AllowList = DEFAULT_ALLOW_LIST, highlight: bool = False) -> None:
        self.allow_list = allow_list
        self.highlight = highlight

    def compile(self, tree: Node) -> str:
        html_tree = convert(tree, highlight=self.highlight)
        return serialize(sanitize(html_tree, self.allow_list))


def compile(tree: Node, allow_list: AllowList = DEFAULT_ALLOW_LIST) -> str:
    return HtmlCompiler(allow_list).compile(tree)


# -----------------------------------------------------------------------------
