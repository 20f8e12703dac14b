#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
WikiLink resolution
===================
Rewrites ``[[Page Title]]`` and ``[[Page Title|Display Text]]`` occurrences
found in the text nodes of a document tree into ordinary ``link`` nodes.

For each occurrence:

  - the bracket content is split on the first alias divider
    (target | alias);
  - the label is the alias when given, otherwise the target as written;
  - the permalink is the first candidate of ``page_resolver(target)``, or the
    target itself when no page resolver is configured;
  - the href is ``href_template(permalink)``.

Brackets that do not form a well-formed, non-empty link stay literal text.
Text inside existing links, images and code is left alone, as are brackets
written with a backslash escape.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence
from urllib.parse import quote

from wikiview.core.errors import ConfigurationError
from wikiview.services.tree import Node


log = logging.getLogger(__name__)

HrefTemplate = Callable[[str], str]
PageResolver = Callable[[str], Iterable[str]]

# Leftmost, non-greedy, no brackets inside: "[[A[[B]]" matches only "[[B]]".
_WIKILINK_RE = re.compile(r"\[\[([^\[\]]*)\]\]")

# Subtrees whose text is never scanned for wiki links.
_OPAQUE_TYPES = frozenset({"link", "image", "codespan", "block_code", "inline_html", "block_html"})


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class WikiLink:
    target: str
    alias: Optional[str] = None

    @property
    def label(self) -> str:
        return self.alias or self.target


@dataclass(frozen=True)
class ResolutionEvent:
    target: str
    alias: Optional[str]
    permalink: str
    href: str


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolverConfig:
    href_template: Optional[HrefTemplate] = None
    alias_divider: str = "|"
    page_resolver: Optional[PageResolver] = None
    on_resolve: Optional[Callable[[ResolutionEvent], None]] = None

    def __post_init__(self) -> None:
        if self.href_template is None:
            raise ConfigurationError("href_template is required")
        if not callable(self.href_template):
            raise ConfigurationError("href_template must be callable")
        if not self.alias_divider:
            raise ConfigurationError("alias_divider must be a non-empty string")
        if self.page_resolver is not None and not callable(self.page_resolver):
            raise ConfigurationError("page_resolver must be callable")


# -----------------------------------------------------------------------------
# Helpers for building configurations
# -----------------------------------------------------------------------------

# Characters left readable in generated page paths and fragments.
_PATH_SAFE = "/_-.~:()"


def wiki_href_template(
    base_path: str = "/wiki",
    space_replacement: Optional[str] = "_",
    space_pattern: str = " ",
) -> HrefTemplate:
    """
    Build an href template of the form ``{base_path}/{permalink}``.

    space_replacement : text substituted for every match of *space_pattern*
                        in the permalink; ``None`` keeps spaces intact
    space_pattern     : regular expression for the whitespace to replace,
                        e.g. ``" "`` or ``r"\\s+"``

    The permalink is percent-encoded, so kept spaces come out as ``%20``.
    The first ``#`` starts a fragment: ``Page#History`` links to
    ``{base_path}/Page#History``.
    """
    base = base_path.rstrip("/")
    pattern = re.compile(space_pattern)

    def _template(permalink: str) -> str:
        if space_replacement is not None:
            permalink = pattern.sub(space_replacement, permalink)
        page, hash_mark, fragment = permalink.partition("#")
        return f"{base}/{quote(page, safe=_PATH_SAFE)}{hash_mark}{quote(fragment, safe=_PATH_SAFE)}"

    return _template


def slug_page_resolver(name: str) -> list[str]:
    """Single candidate: spaces become underscores, everything lower-cased."""
    return [name.replace(" ", "_").lower()]


# -----------------------------------------------------------------------------
# Occurrence handling
# -----------------------------------------------------------------------------

def parse_wikilink(content: str, alias_divider: str = "|") -> Optional[WikiLink]:
    """Split bracket content into target and alias.  ``None`` for empty targets."""
    target, divider, alias = content.partition(alias_divider)
    if not target.strip():
        return None
    return WikiLink(target=target, alias=alias if divider else None)


def _permalink_for(target: str, config: ResolverConfig) -> str:
    if config.page_resolver is None:
        return target
    for candidate in config.page_resolver(target):
        return candidate
    return target


def _link_node(link: WikiLink, config: ResolverConfig) -> Node:
    permalink = _permalink_for(link.target, config)
    href = config.href_template(permalink)
    log.debug("wikilink %r → %s", link.target, href)
    if config.on_resolve is not None:
        config.on_resolve(ResolutionEvent(link.target, link.alias, permalink, href))
    return Node(
        "link",
        (Node("text", value=link.label),),
        attrs={"url": href, "title": None, "wikilink": True},
    )


def split_text(value: str, config: ResolverConfig) -> list[Node]:
    """Return the nodes replacing a text node holding *value*."""
    nodes: list[Node] = []
    pending = ""
    pos = 0
    for m in _WIKILINK_RE.finditer(value):
        link = parse_wikilink(m.group(1), config.alias_divider)
        if link is None:
            continue
        pending += value[pos:m.start()]
        if pending:
            nodes.append(Node("text", value=pending))
            pending = ""
        nodes.append(_link_node(link, config))
        pos = m.end()
    pending += value[pos:]
    if pending or not nodes:
        nodes.append(Node("text", value=pending))
    return nodes


# -----------------------------------------------------------------------------
# Tree walk
# -----------------------------------------------------------------------------

def _resolve_children(children: Sequence[Node], config: ResolverConfig) -> tuple[Node, ...]:
    out: list[Node] = []
    for child in children:
        if child.type == "text" and child.value and "[[" in child.value and not child.attrs.get("escaped"):
            out.extend(split_text(child.value, config))
        elif child.type in _OPAQUE_TYPES or not child.children:
            out.append(child)
        else:
            out.append(child.with_children(_resolve_children(child.children, config)))
    return tuple(out)


def resolve(tree: Node, config: ResolverConfig) -> Node:
    """Return a new tree with every wiki link in *tree* replaced by a link node."""
    return tree.with_children(_resolve_children(tree.children, config))


# -----------------------------------------------------------------------------

class WikiLinkResolver:
    """Pipeline stage wrapping :func:`resolve` with a fixed configuration."""

    def __init__(self, config: ResolverConfig) -> None:
        self.config = config

    def transform(self, tree: Node) -> Node:
        return resolve(tree, self.config)


# -----------------------------------------------------------------------------
