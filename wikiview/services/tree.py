#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Document tree
=============
The node model shared by every render stage.

The parser produces a markdown-oriented tree (``paragraph``, ``heading``,
``link``, ``text`` ...).  The HTML compiler converts it to an HTML-oriented
tree built from the same ``Node`` class, using the kinds ``root``,
``element`` (with ``tag``), ``text`` and ``raw``.

Nodes are frozen; stages build new trees instead of editing old ones.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Node:
    type: str
    children: tuple["Node", ...] = ()
    value: Optional[str] = None
    attrs: Mapping[str, Any] = field(default_factory=dict)
    tag: Optional[str] = None

    def with_children(self, children) -> "Node":
        return Node(self.type, tuple(children), self.value, self.attrs, self.tag)

    def walk(self) -> Iterator["Node"]:
        """Yield this node and every descendant, depth-first in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


# -----------------------------------------------------------------------------

def root(*children: Node) -> Node:
    return Node("root", tuple(children))


def text(value: str) -> Node:
    return Node("text", value=value)


def element(tag: str, attrs: Mapping[str, Any] | None = None, *children: Node) -> Node:
    return Node("element", tuple(children), attrs=dict(attrs or {}), tag=tag)


def raw(value: str) -> Node:
    return Node("raw", value=value)


def plain_text(node: Node) -> str:
    """Concatenate the text content below *node* (used for image alt text)."""
    if node.type in ("text", "codespan"):
        return node.value or ""
    return "".join(plain_text(c) for c in node.children)


# -----------------------------------------------------------------------------
