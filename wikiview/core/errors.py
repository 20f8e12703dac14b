#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Exceptions raised by WikiView.

Markdown and wiki-link syntax problems are never errors: the render pipeline
degrades them to literal text.  Only misconfiguration and upstream fetch
failures reach the caller.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations


# -----------------------------------------------------------------------------

class WikiViewError(Exception):
    pass


# -----------------------------------------------------------------------------

class ConfigurationError(WikiViewError, ValueError):
    """Raised while building a render configuration, before any document is seen."""


# -----------------------------------------------------------------------------

class FetchError(WikiViewError):
    """The article API answered with a non-success status (or not at all)."""

    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


# -----------------------------------------------------------------------------
