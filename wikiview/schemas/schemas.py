#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for API responses.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


# -----------------------------------------------------------------------------

class ArticlePage(BaseModel):
    slug: Optional[str] = None
    title: Optional[str] = None
    html: str


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str
    gfm: bool


# -----------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    detail: str


# -----------------------------------------------------------------------------
