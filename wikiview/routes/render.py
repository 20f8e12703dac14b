#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoint: live preview for the editor.

GET /api/v1/render?content=...&gfm=true
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Depends, Query

from wikiview.core.http import get_pipeline
from wikiview.schemas import RenderResponse
from wikiview.services.renderer import RenderPipeline


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

@router.get("", response_model=RenderResponse)
async def render_preview(
    content:  str  = Query(default="", max_length=1_000_000),
    gfm:      bool | None = Query(default=None),
    pipeline: RenderPipeline = Depends(get_pipeline),
):
    """Return rendered HTML for a snippet of markdown, used by the live editor preview."""
    if gfm is not None and gfm != pipeline.gfm:
        pipeline = dataclasses.replace(pipeline, gfm=gfm)
    return RenderResponse(html=pipeline.render(content), gfm=pipeline.gfm)


# -----------------------------------------------------------------------------
