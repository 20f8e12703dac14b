from wikiview.schemas.schemas import (
    ArticlePage,
    RenderResponse,
    ErrorResponse,
)

__all__ = [
    "ArticlePage",
    "RenderResponse",
    "ErrorResponse",
]
