#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from wikiview._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "WikiView"
    app_version: str = _pkg_version
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Article API (source text) ──────────────────────────────────────────

    article_api_url: str = "http://localhost:8000/api/article"
    request_timeout: float = 10.0

    # ── Wiki links ─────────────────────────────────────────────────────────

    wiki_base_path: str = "/wiki"
    alias_divider: str = "|"
    href_space_replacement: str = "_"     # empty string keeps spaces intact
    href_space_pattern: str = " "         # regex, e.g. "\\s+"
    page_resolver: Literal["none", "slug"] = "none"

    # ── Markdown / HTML ────────────────────────────────────────────────────

    gfm: bool = True
    raw_html: Literal["strip", "clean"] = "strip"
    highlight_code: bool = False

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:5173",
    ]

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
