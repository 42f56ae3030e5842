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
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "CalcMacros"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Macro expansion ────────────────────────────────────────────────────

    max_expansion_depth: int = 32       # macro-within-macro nesting
    max_expansion_size: int = 10_000    # nodes in one expanded expression
    max_expansion_height: int = 200     # levels in one expanded expression
    # Calls that pass through expansion untouched.  The reference evaluator
    # only implements ln, antiln and sqrt; anything else added here is for
    # hosts that supply their own.
    host_functions: list[str] = ["ln", "antiln", "sqrt"]
    definitions_path: Optional[Path] = None   # extra %define file loaded after the built-ins

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
