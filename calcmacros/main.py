#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------

"""
CalcMacros — FastAPI Application
================================
Entry point.  Start with:
    uvicorn calcmacros.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calcmacros.core.config import get_settings
from calcmacros.routes import macros
from calcmacros.services.macros import get_macro_table

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup / shutdown."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    # Build the table up front so a bad definitions file fails at startup.
    table = get_macro_table()
    logger.info("Serving %d macros (%s)", len(table), settings.environment)
    yield


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.app_version,
        description="Formula macros for calculator expressions",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────
    API = "/api/v1"
    app.include_router(macros.router, prefix=API)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/api/docs",
        }

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
