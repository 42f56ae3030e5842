#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Test fixtures
=============
The macro table is pure data, so fixtures only build engines over it and an
HTTP client over the ASGI app.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from httpx import ASGITransport, AsyncClient

# ── Env vars must be set before importing app modules ────────────────────────
os.environ.setdefault("ENVIRONMENT", "testing")

from calcmacros.main import create_app
from calcmacros.services.macros import MacroEngine, MacroRegistry, get_macro_table


# ── Shared engine over the built-in table ────────────────────────────────────
@pytest.fixture(scope="session")
def engine() -> MacroEngine:
    return MacroEngine(table=get_macro_table(), max_depth=32)


# ── Empty registry for building custom tables ────────────────────────────────
@pytest.fixture
def registry() -> MacroRegistry:
    return MacroRegistry()


# ── HTTP client over the app ─────────────────────────────────────────────────
@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c


# -----------------------------------------------------------------------------
