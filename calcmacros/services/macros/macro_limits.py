"""
Limit macros
------------
MIN(A, B)                 — B when A > B, else A (ties resolve to A)
MAX(A, B)                 — B when A < B, else A (ties resolve to A)
POSITIVE_CLAMP(VALUE)     — VALUE when strictly positive, else 0
NEGATIVE_CLAMP(VALUE)     — VALUE when strictly negative, else 0
CLAMP(VALUE, MIN, MAX)    — 0 when VALUE <= MIN, otherwise VALUE capped at MAX

Branches are written as a comparison multiplied into the result, since the
host evaluates (A > B) to 1 or 0.

CLAMP returns 0, not MIN, at or below the lower bound.
"""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("MIN(A, B)", "A - (A - B) * (A > B)")
    registry.define("MAX(A, B)", "A + (B - A) * (A < B)")
    registry.define("POSITIVE_CLAMP(VALUE)", "(VALUE > 0) * VALUE")
    registry.define("NEGATIVE_CLAMP(VALUE)", "(VALUE < 0) * VALUE")
    registry.define(
        "CLAMP(VALUE, MIN, MAX)",
        "(VALUE > MIN) * (MAX + (VALUE - MAX) * (VALUE < MAX))",
    )
