"""
Hyperbolic macros
-----------------
COSH(X), SINH(X), TANH(X)    — from antiln(X) and antiln(-X)
ACOSH(X)                     — domain X >= 1
ASINH(X)                     — all reals
ATANH(X)                     — domain -1 < X < 1
"""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("ACOSH(X)", "ln(X + sqrt(X * X - 1))")
    registry.define("ASINH(X)", "ln(X + sqrt(X * X + 1))")
    registry.define("ATANH(X)", "ln((1 + X) / (1 - X)) / 2")
    registry.define("COSH(X)", "(antiln(X) + antiln(-X)) / 2")
    registry.define("SINH(X)", "(antiln(X) - antiln(-X)) / 2")
    registry.define("TANH(X)", "(antiln(X) - antiln(-X)) / (antiln(X) + antiln(-X))")
