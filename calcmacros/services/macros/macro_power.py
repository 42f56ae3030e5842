"""
Power macros
------------
POW(BASE, EXP)   — BASE ** EXP as antiln(ln(BASE) * EXP); BASE must be > 0
"""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("POW(BASE, EXP)", "antiln(ln(BASE) * EXP)")
