"""
Numeral macros
--------------
HEX("FF")     — 255
BIN("1010")   — 10

The digits are joined onto a base prefix and the host coerces the result
to a number by adding 0.
"""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("HEX(VALUE)", '("0x" & VALUE) + 0')
    registry.define("BIN(VALUE)", '("0b" & VALUE) + 0')
