"""Zero-arity constants, usable bare (PI) or called (PI())."""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("PI", "3.141592653589793")
    registry.define("E", "2.718281828459045")
