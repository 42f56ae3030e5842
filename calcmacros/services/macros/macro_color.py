"""
Color macros
------------
RGB(R, G, B)        — R*65536 + G*256 + B
RGBA(R, G, B, A)    — RGB packing with alpha in the next byte up
GAMMA(VALUE)        — gamma decode, VALUE ** (1 / 2.2)

Channels are expected in 0..255; nothing is clamped.
"""

from __future__ import annotations

from .registry import MacroRegistry


def register(registry: MacroRegistry) -> None:
    registry.define("RGB(R, G, B)", "R * 65536 + G * 256 + B")
    registry.define("RGBA(R, G, B, A)", "A * 16777216 + R * 65536 + G * 256 + B")
    registry.define("GAMMA(VALUE)", "antiln(ln(VALUE) / 2.2)")
