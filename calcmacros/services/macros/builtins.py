"""
Built-in macro registrations.
get_macro_table() builds the shared table once, on first use.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from calcmacros.core.config import Settings, get_settings

from .registry import MacroRegistry, MacroTable
from . import (
    macro_limits,
    macro_color,
    macro_numeral,
    macro_power,
    macro_hyperbolic,
    macro_constants,
)

logger = logging.getLogger(__name__)


def register_all_builtins(registry: MacroRegistry) -> None:
    """Register every built-in macro with *registry*."""
    macro_limits.register(registry)
    macro_color.register(registry)
    macro_numeral.register(registry)
    macro_power.register(registry)
    macro_hyperbolic.register(registry)
    macro_constants.register(registry)


def build_macro_table(settings: Optional[Settings] = None) -> MacroTable:
    """Built-ins plus the optional definitions file, validated and frozen."""
    settings = settings or get_settings()
    registry = MacroRegistry(host_functions=settings.host_functions)
    register_all_builtins(registry)

    path = settings.definitions_path
    if path is not None:
        if path.is_file():
            registry.load(path.read_text(encoding="utf-8"), source=str(path))
        else:
            logger.warning("Macro definitions file not found: %s", path)

    return registry.freeze()


@lru_cache
def get_macro_table() -> MacroTable:
    return build_macro_table()
