"""
Macro subsystem — public API.
"""

from .errors import (
    ArityMismatch,
    DomainError,
    EvaluationError,
    ExpansionDepthExceeded,
    ExpansionTooLarge,
    MacroDefinitionError,
    MacroError,
    MacroSyntaxError,
    UnboundVariable,
    UnknownMacro,
)
from .expr import parse, render
from .registry import MacroDefinition, MacroRegistry, MacroTable
from .builtins import build_macro_table, get_macro_table, register_all_builtins
from .engine import MacroEngine
from .evaluator import evaluate, evaluate_text


def expand(name: str, args=()):
    """Expand one call of macro *name* against the shared table."""
    return MacroEngine().expand(name, args)


__all__ = [
    "ArityMismatch",
    "DomainError",
    "EvaluationError",
    "ExpansionDepthExceeded",
    "ExpansionTooLarge",
    "MacroDefinition",
    "MacroDefinitionError",
    "MacroEngine",
    "MacroError",
    "MacroRegistry",
    "MacroSyntaxError",
    "MacroTable",
    "UnboundVariable",
    "UnknownMacro",
    "build_macro_table",
    "evaluate",
    "evaluate_text",
    "expand",
    "get_macro_table",
    "parse",
    "register_all_builtins",
    "render",
]
