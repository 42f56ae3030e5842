"""
Macro subsystem exceptions.

Expansion-time failures derive from MacroError; failures raised while a
fully expanded expression is being evaluated derive from EvaluationError.
Nothing in the macro layer catches either family.
"""

from __future__ import annotations

from typing import Optional


class MacroError(Exception):
    """Base class for expansion-time failures."""


class MacroSyntaxError(MacroError):
    def __init__(self, message: str, position: Optional[int] = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class MacroDefinitionError(MacroError):
    """A definition is malformed or conflicts with the rest of the table."""


class UnknownMacro(MacroError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown macro: {name}")


class ArityMismatch(MacroError):
    def __init__(self, name: str, expected: int, got: int) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(
            f"Macro {name} takes {expected} argument{'s' if expected != 1 else ''}, got {got}"
        )


class ExpansionDepthExceeded(MacroError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Macro expansion exceeded depth limit ({limit})")


class ExpansionTooLarge(MacroError):
    def __init__(self, what: str, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Macro expansion exceeded {what} limit ({limit})")


class EvaluationError(Exception):
    """Base class for failures while evaluating an expanded expression."""


class DomainError(EvaluationError):
    """A host primitive was given an argument outside its domain."""


class UnboundVariable(EvaluationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unbound variable: {name}")
