"""
Definition directive parser
===========================
Parses the persisted form of macro definitions.

Supported forms
---------------
  %define NAME(P1, P2) template    → ("NAME", ("P1", "P2"), "template")
  %define NAME() template          → ("NAME", (), "template")
  %define NAME template            → ("NAME", (), "template")
  # comment / blank line           → skipped

The parameter list must follow the name with no whitespace in between,
otherwise ``%define X (A + 1)`` would be ambiguous.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .errors import MacroDefinitionError

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

# NAME or NAME(P1, P2, ...)
_SIGNATURE = re.compile(r"^\s*(" + _IDENT + r")(?:\(([^()]*)\))?\s*$")
# %define <signature> <template>
_DEFINE = re.compile(r"^%define\s+(" + _IDENT + r"(?:\([^()]*\))?)\s+(\S.*?)\s*$")
_PARAM = re.compile(r"^" + _IDENT + r"$")


class Directive(NamedTuple):
    name: str
    parameters: tuple[str, ...]
    template: str
    line: int


def parse_signature(signature: str) -> tuple[str, tuple[str, ...]]:
    """
    Split ``"NAME(A, B)"`` into ``("NAME", ("A", "B"))``.

    Raises MacroDefinitionError on a malformed signature or a parameter
    that is not an identifier.
    """
    m = _SIGNATURE.match(signature)
    if m is None:
        raise MacroDefinitionError(f"Malformed macro signature: {signature!r}")

    name, raw = m.group(1), m.group(2)
    if raw is None or not raw.strip():
        return name, ()

    params = tuple(p.strip() for p in raw.split(","))
    for p in params:
        if not _PARAM.match(p):
            raise MacroDefinitionError(f"Invalid parameter {p!r} in {signature!r}")
    return name, params


def parse_directives(text: str) -> list[Directive]:
    """Parse every ``%define`` line in *text*, in order."""
    directives: list[Directive] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        m = _DEFINE.match(stripped)
        if m is None:
            raise MacroDefinitionError(f"line {lineno}: expected '%define NAME(...) template'")

        name, params = parse_signature(m.group(1))
        directives.append(Directive(name, params, m.group(2), lineno))
    return directives
