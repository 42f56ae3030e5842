"""
MacroEngine
===========
The expansion contract.  expand() replaces one macro call with its
template, formal parameters substituted structurally by the argument
trees.  expand_text() / expand_expr() rewrite every macro call in a whole
user expression.

Arguments are inlined, not pre-evaluated: an argument used twice in a
template (A in MIN, X in the hyperbolic family) is evaluated twice by the
host.

Expansion is recursive: a template may call other macros.  Limits on
macro nesting depth, expanded node count and expanded tree height turn
runaway input into an error instead of a stack overflow or a stall.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence, Union

from calcmacros.core.config import get_settings

from .builtins import get_macro_table
from .errors import ExpansionDepthExceeded, ExpansionTooLarge
from .expr import (
    Call,
    Expr,
    Name,
    as_expr,
    children,
    parse,
    render,
    replace_children,
    substitute,
    walk,
)
from .registry import MacroTable

logger = logging.getLogger(__name__)

Argument = Union[Expr, str, int, float]


class MacroEngine:
    """
    Expand macros against a MacroTable.

    Usage::

        engine = MacroEngine()
        engine.expand_text("MAX(a, 0) * PI")
        # -> '(a + (0 - a) * (a < 0)) * 3.141592653589793'
    """

    def __init__(
        self,
        table: Optional[MacroTable] = None,
        max_depth: Optional[int] = None,
        max_size: Optional[int] = None,
        max_height: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._table = table if table is not None else get_macro_table()
        self._max_depth = max_depth if max_depth is not None else settings.max_expansion_depth
        self._max_size = max_size if max_size is not None else settings.max_expansion_size
        self._max_height = max_height if max_height is not None else settings.max_expansion_height

    @property
    def table(self) -> MacroTable:
        return self._table

    # ----------------------------------------------------------------- public

    def expand(self, name: str, args: Sequence[Argument] = ()) -> Expr:
        """
        Substitute *args* into the template of macro *name*.

        Raises UnknownMacro if *name* is not in the table and ArityMismatch
        if the argument count differs from its declared arity.  Macros
        called inside the template are left as calls.
        """
        arg_exprs = [as_expr(a) for a in args]
        definition = self._table.lookup(name, len(arg_exprs))
        logger.debug("Expanding %s with %d argument(s)", name, len(arg_exprs))
        return substitute(definition.template, dict(zip(definition.parameters, arg_exprs)))

    def expand_expr(self, expr: Expr) -> Expr:
        """Return *expr* with every macro call and constant fully expanded."""
        expanded, _, _ = self._expand(expr, 0, frozenset())
        return expanded

    def expand_text(self, text: str) -> str:
        """Parse *text*, expand every macro in it and render the result."""
        return render(self.expand_expr(parse(text)))

    # ----------------------------------------------------------------- private

    def _check(self, size: int, height: int) -> None:
        if size > self._max_size:
            raise ExpansionTooLarge("size", self._max_size)
        if height > self._max_height:
            raise ExpansionTooLarge("height", self._max_height)

    def _expand(self, expr: Expr, depth: int, bound: frozenset) -> tuple[Expr, int, int]:
        """
        Expand *expr*, returning ``(tree, node count, height)``.

        *bound* holds the parameter names of the template being expanded;
        they are placeholders, never constants or host variables.  Sizes are
        checked before a substitution is built, so an expansion that would
        blow up fails without materialising it.
        """
        if depth > self._max_depth:
            raise ExpansionDepthExceeded(self._max_depth)

        if isinstance(expr, Name):
            if expr.id not in bound:
                definition = self._table.get(expr.id)
                if definition is not None and definition.arity == 0:
                    return self._expand(definition.template, depth + 1, frozenset())
            return expr, 1, 1   # parameter or host variable

        if isinstance(expr, Call):
            args = [self._expand(a, depth, bound) for a in expr.args]
            if self._table.is_host_function(expr.func):
                size = 1 + sum(s for _, s, _ in args)
                height = 1 + max((h for _, _, h in args), default=0)
                self._check(size, height)
                return Call(expr.func, tuple(a for a, _, _ in args)), size, height
            return self._apply(expr.func, args, depth)

        kids = [self._expand(child, depth, bound) for child in children(expr)]
        size = 1 + sum(s for _, s, _ in kids)
        height = 1 + max((h for _, _, h in kids), default=0)
        self._check(size, height)
        return replace_children(expr, [k for k, _, _ in kids]), size, height

    def _apply(
        self, name: str, args: list[tuple[Expr, int, int]], depth: int
    ) -> tuple[Expr, int, int]:
        """Expand macro *name*'s template, then substitute the expanded *args*."""
        definition = self._table.lookup(name, len(args))
        body, size, height = self._expand(
            definition.template, depth + 1, frozenset(definition.parameters)
        )

        uses = Counter(n.id for n in walk(body) if isinstance(n, Name))
        arg_height = 0
        for param, (_, arg_size, h) in zip(definition.parameters, args):
            size += uses[param] * (arg_size - 1)
            if uses[param]:
                arg_height = max(arg_height, h)
        height = max(height, height - 1 + arg_height)
        self._check(size, height)

        logger.debug("Expanded %s: %d nodes", name, size)
        bindings = {p: a for p, (a, _, _) in zip(definition.parameters, args)}
        return substitute(body, bindings), size, height
