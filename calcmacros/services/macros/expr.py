"""
Expression trees
================
Structural representation of host expressions.  Macro templates and the
arguments supplied at a call site are both held as trees, so substituting
one into the other never changes operator precedence.

Grammar (lowest to highest precedence, all binary operators left-assoc):

    comparison := concat   ( ('>' | '<' | '>=' | '<=' | '==' | '!=') concat )*
    concat     := additive ( '&' additive )*
    additive   := term     ( ('+' | '-') term )*
    term       := unary    ( ('*' | '/') unary )*
    unary      := ('-' | '+') unary | atom
    atom       := NUMBER | STRING | NAME [ '(' [comparison (',' comparison)*] ')' ]
                | '(' comparison ')'

A comparison is its own node type: the host evaluates it to the number 1
or 0, which is what lets templates such as ``(A>B) * X`` act as branches.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Union

from .errors import MacroSyntaxError

# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Number:
    value: Union[int, float]


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class Name:
    id: str


@dataclass(frozen=True)
class Call:
    func: str
    args: tuple = ()


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Expr"


@dataclass(frozen=True)
class BinOp:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Compare:
    op: str
    left: "Expr"
    right: "Expr"


Expr = Union[Number, String, Name, Call, Unary, BinOp, Compare]

COMPARE_OPS = (">=", "<=", "==", "!=", ">", "<")

_PREC_COMPARE = 1
_PREC_CONCAT = 2
_PREC_ADD = 3
_PREC_MUL = 4
_PREC_UNARY = 5
_PREC_ATOM = 6

_BINARY_PREC = {"&": _PREC_CONCAT, "+": _PREC_ADD, "-": _PREC_ADD, "*": _PREC_MUL, "/": _PREC_MUL}

# Parentheses, calls and prefix operators; keeps the parser well inside the
# interpreter recursion limit.
MAX_NESTING = 64
# Tallest tree parse() accepts; rendering and evaluation recurse once per level.
MAX_HEIGHT = 200

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------
_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
    | (?P<string>"[^"]*"|'[^']*')
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<op>>=|<=|==|!=|[-+*/&<>(),])
    """,
    re.VERBOSE,
)

_EOF = "eof"


def _tokenize(text: str) -> list[tuple[str, str, int]]:
    tokens: list[tuple[str, str, int]] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise MacroSyntaxError(f"Unexpected character {text[pos]!r}", pos)
        kind = m.lastgroup
        if kind != "ws":
            tokens.append((kind, m.group(), pos))
        pos = m.end()
    tokens.append((_EOF, "", len(text)))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self._i = 0
        self._nesting = 0

    def _peek(self) -> tuple[str, str, int]:
        return self._tokens[self._i]

    def _next(self) -> tuple[str, str, int]:
        tok = self._tokens[self._i]
        self._i += 1
        return tok

    def _accept(self, *ops: str) -> str | None:
        kind, value, _ = self._peek()
        if kind == "op" and value in ops:
            self._i += 1
            return value
        return None

    def _expect(self, op: str) -> None:
        kind, value, pos = self._peek()
        if kind != "op" or value != op:
            found = "end of input" if kind == _EOF else repr(value)
            raise MacroSyntaxError(f"Expected {op!r}, found {found}", pos)
        self._i += 1

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > MAX_NESTING:
            raise MacroSyntaxError(
                f"Expression nested more than {MAX_NESTING} levels deep", self._peek()[2]
            )

    def _leave(self) -> None:
        self._nesting -= 1

    def parse(self) -> Expr:
        expr = self._comparison()
        kind, value, pos = self._peek()
        if kind != _EOF:
            raise MacroSyntaxError(f"Unexpected {value!r}", pos)
        return expr

    def _comparison(self) -> Expr:
        left = self._concat()
        while (op := self._accept(*COMPARE_OPS)) is not None:
            left = Compare(op, left, self._concat())
        return left

    def _concat(self) -> Expr:
        left = self._additive()
        while self._accept("&") is not None:
            left = BinOp("&", left, self._additive())
        return left

    def _additive(self) -> Expr:
        left = self._term()
        while (op := self._accept("+", "-")) is not None:
            left = BinOp(op, left, self._term())
        return left

    def _term(self) -> Expr:
        left = self._unary()
        while (op := self._accept("*", "/")) is not None:
            left = BinOp(op, left, self._unary())
        return left

    def _unary(self) -> Expr:
        op = self._accept("-", "+")
        if op is None:
            return self._atom()
        self._enter()
        operand = self._unary()
        self._leave()
        return Unary(op, operand)

    def _number(self, value: str, pos: int) -> Number:
        if not any(c in value for c in ".eE"):
            try:
                return Number(int(value))
            except ValueError:
                raise MacroSyntaxError("Number literal too long", pos) from None
        number = float(value)
        if not math.isfinite(number):
            raise MacroSyntaxError(f"Number literal out of range: {value}", pos)
        return Number(number)

    def _atom(self) -> Expr:
        kind, value, pos = self._next()
        if kind == "number":
            return self._number(value, pos)
        if kind == "string":
            return String(value[1:-1])
        if kind == "name":
            if self._accept("(") is None:
                return Name(value)
            self._enter()
            args: list[Expr] = []
            if self._accept(")") is None:
                args.append(self._comparison())
                while self._accept(",") is not None:
                    args.append(self._comparison())
                self._expect(")")
            self._leave()
            return Call(value, tuple(args))
        if kind == "op" and value == "(":
            self._enter()
            inner = self._comparison()
            self._expect(")")
            self._leave()
            return inner
        found = "end of input" if kind == _EOF else repr(value)
        raise MacroSyntaxError(f"Unexpected {found}", pos)


def parse(text: str) -> Expr:
    """
    Parse host expression *text* into a tree.

    Parentheses, calls and prefix operators may nest at most MAX_NESTING
    levels, and the finished tree may be at most MAX_HEIGHT nodes tall
    (a long flat chain such as ``1 + 1 + ... + 1`` is as tall as it is long).
    """
    if not text or not text.strip():
        raise MacroSyntaxError("Empty expression", 0)
    expr = _Parser(text).parse()
    _, height = measure(expr)
    if height > MAX_HEIGHT:
        raise MacroSyntaxError(f"Expression nested more than {MAX_HEIGHT} levels deep")
    return expr


def as_expr(value: Union[Expr, str, int, float]) -> Expr:
    """Coerce a call-site argument (tree, source text or number) to a tree."""
    if isinstance(value, bool):
        return Number(int(value))
    if isinstance(value, float) and not math.isfinite(value):
        raise MacroSyntaxError(f"Number out of range: {value}")
    if isinstance(value, (int, float)):
        return Number(value)
    if isinstance(value, str):
        return parse(value)
    return value



# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _precedence(expr: Expr) -> int:
    if isinstance(expr, Compare):
        return _PREC_COMPARE
    if isinstance(expr, BinOp):
        return _BINARY_PREC[expr.op]
    if isinstance(expr, Unary):
        return _PREC_UNARY
    if isinstance(expr, Number) and expr.value < 0:
        return _PREC_UNARY
    return _PREC_ATOM


def _wrap(expr: Expr, min_prec: int) -> str:
    text = render(expr)
    return f"({text})" if _precedence(expr) < min_prec else text


def format_number(value: Union[int, float]) -> str:
    return repr(value) if isinstance(value, float) else str(value)


def render(expr: Expr) -> str:
    """Render *expr* back to source text with minimal parentheses."""
    if isinstance(expr, Number):
        return format_number(expr.value)
    if isinstance(expr, String):
        quote = "'" if '"' in expr.value else '"'
        return f"{quote}{expr.value}{quote}"
    if isinstance(expr, Name):
        return expr.id
    if isinstance(expr, Call):
        return f"{expr.func}({', '.join(render(a) for a in expr.args)})"
    if isinstance(expr, Unary):
        return f"{expr.op}{_wrap(expr.operand, _PREC_UNARY)}"
    if isinstance(expr, (BinOp, Compare)):
        prec = _precedence(expr)
        return f"{_wrap(expr.left, prec)} {expr.op} {_wrap(expr.right, prec + 1)}"
    raise TypeError(f"Not an expression node: {expr!r}")


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def map_children(expr: Expr, fn: Callable[[Expr], Expr]) -> Expr:
    """Rebuild *expr* with *fn* applied to each direct child."""
    if isinstance(expr, Call):
        return Call(expr.func, tuple(fn(a) for a in expr.args))
    if isinstance(expr, Unary):
        return Unary(expr.op, fn(expr.operand))
    if isinstance(expr, BinOp):
        return BinOp(expr.op, fn(expr.left), fn(expr.right))
    if isinstance(expr, Compare):
        return Compare(expr.op, fn(expr.left), fn(expr.right))
    return expr


def replace_children(expr: Expr, new: list) -> Expr:
    """Rebuild *expr* with *new* as its children, in children() order."""
    if isinstance(expr, Call):
        return Call(expr.func, tuple(new))
    if isinstance(expr, Unary):
        return Unary(expr.op, new[0])
    if isinstance(expr, BinOp):
        return BinOp(expr.op, new[0], new[1])
    if isinstance(expr, Compare):
        return Compare(expr.op, new[0], new[1])
    return expr


def children(expr: Expr) -> tuple:
    if isinstance(expr, Call):
        return expr.args
    if isinstance(expr, Unary):
        return (expr.operand,)
    if isinstance(expr, (BinOp, Compare)):
        return (expr.left, expr.right)
    return ()


def walk(expr: Expr) -> Iterator[Expr]:
    """Pre-order traversal, iterative so tree height is not limited by recursion."""
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def measure(expr: Expr) -> tuple[int, int]:
    """``(node count, height)`` of *expr*."""
    size = height = 0
    stack = [(expr, 1)]
    while stack:
        node, level = stack.pop()
        size += 1
        height = max(height, level)
        stack.extend((child, level + 1) for child in children(node))
    return size, height


def substitute(expr: Expr, bindings: Mapping[str, Expr]) -> Expr:
    """
    Replace every ``Name`` bound in *bindings* with its expression.

    Call targets are never substituted: a parameter called ``MIN`` leaves
    a nested ``MIN(...)`` call alone.
    """
    if isinstance(expr, Name):
        return bindings.get(expr.id, expr)
    return map_children(expr, lambda child: substitute(child, bindings))


def free_names(expr: Expr) -> set[str]:
    return {node.id for node in walk(expr) if isinstance(node, Name)}


def called_functions(expr: Expr) -> list[tuple[str, int]]:
    """``(name, arity)`` for every call in *expr*, in source order."""
    return [(node.func, len(node.args)) for node in walk(expr) if isinstance(node, Call)]
