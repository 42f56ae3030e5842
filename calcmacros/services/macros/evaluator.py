"""
Reference host evaluator
========================
Evaluates fully expanded expression trees with the host's semantics:

- ``ln``, ``antiln`` and ``sqrt`` are the only functions.
- A comparison evaluates to the number 1 or 0.
- ``&`` joins the text forms of its operands.
- Arithmetic on a string coerces it as a numeral, so ``"0x" & "FF"`` plus
  0 is 255.  Prefixes ``0x``, ``0b`` and ``0o`` are understood.

Domain errors from the primitives propagate as DomainError, and so does any
result that is not a finite number; nothing is turned into a silent 0, inf
or NaN.  Numerals are plain decimals or prefixed integers: "nan", "inf" and
"1_000" are not numbers.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, Mapping, Optional, Union

from .engine import MacroEngine
from .errors import DomainError, EvaluationError, UnboundVariable
from .expr import BinOp, Call, Compare, Expr, Name, Number, String, Unary, parse

logger = logging.getLogger(__name__)

Value = Union[int, float, str]

_PREFIXED = re.compile(r"^([+-]?)(0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+)$")
_DECIMAL = re.compile(r"^[+-]?(?:[0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?$")

# Integers wider than this cannot be mixed with floats.
_MAX_INT_BITS = 1024


# ---------------------------------------------------------------------------
# Coercions
# ---------------------------------------------------------------------------

def checked(value: Union[int, float]) -> Union[int, float]:
    """Reject results no float can represent: inf, nan, or oversized ints."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise DomainError(f"Result out of range: {value}")
    elif value.bit_length() > _MAX_INT_BITS:
        raise DomainError("Result out of range: integer too large")
    return value


def to_number(value: Value) -> Union[int, float]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return checked(value)

    text = value.strip()
    m = _PREFIXED.match(text)
    if m:
        number = int(m.group(2), 0)
        return checked(-number if m.group(1) == "-" else number)

    m = _DECIMAL.match(text)
    if m is None:
        raise EvaluationError(f"Not a number: {value!r}")
    if m.group(1) is None and m.group(2) is None:
        try:
            return checked(int(text))
        except ValueError:
            raise DomainError("Result out of range: integer too large") from None
    return checked(float(text))


def to_text(value: Value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def _ln(x: float) -> float:
    if x <= 0:
        raise DomainError(f"ln is undefined for {x}")
    return math.log(x)


def _antiln(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        raise DomainError(f"antiln overflows for {x}") from None


def _sqrt(x: float) -> float:
    if x < 0:
        raise DomainError(f"sqrt is undefined for {x}")
    try:
        return math.sqrt(x)
    except OverflowError:
        raise DomainError("sqrt argument out of range") from None


PRIMITIVES: dict[str, Callable[[float], float]] = {
    "ln": _ln,
    "antiln": _antiln,
    "sqrt": _sqrt,
}

_COMPARE: dict[str, Callable[[float, float], bool]] = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _arith(op: str, a: Union[int, float], b: Union[int, float]) -> Union[int, float]:
    try:
        if op == "+":
            result = a + b
        elif op == "-":
            result = a - b
        elif op == "*":
            result = a * b
        elif b == 0:
            raise DomainError("Division by zero")
        else:
            result = a / b
    except OverflowError:
        raise DomainError(f"Result out of range: {a} {op} {b}") from None
    return checked(result)


def evaluate(
    expr: Expr,
    variables: Optional[Mapping[str, Value]] = None,
    primitives: Optional[Mapping[str, Callable[[float], float]]] = None,
) -> Value:
    """
    Evaluate an expanded expression tree.

    *primitives* defaults to PRIMITIVES.  A call to a function with no
    implementation raises EvaluationError; so does any intermediate result
    that is not a finite number (as DomainError).
    """
    variables = variables or {}
    primitives = PRIMITIVES if primitives is None else primitives

    def ev(node: Expr) -> Value:
        if isinstance(node, Number):
            return checked(node.value)
        if isinstance(node, String):
            return node.value
        if isinstance(node, Name):
            if node.id not in variables:
                raise UnboundVariable(node.id)
            value = variables[node.id]
            return value if isinstance(value, str) else to_number(value)
        if isinstance(node, Call):
            fn = primitives.get(node.func)
            if fn is None:
                raise EvaluationError(f"No evaluator for function {node.func!r}")
            if len(node.args) != 1:
                raise EvaluationError(f"{node.func} takes 1 argument, got {len(node.args)}")
            return checked(fn(to_number(ev(node.args[0]))))
        if isinstance(node, Unary):
            operand = to_number(ev(node.operand))
            return -operand if node.op == "-" else operand
        if isinstance(node, Compare):
            return int(_COMPARE[node.op](to_number(ev(node.left)), to_number(ev(node.right))))
        if isinstance(node, BinOp):
            left, right = ev(node.left), ev(node.right)
            if node.op == "&":
                return to_text(left) + to_text(right)
            return _arith(node.op, to_number(left), to_number(right))
        raise TypeError(f"Not an expression node: {node!r}")

    return ev(expr)


def evaluate_text(
    text: str,
    variables: Optional[Mapping[str, Value]] = None,
    engine: Optional[MacroEngine] = None,
) -> Value:
    """Expand every macro in *text*, then evaluate the result."""
    engine = engine or MacroEngine()
    expanded = engine.expand_expr(parse(text))
    logger.debug("Evaluating %s", text)
    return evaluate(expanded, variables)
