"""Infix and box-drawing renderings of expression trees."""

from __future__ import annotations

import math

from .ast import Constant, Expr, Expression, Variable

_BRANCH = "├── "
_LAST_BRANCH = "└── "
_PIPE_INDENT = "|   "
_SPACE_INDENT = "    "


def format_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(float(value))


def _label(expr: Expr) -> str:
    if isinstance(expr, Constant):
        return format_number(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Expression):
        return expr.op.symbol
    raise TypeError(f"Cannot render node of type {type(expr).__name__}")


def render_infix(expr: Expr) -> str:
    """Render ``expr`` as fully parenthesized infix text.

    Unary operators render as ``sym(x)``, binary ones as ``(a sym b)``, and
    every other arity in prefix form ``(sym a b ...)``.
    """
    if not isinstance(expr, Expression):
        return _label(expr)

    symbol = expr.op.symbol
    parts = [render_infix(operand) for operand in expr.operands]
    if len(parts) == 1:
        return f"{symbol}({parts[0]})"
    if len(parts) == 2:
        return f"({parts[0]}{symbol}{parts[1]})"
    return "(" + " ".join([symbol, *parts]) + ")"


def _render_subtree(expr: Expr, prefix: str, is_last: bool, lines: list[str]) -> None:
    lines.append(prefix + (_LAST_BRANCH if is_last else _BRANCH) + _label(expr) + "\n")
    if not isinstance(expr, Expression):
        return
    child_prefix = prefix + (_SPACE_INDENT if is_last else _PIPE_INDENT)
    last = len(expr.operands) - 1
    for i, operand in enumerate(expr.operands):
        _render_subtree(operand, child_prefix, i == last, lines)


def render_tree(expr: Expr) -> str:
    """Render ``expr`` as an ASCII tree, one newline-terminated line per node.

    A bare constant or variable renders as its text alone.
    """
    if not isinstance(expr, Expression):
        return _label(expr)
    lines: list[str] = []
    _render_subtree(expr, "", True, lines)
    return "".join(lines)
