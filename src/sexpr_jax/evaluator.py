"""Tree-walking evaluator."""

from __future__ import annotations

from .ast import Constant, Expr, Expression, Variable
from .errors import ExprSyntaxError
from .parser import parse
from .registry import VariableRegistry


def _eval_node(expr: Expr) -> float:
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, Variable):
        return expr.cell.value
    if isinstance(expr, Expression):
        # All operands are evaluated, left to right, before the operator runs.
        values = [_eval_node(operand) for operand in expr.operands]
        return expr.op.compute(*values)
    raise TypeError(f"Cannot evaluate node of type {type(expr).__name__}")


def evaluate(expr: Expr | str, registry: VariableRegistry | None = None) -> float:
    """Evaluate a parsed tree, or parse-then-evaluate a source string.

    Trees read the current values of their variable cells on every call, so a
    tree can be re-evaluated after ``Cell.value`` updates or
    ``VariableRegistry.refresh`` without re-parsing. ``registry`` is only
    used when ``expr`` is a string; unknown names start at 0.0.

    The walk runs the scalar kernels of each operator on Python floats; use
    ``compile_expression`` for batched or differentiable evaluation.
    """
    if isinstance(expr, str):
        source = expr
        parsed = parse(source, registry)
        if parsed is None:
            raise ExprSyntaxError("Nothing to evaluate", 0, source)
        expr = parsed
    return float(_eval_node(expr))
