"""Recursive-descent parser from s-expression text to expression trees."""

from __future__ import annotations

import os
import re
from typing import Final

from .ast import Constant, Expr, Expression, Variable
from .errors import ArityError, ExprSyntaxError
from .lexer import is_group, strip_group, tokenize
from .operators import UNARY_MINUS, OperatorSpec, is_supported, lookup
from .registry import VariableRegistry

MAX_DEPTH: Final[int] = max(1, int(os.environ.get("SEXPR_JAX_MAX_DEPTH", "256")))

_NUMBER_RE: Final = re.compile(
    r"""
    ^
    [+-]?
    (?:
        NaN
      | Infinity
      | (?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?
    )
    $
    """,
    re.VERBOSE,
)


def parse_number(text: str) -> float | None:
    """Return the value of a decimal literal, or ``None`` if ``text`` is a name."""
    if not _NUMBER_RE.match(text):
        return None
    return float(text.replace("Infinity", "inf"))


def _parse_atom(token: str, registry: VariableRegistry) -> Expr:
    value = parse_number(token)
    if value is not None:
        return Constant(value)
    # Zero-operand operators such as `rand` are applications, never names.
    if is_supported(token) and lookup(token).arity == 0:
        return Expression(lookup(token), ())
    return Variable(registry.lookup_or_create(token))


def _resolve_operator(symbol: str, operand_count: int) -> OperatorSpec:
    if symbol == "-" and operand_count == 1:
        return UNARY_MINUS
    return lookup(symbol)


def _parse(source: str, registry: VariableRegistry, depth: int) -> Expr | None:
    if depth > MAX_DEPTH:
        raise ExprSyntaxError(f"Expression nesting exceeds maximum depth {MAX_DEPTH}", 0)

    tokens = tokenize(source)
    if not tokens:
        return None

    if len(tokens) == 1:
        token = tokens[0]
        if is_group(token):
            return _parse(strip_group(token), registry, depth + 1)
        return _parse_atom(token, registry)

    symbol, operand_tokens = tokens[0], tokens[1:]
    op = _resolve_operator(symbol, len(operand_tokens))
    if len(operand_tokens) != op.arity:
        raise ArityError(op.symbol, op.arity, len(operand_tokens))

    operands: list[Expr] = []
    for token in operand_tokens:
        operand = _parse(token, registry, depth)
        if operand is None:
            raise ExprSyntaxError(f"Empty operand for operator {op.symbol!r}", source.find(token), source)
        operands.append(operand)
    return Expression(op, tuple(operands))


def parse(source: str, registry: VariableRegistry | None = None) -> Expr | None:
    """Parse ``source`` into a tree, registering variables in ``registry``.

    Returns ``None`` when ``source`` holds no tokens. Every occurrence of a
    variable name resolves to the same registry cell, so parsing several
    formulas against one registry makes them share inputs.
    """
    if registry is None:
        registry = VariableRegistry()
    return _parse(source, registry, 0)
