"""Structured error types for tokenizer, parser and lowering failures."""

from __future__ import annotations

from collections.abc import Iterable


class ExprError(Exception):
    """Base class for structured sexpr-jax errors."""


class ExprSyntaxError(ExprError, SyntaxError):
    """Unbalanced parentheses, empty groups or excessive nesting."""

    def __init__(self, message: str, position: int, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.source = source

    def __str__(self) -> str:
        text = f"{self.message} at position {self.position}"
        if self.source is not None:
            text += f" of input {self.source!r}"
        return text


class UnsupportedOperatorError(ExprError):
    """Operator symbol missing from the catalogue."""

    def __init__(self, symbol: str, supported: Iterable[str]) -> None:
        self.symbol = symbol
        self.supported = tuple(supported)
        super().__init__(
            f"Operator not supported: {symbol}, the list of supported operators are: {' '.join(self.supported)}"
        )


class ArityError(ExprError):
    """Operand count does not match the operator's declared arity."""

    def __init__(self, symbol: str, expected: int, actual: int) -> None:
        self.symbol = symbol
        self.expected = expected
        self.actual = actual
        super().__init__(f"{symbol} expects {expected} operands, actual number of operands is: {actual}")


class ExprLoweringError(ExprError):
    """Tree cannot be lowered to (or called through) the compiled JAX path."""
