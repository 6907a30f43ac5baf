"""Expression tree nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .operators import OperatorSpec
from .registry import Cell


@dataclass(frozen=True)
class Constant:
    value: float


@dataclass(frozen=True, eq=False)
class Variable:
    """Reference to a registry-owned cell; equal only to itself."""

    cell: Cell

    @property
    def name(self) -> str:
        return self.cell.name


@dataclass(frozen=True)
class Expression:
    op: OperatorSpec
    operands: tuple["Expr", ...]

    def __post_init__(self) -> None:
        if len(self.operands) != self.op.arity:
            raise ValueError(
                f"Operator {self.op.symbol!r} takes {self.op.arity} operands, got {len(self.operands)}"
            )


Atom = Union[Constant, Variable]
Expr = Union[Constant, Variable, Expression]
