"""Lowering of expression trees to a JAX-traceable SSA form.

The tree-walking evaluator reads variable cells one scalar at a time. The
lowered form instead takes every variable as an explicit argument, so a
formula can be jitted, vectorized over a batch of inputs or differentiated
with the usual JAX transforms.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import jax
import jax.numpy as jnp

from .ast import Constant, Expr, Expression, Variable
from .errors import ExprLoweringError, ExprSyntaxError
from .operators import OPERATORS, UNARY_MINUS
from .parser import parse
from .registry import Cell, VariableRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IRNode:
    """Single SSA node: a constant, an argument, or an operator application."""

    id: int
    op: str
    inputs: tuple[int, ...] = ()
    value: float | None = None
    name: str | None = None


@dataclass(frozen=True)
class JaxIR:
    nodes: tuple[IRNode, ...]
    output: int
    arg_names: tuple[str, ...]


class _Lowerer:
    def __init__(self) -> None:
        self.nodes: list[IRNode] = []
        self.arg_names: list[str] = []
        self._arg_nodes: dict[int, int] = {}

    def _add(self, op: str, *, inputs: tuple[int, ...] = (), value: float | None = None, name: str | None = None) -> int:
        node_id = len(self.nodes)
        self.nodes.append(IRNode(id=node_id, op=op, inputs=inputs, value=value, name=name))
        return node_id

    def _arg(self, cell: Cell) -> int:
        key = id(cell)
        if key in self._arg_nodes:
            return self._arg_nodes[key]
        if cell.name in self.arg_names:
            raise ExprLoweringError(f"Variable {cell.name!r} refers to cells from different registries")
        idx = self._add("arg", name=cell.name)
        self._arg_nodes[key] = idx
        self.arg_names.append(cell.name)
        return idx

    def lower_expr(self, expr: Expr) -> int:
        if isinstance(expr, Constant):
            return self._add("const", value=expr.value)

        if isinstance(expr, Variable):
            return self._arg(expr.cell)

        if isinstance(expr, Expression):
            symbol = expr.op.symbol
            if expr.op.vectorized is None:
                raise ExprLoweringError(f"Operator {symbol!r} draws from interpreter state and cannot be compiled")
            inputs = tuple(self.lower_expr(operand) for operand in expr.operands)
            if expr.op is UNARY_MINUS:
                return self._add("neg", inputs=inputs)
            return self._add(f"op:{symbol}", inputs=inputs)

        raise ExprLoweringError(f"Cannot lower node of type {type(expr).__name__}")


def _resolve_expr(expr: Expr | str, registry: VariableRegistry | None) -> Expr:
    if isinstance(expr, str):
        parsed = parse(expr, registry)
        if parsed is None:
            raise ExprSyntaxError("Nothing to compile", 0, expr)
        return parsed
    return expr


def lower_to_ir(expr: Expr | str, registry: VariableRegistry | None = None) -> JaxIR:
    """Lower a tree (or source text) to IR; arguments follow first appearance."""
    lowerer = _Lowerer()
    out = lowerer.lower_expr(_resolve_expr(expr, registry))
    logger.debug("lowered %d IR nodes with arguments %s", len(lowerer.nodes), lowerer.arg_names)
    return JaxIR(nodes=tuple(lowerer.nodes), output=out, arg_names=tuple(lowerer.arg_names))


def evaluate_ir(ir: JaxIR, args: tuple[object, ...]) -> jnp.ndarray:
    if len(args) != len(ir.arg_names):
        raise ExprLoweringError(f"Expected {len(ir.arg_names)} arguments, got {len(args)}")

    values: list[jnp.ndarray] = []
    arg_iter = iter(args)
    for node in ir.nodes:
        if node.op == "const":
            values.append(jnp.asarray(node.value, dtype=jnp.float64))
        elif node.op == "arg":
            values.append(jnp.asarray(next(arg_iter), dtype=jnp.float64))
        elif node.op == "neg":
            values.append(UNARY_MINUS.vectorized(values[node.inputs[0]]))
        else:
            spec = OPERATORS[node.op.removeprefix("op:")]
            values.append(spec.vectorized(*(values[i] for i in node.inputs)))
    return values[ir.output]


@dataclass
class CompiledExpression:
    """Callable wrapper around lowered IR with JAX transforms."""

    ir: JaxIR
    _jit_fn: object = field(default=None, init=False, repr=False)

    @property
    def arg_names(self) -> tuple[str, ...]:
        return self.ir.arg_names

    def _call_ir(self, *args):
        return evaluate_ir(self.ir, args)

    def _resolve_call_args(self, args: tuple[object, ...], kwargs: Mapping[str, object]) -> tuple[object, ...]:
        if args and kwargs:
            raise ExprLoweringError("Use either positional or keyword arguments, not both")

        if kwargs:
            missing = [name for name in self.ir.arg_names if name not in kwargs]
            extra = [name for name in kwargs if name not in self.ir.arg_names]
            if missing or extra:
                details = []
                if missing:
                    details.append(f"missing={missing}")
                if extra:
                    details.append(f"extra={extra}")
                raise ExprLoweringError(f"Keyword arguments do not match IR signature ({', '.join(details)})")
            return tuple(kwargs[name] for name in self.ir.arg_names)

        if len(args) != len(self.ir.arg_names):
            raise ExprLoweringError(f"Expected {len(self.ir.arg_names)} arguments, got {len(args)}")
        return args

    def __call__(self, *args, **kwargs):
        return self._call_ir(*self._resolve_call_args(args, kwargs))

    def from_registry(self, registry: VariableRegistry) -> float:
        """Evaluate with the current values of ``registry``; unregistered names read as 0.0."""
        values: list[float] = []
        for name in self.ir.arg_names:
            cell = registry.find_variable(name)
            values.append(0.0 if cell is None else cell.value)
        return float(self._call_ir(*values))

    def jit(self):
        if self._jit_fn is None:
            self._jit_fn = jax.jit(self._call_ir)
        return self._jit_fn

    def vmap(self, in_axes: int | None | tuple[int | None, ...] = 0):
        """Map over a leading batch axis of every argument (or as ``in_axes`` says)."""
        return jax.vmap(self._call_ir, in_axes=in_axes)

    def grad(self, argnums: int | tuple[int, ...] = 0):
        return jax.grad(self._call_ir, argnums=argnums)


def compile_expression(expr: Expr | str, registry: VariableRegistry | None = None) -> CompiledExpression:
    """Compile a tree (or source text) into an IR-backed callable.

    Positional call arguments follow :attr:`CompiledExpression.arg_names`.
    """
    return CompiledExpression(ir=lower_to_ir(expr, registry))
