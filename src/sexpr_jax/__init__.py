"""sexpr-jax public API."""

from .ast import Constant, Expr, Expression, Variable
from .errors import ArityError, ExprError, ExprLoweringError, ExprSyntaxError, UnsupportedOperatorError
from .evaluator import evaluate
from .ir import CompiledExpression, JaxIR, compile_expression, evaluate_ir, lower_to_ir
from .lexer import tokenize
from .operators import OPERATORS, UNARY_MINUS, OperatorSpec, reset_random_streams, supported_symbols
from .parser import parse
from .printer import render_infix, render_tree
from .registry import Cell, VariableRegistry

__all__ = [
    "tokenize",
    "parse",
    "evaluate",
    "render_infix",
    "render_tree",
    "lower_to_ir",
    "evaluate_ir",
    "compile_expression",
    "CompiledExpression",
    "JaxIR",
    "OPERATORS",
    "UNARY_MINUS",
    "OperatorSpec",
    "supported_symbols",
    "reset_random_streams",
    "Cell",
    "VariableRegistry",
    "Constant",
    "Variable",
    "Expression",
    "Expr",
    "ExprError",
    "ExprSyntaxError",
    "UnsupportedOperatorError",
    "ArityError",
    "ExprLoweringError",
]
