"""Command line tool for evaluating and pretty printing s-expressions."""

from __future__ import annotations

import argparse
import logging
import sys

from .errors import ExprError
from .evaluator import evaluate
from .parser import parse
from .printer import format_number, render_infix, render_tree
from .registry import VariableRegistry

logger = logging.getLogger(__name__)


def _parse_assignment(text: str) -> tuple[str, float]:
    name, sep, raw = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name, float(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid value for {name!r}: {raw!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sexpr-jax", description=__doc__)
    parser.add_argument("expr", help='s-expression, e.g. "(+ 0.5 (* (/ 15 1000) (ln (- 55 12))))"')
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        type=_parse_assignment,
        metavar="NAME=VALUE",
        help="value for a variable; repeat for several",
    )
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    registry = VariableRegistry()
    try:
        expr = parse(args.expr, registry)
    except ExprError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    if expr is None:
        print("error: s-expression expected", file=sys.stderr)
        return 1

    supplied = dict(args.var)
    registry.refresh(supplied)
    unbound = [name for name in registry.names() if name not in supplied]
    if unbound:
        logger.info("not evaluating, unbound variables: %s", ", ".join(unbound))

    print(f"={render_infix(expr)}")
    if not unbound:
        print(f"={format_number(evaluate(expr))}")
    print("tree")
    print(render_tree(expr))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
