"""Closed operator catalogue.

Each operator carries two kernels with the same semantics. ``compute`` works
on Python floats and backs the tree-walking evaluator, where per-node
``jax.numpy`` dispatch would dominate the cost of a small formula.
``vectorized`` is built on ``jax.numpy`` and backs the compiled path, so it
accepts arrays and can be traced by ``jit``, ``vmap`` and ``grad``.

Both follow IEEE-754 semantics: division by zero, logarithms of non-positive
numbers and the like produce ``inf``/``nan`` instead of raising. Booleans are
encoded as 1.0/0.0 and any nonzero operand counts as true.
"""

from __future__ import annotations

import math
import operator
import os
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Final, Mapping

import jax
import jax.numpy as jnp

from .errors import UnsupportedOperatorError

# Formulas are evaluated in double precision.
jax.config.update("jax_enable_x64", True)

DEFAULT_RANDOM_SEED: Final[int] = int(os.environ.get("SEXPR_JAX_RANDOM_SEED", "0"))

# Bounds of a Java long, which `round` saturates to.
_LONG_MAX: Final[float] = float(2**63 - 1)
_LONG_MIN: Final[float] = float(-(2**63))


@dataclass(frozen=True)
class OperatorSpec:
    symbol: str
    arity: int
    compute: Callable[..., float]
    # None for operators that draw from interpreter state and cannot be traced.
    vectorized: Callable[..., jnp.ndarray] | None = None

    def __str__(self) -> str:
        return self.symbol


class RandomStream:
    """Sequential uniform generator over a split JAX PRNG key."""

    def __init__(self, seed: int = DEFAULT_RANDOM_SEED) -> None:
        self.seed = seed
        self._lock = threading.Lock()
        self._key = jax.random.PRNGKey(seed)

    def reset(self) -> None:
        with self._lock:
            self._key = jax.random.PRNGKey(self.seed)

    def draw(self, shape: tuple[int, ...] = ()) -> jnp.ndarray:
        with self._lock:
            self._key, subkey = jax.random.split(self._key)
        return jax.random.uniform(subkey, shape, dtype=jnp.float64)


# Scalar kernels.


def _predicate(test: Callable[..., bool]) -> Callable[..., float]:
    return lambda *args: 1.0 if test(*args) else 0.0


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x == math.floor(x) and math.fmod(x, 2.0) != 0.0


def _sign(x: float) -> float:
    if x > 0:
        return 1.0
    if x < 0:
        return -1.0
    return float(x)


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        if a == 0:
            return -math.inf if math.copysign(1.0, a) < 0 and _is_odd_integer(b) else math.inf
        return math.nan


def _fmod(a: float, b: float) -> float:
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


def _log_kernel(fn: Callable[[float], float], pole: float) -> Callable[[float], float]:
    def kernel(x: float) -> float:
        if x == pole:
            return -math.inf
        if x < pole:
            return math.nan
        return fn(x)

    return kernel


def _extremum(pick: Callable[[float, float], float]) -> Callable[[float, float], float]:
    def kernel(a: float, b: float) -> float:
        if math.isnan(a) or math.isnan(b):
            return math.nan
        return pick(a, b)

    return kernel


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _sigmoid(x: float) -> float:
    return 1.0 / (1.0 + _exp(-x))


def _round_half_up(x: float) -> float:
    # Same as Java's Math.round: NaN gives 0, out-of-range values saturate.
    if math.isnan(x):
        return 0.0
    if x >= _LONG_MAX:
        return _LONG_MAX
    if x <= _LONG_MIN:
        return _LONG_MIN
    return float(math.floor(x + 0.5))


def _integral(fn: Callable[[float], int]) -> Callable[[float], float]:
    def kernel(x: float) -> float:
        if not math.isfinite(x):
            return float(x)
        return float(fn(x))

    return kernel


def _sqrt(x: float) -> float:
    return math.nan if x < 0 else math.sqrt(x)


def _trig(fn: Callable[[float], float]) -> Callable[[float], float]:
    def kernel(x: float) -> float:
        if math.isinf(x):
            return math.nan
        return fn(x)

    return kernel


def _if(check: float, then: float, otherwise: float) -> float:
    return then if check != 0 else otherwise


_RAND_STREAM: Final = RandomStream()
_RAND_IN_STREAM: Final = RandomStream()


def _rand() -> float:
    return float(_RAND_STREAM.draw())


def _rand_in(a: float, b: float) -> float:
    return a + (b - a) * float(_RAND_IN_STREAM.draw())


# Array kernels.


def _as_bool(x) -> jnp.ndarray:
    return jnp.asarray(x) != 0


def _from_bool(mask) -> jnp.ndarray:
    return jnp.where(mask, 1.0, 0.0)


def _round_half_up_array(x) -> jnp.ndarray:
    rounded = jnp.clip(jnp.floor(jnp.add(x, 0.5)), _LONG_MIN, _LONG_MAX)
    return jnp.where(jnp.isnan(x), 0.0, rounded)


def _sigmoid_array(x) -> jnp.ndarray:
    return jnp.divide(1.0, jnp.add(1.0, jnp.exp(jnp.negative(x))))


def _if_array(check, then, otherwise) -> jnp.ndarray:
    return jnp.where(_as_bool(check), then, otherwise)


def _in_array(x, lo, hi) -> jnp.ndarray:
    x = jnp.asarray(x)
    return _from_bool((x >= lo) & (x < hi))


UNARY_MINUS: Final = OperatorSpec("unaryMinus", 1, operator.neg, jnp.negative)

_CATALOGUE_ENTRIES: Final[tuple[OperatorSpec, ...]] = (
    OperatorSpec("==", 2, _predicate(operator.eq), lambda a, b: _from_bool(jnp.equal(a, b))),
    OperatorSpec("!=", 2, _predicate(operator.ne), lambda a, b: _from_bool(jnp.not_equal(a, b))),
    OperatorSpec(">", 2, _predicate(operator.gt), lambda a, b: _from_bool(jnp.greater(a, b))),
    OperatorSpec(">=", 2, _predicate(operator.ge), lambda a, b: _from_bool(jnp.greater_equal(a, b))),
    OperatorSpec("<", 2, _predicate(operator.lt), lambda a, b: _from_bool(jnp.less(a, b))),
    OperatorSpec("<=", 2, _predicate(operator.le), lambda a, b: _from_bool(jnp.less_equal(a, b))),
    OperatorSpec(
        "||", 2, _predicate(lambda a, b: a != 0 or b != 0), lambda a, b: _from_bool(_as_bool(a) | _as_bool(b))
    ),
    OperatorSpec(
        "&&", 2, _predicate(lambda a, b: a != 0 and b != 0), lambda a, b: _from_bool(_as_bool(a) & _as_bool(b))
    ),
    OperatorSpec("!", 1, _predicate(lambda a: a == 0), lambda a: _from_bool(~_as_bool(a))),
    OperatorSpec("sign", 1, _sign, jnp.sign),
    OperatorSpec("+", 2, operator.add, jnp.add),
    OperatorSpec("-", 2, operator.sub, jnp.subtract),
    UNARY_MINUS,
    OperatorSpec("*", 2, operator.mul, jnp.multiply),
    OperatorSpec("/", 2, _divide, jnp.divide),
    OperatorSpec("**", 2, _power, jnp.power),
    OperatorSpec("%", 2, _fmod, jnp.fmod),
    OperatorSpec("ln", 1, _log_kernel(math.log, 0.0), jnp.log),
    OperatorSpec("ln1plus", 1, _log_kernel(math.log1p, -1.0), jnp.log1p),
    OperatorSpec("log2", 1, _log_kernel(math.log2, 0.0), jnp.log2),
    OperatorSpec("max", 2, _extremum(max), jnp.maximum),
    OperatorSpec("min", 2, _extremum(min), jnp.minimum),
    OperatorSpec("abs", 1, abs, jnp.abs),
    OperatorSpec("exp", 1, _exp, jnp.exp),
    OperatorSpec("sigmoid", 1, _sigmoid, _sigmoid_array),
    OperatorSpec("round", 1, _round_half_up, _round_half_up_array),
    OperatorSpec("floor", 1, _integral(math.floor), jnp.floor),
    OperatorSpec("ceil", 1, _integral(math.ceil), jnp.ceil),
    OperatorSpec("sqrt", 1, _sqrt, jnp.sqrt),
    OperatorSpec("if", 3, _if, _if_array),
    OperatorSpec("in", 3, _predicate(lambda x, lo, hi: lo <= x < hi), _in_array),
    OperatorSpec("rand", 0, _rand),
    OperatorSpec("rand-in", 2, _rand_in),
    OperatorSpec("cos", 1, _trig(math.cos), jnp.cos),
    OperatorSpec("sin", 1, _trig(math.sin), jnp.sin),
    OperatorSpec("tan", 1, _trig(math.tan), jnp.tan),
    OperatorSpec("tanh", 1, math.tanh, jnp.tanh),
)


def _build_catalogue(entries: tuple[OperatorSpec, ...]) -> Mapping[str, OperatorSpec]:
    table: dict[str, OperatorSpec] = {}
    for spec in entries:
        if spec.symbol in table:
            raise ValueError(f"Duplicate operator symbol {spec.symbol!r}")
        if spec.arity not in (0, 1, 2, 3):
            raise ValueError(f"Operator {spec.symbol!r} has unsupported arity {spec.arity}")
        table[spec.symbol] = spec
    return MappingProxyType(table)


OPERATORS: Final[Mapping[str, OperatorSpec]] = _build_catalogue(_CATALOGUE_ENTRIES)


def supported_symbols() -> tuple[str, ...]:
    return tuple(OPERATORS)


def is_supported(symbol: str) -> bool:
    return symbol in OPERATORS


def lookup(symbol: str) -> OperatorSpec:
    spec = OPERATORS.get(symbol)
    if spec is None:
        raise UnsupportedOperatorError(symbol, supported_symbols())
    return spec


def reset_random_streams() -> None:
    """Rewind ``rand`` and ``rand-in`` to the start of their seeded sequences."""
    _RAND_STREAM.reset()
    _RAND_IN_STREAM.reset()
