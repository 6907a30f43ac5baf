"""Host description and summary statistics shared by the benchmarks."""

from __future__ import annotations

import math
import os
import platform
from typing import Any

import jax

# Settings that change the timings: XLA threading and the package's own switches.
ENV_VARS = (
    "OMP_NUM_THREADS",
    "JAX_NUM_THREADS",
    "XLA_FLAGS",
    "SEXPR_JAX_RANDOM_SEED",
    "SEXPR_JAX_MAX_DEPTH",
)


def env_snapshot() -> dict[str, str]:
    return {name: os.environ[name] for name in ENV_VARS if name in os.environ}


def host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": getattr(jax, "__version__", "unknown"),
        "backend": jax.default_backend(),
        "x64": bool(jax.config.jax_enable_x64),
        "cpu_count": os.cpu_count(),
        "env": env_snapshot(),
    }


def percentile(values: list[float], q: float) -> float:
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    if lo == hi:
        return ordered[lo]
    alpha = pos - lo
    return ordered[lo] * (1.0 - alpha) + ordered[hi] * alpha
