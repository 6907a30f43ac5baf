"""Timing for re-parse, re-evaluate and batched JAX paths on a scoring formula."""

from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

import jax.numpy as jnp
from _bench_utils import host_metadata, percentile

from sexpr_jax import VariableRegistry, compile_expression, evaluate, parse

FORMULA = "(* (if (> clicks 0) (sigmoid (+ (* 0.6 (ln1plus clicks)) (* 0.4 ctr))) 0) (max weight 0.1))"


@dataclass(frozen=True)
class Row:
    name: str
    repeats: int
    total_ms: float
    per_item_us: float
    median_call_us: float
    p90_call_us: float


def _time(name: str, fn, repeats: int, items_per_call: int = 1) -> Row:
    fn()
    samples: list[float] = []
    for _ in range(repeats):
        start = time.perf_counter()
        fn()
        samples.append(time.perf_counter() - start)
    elapsed = sum(samples)
    return Row(
        name=name,
        repeats=repeats,
        total_ms=elapsed * 1e3,
        per_item_us=elapsed * 1e6 / (repeats * items_per_call),
        median_call_us=percentile(samples, 0.5) * 1e6,
        p90_call_us=percentile(samples, 0.9) * 1e6,
    )


def run(repeats: int, batch: int) -> list[Row]:
    inputs = {"clicks": 12.0, "ctr": 0.08, "weight": 0.7}

    def reparse_and_evaluate() -> float:
        registry = VariableRegistry()
        tree = parse(FORMULA, registry)
        registry.refresh(inputs)
        return evaluate(tree)

    registry = VariableRegistry()
    tree = parse(FORMULA, registry)

    def refresh_and_evaluate() -> float:
        registry.refresh(inputs)
        return evaluate(tree)

    compiled = compile_expression(tree)
    jitted = compiled.jit()
    columns = {
        "clicks": jnp.linspace(0.0, 50.0, batch),
        "ctr": jnp.full((batch,), 0.08),
        "weight": jnp.linspace(0.0, 1.0, batch),
    }
    args = tuple(columns[name] for name in compiled.arg_names)

    def jitted_batch():
        return jitted(*args).block_until_ready()

    return [
        _time("reparse+evaluate", reparse_and_evaluate, repeats),
        _time("refresh+evaluate", refresh_and_evaluate, repeats),
        _time(f"jit batch[{batch}]", jitted_batch, repeats, items_per_call=batch),
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--repeats", type=int, default=50)
    parser.add_argument("--batch", type=int, default=4096)
    parser.add_argument("--json-out", default=None, help="optional path for machine-readable results")
    args = parser.parse_args(argv)

    rows = run(args.repeats, args.batch)
    print(f"{'case':<24} {'repeats':>8} {'total ms':>10} {'us/item':>10} {'p50 us':>10} {'p90 us':>10}")
    for row in rows:
        print(
            f"{row.name:<24} {row.repeats:>8} {row.total_ms:>10.2f} {row.per_item_us:>10.3f}"
            f" {row.median_call_us:>10.1f} {row.p90_call_us:>10.1f}"
        )

    if args.json_out:
        path = Path(args.json_out)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "generated_at": datetime.now(UTC).isoformat(),
            "host": host_metadata(),
            "formula": FORMULA,
            "rows": [asdict(row) for row in rows],
        }
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
