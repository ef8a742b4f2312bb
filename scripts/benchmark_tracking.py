#!/usr/bin/env python
"""Local benchmark comparing tracker overhead across no-op, simple and full modes."""

from __future__ import annotations

import argparse
import asyncio
import json
import math
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import List

from slice_timing.config import config
from slice_timing.demo_utils import run_bursts
from slice_timing.factory import build_async_tracker

_MODES = {
    "no_op": replace(config, enabled=False),
    "simple": replace(config, enabled=True, mode="simple"),
    "full": replace(config, enabled=True, mode="full"),
}


def percentile(values: List[float], pct: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    position = pct * (len(ordered) - 1)
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return ordered[int(position)]
    weight = position - lower
    return ordered[lower] * (1 - weight) + ordered[upper] * weight


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark slice-timing tracker overhead locally.")
    parser.add_argument("--n", type=int, default=200, help="Tracked runs per mode.")
    parser.add_argument("--bursts", type=int, default=10, help="Bursts per tracked run.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("outputs/benchmarks/tracking.json"),
        help="Path where benchmark metrics JSON will be written.",
    )
    return parser.parse_args()


async def measure_mode(mode: str, runs: int, bursts: int) -> List[float]:
    cfg = _MODES[mode]
    samples: List[float] = []
    for _ in range(runs):
        tracker = build_async_tracker(cfg)
        start = perf_counter()
        await tracker.track_async(lambda: run_bursts(bursts, burst_s=0.0, delay_s=0.0))
        samples.append((perf_counter() - start) * 1000)
    return samples


async def main_async(args: argparse.Namespace) -> dict:
    results: dict[str, dict[str, float]] = {}
    for mode in _MODES:
        samples = await measure_mode(mode, args.n, args.bursts)
        avg_ms = sum(samples) / len(samples) if samples else 0.0
        results[mode] = {
            "avg": avg_ms,
            "p50": percentile(samples, 0.5),
            "p95": percentile(samples, 0.95),
        }
    return results


def main() -> None:
    args = parse_args()
    output_path = args.output
    output_path.parent.mkdir(parents=True, exist_ok=True)

    per_mode = asyncio.run(main_async(args))
    baseline = per_mode["no_op"]["avg"]

    payload = {
        "runs_per_mode": args.n,
        "bursts_per_run": args.bursts,
        "per_run_ms": per_mode,
        "overhead_vs_no_op_ms": {mode: stats["avg"] - baseline for mode, stats in per_mode.items()},
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    print(f"Benchmark complete → {output_path}")
    print(
        " | ".join(
            f"{mode} avg={stats['avg']:.3f}ms p50={stats['p50']:.3f}ms p95={stats['p95']:.3f}ms"
            for mode, stats in per_mode.items()
        )
    )


if __name__ == "__main__":
    main()
