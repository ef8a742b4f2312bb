"""Synthetic asyncio workloads for demos and benchmarks."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from time import perf_counter

from .config import TimingConfig
from .config import config as default_config
from .factory import build_async_tracker
from .schemas import ActionTiming, StageTiming, TimeSliceRecord, TimingLog
from .slices import TimeSliceGroup
from .trackers import BaseAsyncTimeTracker

DEMO_BUILDER_KEY = "slice_timing:demo"


@dataclass
class DemoResult:
    """Trackers and the timing log produced by :func:`run_demo`."""

    workload: BaseAsyncTimeTracker
    nested: BaseAsyncTimeTracker
    log: TimingLog


def spin(duration_s: float) -> None:
    """Keep the CPU busy for ``duration_s`` seconds without yielding."""

    deadline = perf_counter() + duration_s
    while perf_counter() < deadline:
        pass


async def run_bursts(bursts: int, *, burst_s: float, delay_s: float) -> int:
    """Run ``bursts`` busy bursts separated by ``delay_s`` of suspension."""

    for index in range(bursts):
        spin(burst_s)
        if index < bursts - 1:
            await asyncio.sleep(delay_s)
    return bursts


async def run_demo(
    bursts: int = 3,
    *,
    burst_ms: float = 5.0,
    delay_ms: float = 20.0,
    cfg: TimingConfig = default_config,
) -> DemoResult:
    """Track a bursty workload that awaits one nested, separately tracked step."""

    burst_s = burst_ms / 1000.0
    delay_s = delay_ms / 1000.0
    workload = build_async_tracker(cfg)
    nested = build_async_tracker(replace(cfg, track_nested=True))

    async def nested_step() -> int:
        return await run_bursts(2, burst_s=burst_s, delay_s=delay_s)

    async def body() -> int:
        done = await run_bursts(bursts, burst_s=burst_s, delay_s=delay_s)
        await asyncio.sleep(delay_s)
        done += await nested.track_async(nested_step)
        return done

    await workload.track_async(body)

    log = TimingLog(
        actions=[
            ActionTiming(
                builder_key=DEMO_BUILDER_KEY,
                stages=[
                    StageTiming(label="workload", slices=_records(workload)),
                    StageTiming(label="nested", slices=_records(nested)),
                ],
            )
        ]
    )
    return DemoResult(workload=workload, nested=nested, log=log)


def _records(tracker: BaseAsyncTimeTracker) -> list[TimeSliceRecord]:
    if not isinstance(tracker, TimeSliceGroup):
        raise TypeError(f"{type(tracker).__name__} does not record slices")
    return [TimeSliceRecord.from_slice(item) for item in tracker.slices]
