"""Typer CLI for analysing timing logs and running the tracking demo."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

from .analysis import format_duration, load_timing_log, summarize_log, write_timing_log
from .config import config
from .demo_utils import DEMO_BUILDER_KEY, run_demo
from .slices import TimeSliceGroup

logger = logging.getLogger("slice_timing.cli")

app = typer.Typer(help="Inspect wall-clock time slices recorded by slice-timing trackers.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def analyze(
    log_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Path to a JSON timing log to read.",
    ),
    builder_keys: Optional[list[str]] = typer.Option(
        None,
        "--builder-key",
        help="The builder key you want to search for (repeatable).",
    ),
    action_labels: Optional[list[str]] = typer.Option(
        None,
        "--action-label",
        help="Action label to filter for (repeatable).",
    ),
) -> None:
    """Print mean and total slice durations per builder key and action label."""

    if not builder_keys:
        raise typer.BadParameter("At least one --builder-key is required.")
    if not action_labels:
        raise typer.BadParameter("At least one --action-label is required.")

    try:
        timing_log = load_timing_log(log_path)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid timing log {log_path}: {exc}") from exc

    summaries = summarize_log(timing_log, builder_keys, action_labels)
    logger.info("log=%s actions=%d matched=%d", log_path, len(timing_log.actions), len(summaries))
    for summary in summaries:
        typer.echo(json.dumps(summary.as_dict(), indent=2))


@app.command()
def demo(
    bursts: int = typer.Option(3, "--bursts", min=1, help="Number of busy bursts in the workload."),
    burst_ms: float = typer.Option(5.0, "--burst-ms", min=0.0, help="Busy time of each burst (ms)."),
    delay_ms: float = typer.Option(20.0, "--delay-ms", min=0.0, help="Suspension between bursts (ms)."),
    exclude_nested: bool = typer.Option(
        False,
        "--exclude-nested",
        help="Leave the nested tracker's time out of the workload's busy time.",
        is_flag=True,
    ),
    output: Path = typer.Option(
        Path("outputs/demo_timings.json"),
        "--output",
        "-o",
        help="Where the resulting timing log will be written.",
    ),
) -> None:
    """Track a synthetic asyncio workload and write its timing log."""

    if not config.enabled:
        typer.echo("Tracking is disabled (SLICE_TIMING_ENABLED); nothing to record.", err=True)
        raise typer.Exit(code=1)

    demo_cfg = replace(config, track_nested=not exclude_nested) if exclude_nested else config
    result = asyncio.run(run_demo(bursts, burst_ms=burst_ms, delay_ms=delay_ms, cfg=demo_cfg))
    write_timing_log(output, result.log)

    lines = [f"Demo tracked {bursts} burst(s) (mode={demo_cfg.mode}, track_nested={demo_cfg.track_nested})."]
    for label, tracker in (("workload", result.workload), ("nested", result.nested)):
        if not isinstance(tracker, TimeSliceGroup):
            raise TypeError(f"{type(tracker).__name__} does not record slices")
        busy = tracker.inner_duration
        lines.append(
            f"{label}: slices={len(tracker.slices)} span={format_duration(tracker.duration, demo_cfg.time_unit)} "
            f"busy={format_duration(busy, demo_cfg.time_unit)} "
            f"suspended={format_duration(tracker.duration - busy, demo_cfg.time_unit)}"
        )
    lines.append(f"Timing log ({DEMO_BUILDER_KEY}) → {output}")
    typer.echo("\n".join(lines))


if __name__ == "__main__":
    app()
