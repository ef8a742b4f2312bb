"""Load timing logs and aggregate slice durations per builder key and label."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .schemas import TimingLog
from .slices import TimeSlice


@dataclass(frozen=True)
class DurationSummary:
    """Total and mean duration of a set of slices."""

    count: int
    total: timedelta
    mean: timedelta


@dataclass(frozen=True)
class StageSummary:
    builder_key: str
    action_label: str
    durations: DurationSummary

    def as_dict(self) -> dict[str, str]:
        return {
            "builder key": self.builder_key,
            "action label": self.action_label,
            "mean duration": str(self.durations.mean),
            "total duration": str(self.durations.total),
        }


def load_timing_log(path: Path | str) -> TimingLog:
    """Parse a JSON timing log from disk into a validated model."""

    source = Path(path)
    payload = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Timing log {source} must contain a JSON object.")
    return TimingLog.model_validate(payload)


def write_timing_log(path: Path | str, log: TimingLog, *, pretty: bool = True) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    indent = 2 if pretty else None
    target.write_text(json.dumps(log.model_dump(mode="json", by_alias=True), indent=indent), encoding="utf-8")
    return target


def collect_slices(
    log: TimingLog,
    builder_keys: Sequence[str],
    action_labels: Sequence[str],
) -> dict[str, dict[str, list[TimeSlice]]]:
    """Group slices by builder key, then stage label, keeping first-seen order."""

    wanted_keys = set(builder_keys)
    wanted_labels = set(action_labels)
    grouped: dict[str, dict[str, list[TimeSlice]]] = {}

    for action in log.actions:
        if action.builder_key not in wanted_keys:
            continue
        by_label = grouped.setdefault(action.builder_key, {})
        for stage in action.stages:
            if stage.label not in wanted_labels:
                continue
            by_label.setdefault(stage.label, []).extend(record.to_slice() for record in stage.slices)

    return grouped


def summarize(slices: Iterable[TimeSlice]) -> DurationSummary:
    """Sum slice durations; the mean is floored to whole microseconds."""

    total = timedelta()
    count = 0
    for item in slices:
        total += item.duration
        count += 1
    if count == 0:
        return DurationSummary(count=0, total=total, mean=timedelta())
    mean = timedelta(microseconds=(total // timedelta(microseconds=1)) // count)
    return DurationSummary(count=count, total=total, mean=mean)


def summarize_log(
    log: TimingLog,
    builder_keys: Sequence[str],
    action_labels: Sequence[str],
) -> list[StageSummary]:
    grouped = collect_slices(log, builder_keys, action_labels)
    return [
        StageSummary(builder_key=key, action_label=label, durations=summarize(slices))
        for key, by_label in grouped.items()
        for label, slices in by_label.items()
    ]


def format_duration(value: timedelta, unit: str = "ms") -> str:
    seconds = value.total_seconds()
    if unit == "ms":
        return f"{seconds * 1000.0:.3f} ms"
    return f"{seconds:.6f} s"
