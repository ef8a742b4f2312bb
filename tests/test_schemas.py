from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from slice_timing.schemas import TimeSliceGroupRecord, TimeSliceRecord, TimingLog
from slice_timing.slices import TimeSlice, TimeSliceGroup
from slice_timing.trackers import SyncTimeTracker

T0 = datetime(2024, 1, 1, tzinfo=UTC)


def test_time_slice_record_uses_camel_case_keys() -> None:
    record = TimeSliceRecord.from_slice(TimeSlice(T0, T0 + timedelta(seconds=2)))

    payload = record.model_dump(mode="json", by_alias=True)

    assert set(payload) == {"startTime", "stopTime"}
    assert payload["startTime"].startswith("2024-01-01T00:00:00")


def test_time_slice_record_parses_json_payload() -> None:
    record = TimeSliceRecord.model_validate(
        {"startTime": "2024-01-01T00:00:00Z", "stopTime": "2024-01-01T00:00:01.250000Z"}
    )

    assert record.to_slice().duration == timedelta(milliseconds=1250)


def test_time_slice_record_rejects_reversed_bounds() -> None:
    with pytest.raises(ValidationError):
        TimeSliceRecord(start_time=T0 + timedelta(seconds=1), stop_time=T0)


def test_finished_tracker_serializes_like_a_slice(clock) -> None:
    tracker = SyncTimeTracker()
    tracker.track(lambda: clock.advance(3))

    record = TimeSliceRecord.from_slice(tracker)

    assert record.start_time == clock.at(0)
    assert record.stop_time == clock.at(3)


def test_group_record_keeps_nested_structure() -> None:
    nested = TimeSliceGroup([TimeSlice(T0 + timedelta(seconds=2), T0 + timedelta(seconds=3))])
    group = TimeSliceGroup([TimeSlice(T0, T0 + timedelta(seconds=1)), nested])

    payload = TimeSliceGroupRecord.from_group(group).model_dump(mode="json", by_alias=True)
    restored = TimeSliceGroupRecord.model_validate(payload).to_group()

    assert "slices" in payload["slices"][1]
    assert isinstance(restored.slices[1], TimeSliceGroup)
    assert restored.duration == timedelta(seconds=3)
    assert restored.inner_duration == timedelta(seconds=2)


def test_group_record_requires_entries() -> None:
    with pytest.raises(ValidationError):
        TimeSliceGroupRecord(slices=[])


def test_timing_log_accepts_builder_key_alias() -> None:
    log = TimingLog.model_validate(
        {
            "actions": [
                {
                    "builderKey": "pkg:builder",
                    "stages": [{"label": "Build", "slices": []}],
                }
            ]
        }
    )

    assert log.actions[0].builder_key == "pkg:builder"
    assert log.actions[0].stages[0].label == "Build"
