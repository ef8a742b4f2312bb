from __future__ import annotations

import pytest

from slice_timing.config import TimingConfig, load_config
from slice_timing.factory import build_async_tracker, build_sync_tracker
from slice_timing.trackers import (
    AsyncTimeTracker,
    NoOpAsyncTimeTracker,
    NoOpSyncTimeTracker,
    SimpleAsyncTimeTracker,
    SyncTimeTracker,
)

_ENV_VARS = (
    "SLICE_TIMING_ENABLED",
    "SLICE_TIMING_MODE",
    "SLICE_TIMING_TRACK_NESTED",
    "SLICE_TIMING_TIME_UNIT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_config_defaults() -> None:
    cfg = load_config()

    assert cfg == TimingConfig(enabled=True, mode="full", track_nested=True, time_unit="ms")


def test_load_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLICE_TIMING_ENABLED", "no")
    monkeypatch.setenv("SLICE_TIMING_MODE", " Simple ")
    monkeypatch.setenv("SLICE_TIMING_TRACK_NESTED", "0")
    monkeypatch.setenv("SLICE_TIMING_TIME_UNIT", "s")

    cfg = load_config()

    assert cfg == TimingConfig(enabled=False, mode="simple", track_nested=False, time_unit="s")


def test_unknown_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLICE_TIMING_MODE", "sampling")
    monkeypatch.setenv("SLICE_TIMING_TIME_UNIT", "minutes")

    cfg = load_config()

    assert cfg.mode == "full"
    assert cfg.time_unit == "ms"


def test_build_trackers_for_each_mode() -> None:
    full = TimingConfig(enabled=True, mode="full", track_nested=False, time_unit="ms")
    simple = TimingConfig(enabled=True, mode="simple", track_nested=True, time_unit="ms")
    disabled = TimingConfig(enabled=False, mode="full", track_nested=True, time_unit="ms")

    full_tracker = build_async_tracker(full)
    assert isinstance(full_tracker, AsyncTimeTracker)
    assert full_tracker.track_nested is False
    assert isinstance(build_async_tracker(simple), SimpleAsyncTimeTracker)
    assert isinstance(build_async_tracker(disabled), NoOpAsyncTimeTracker)

    assert type(build_sync_tracker(full)) is SyncTimeTracker
    assert isinstance(build_sync_tracker(disabled), NoOpSyncTimeTracker)


def test_build_async_tracker_returns_fresh_instances() -> None:
    cfg = TimingConfig(enabled=True, mode="full", track_nested=True, time_unit="ms")

    assert build_async_tracker(cfg) is not build_async_tracker(cfg)
