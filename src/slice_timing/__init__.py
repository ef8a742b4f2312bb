"""Wall-clock time slices for nested synchronous and asyncio work."""

from .clock import Clock, SystemClock, get_clock, now, use_clock
from .errors import InvalidStateError, TimingError, UnsupportedOperationError
from .factory import build_async_tracker, build_sync_tracker
from .slices import TimeSlice, TimeSliceGroup
from .trackers import (
    AsyncTimeTracker,
    BaseAsyncTimeTracker,
    NoOpAsyncTimeTracker,
    NoOpSyncTimeTracker,
    SimpleAsyncTimeTracker,
    SyncTimeTracker,
    TimeTracker,
    TrackerState,
)

__all__ = [
    "AsyncTimeTracker",
    "BaseAsyncTimeTracker",
    "Clock",
    "InvalidStateError",
    "NoOpAsyncTimeTracker",
    "NoOpSyncTimeTracker",
    "SimpleAsyncTimeTracker",
    "SyncTimeTracker",
    "SystemClock",
    "TimeSlice",
    "TimeSliceGroup",
    "TimeTracker",
    "TimingError",
    "TrackerState",
    "UnsupportedOperationError",
    "build_async_tracker",
    "build_sync_tracker",
    "get_clock",
    "now",
    "use_clock",
]
