"""Time trackers: sync, simple async, fully intercepted async and no-op variants."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import TypeVar, cast

from .clock import now
from .errors import InvalidStateError, UnsupportedOperationError
from .scope import TrackingScope, install_task_factory
from .slices import TimeSlice, TimeSliceGroup

logger = logging.getLogger("slice_timing.trackers")

T = TypeVar("T")


class TrackerState(Enum):
    """Lifecycle of a tracker: NOT_STARTED -> TRACKING -> FINISHED."""

    NOT_STARTED = "not_started"
    TRACKING = "tracking"
    FINISHED = "finished"


class TimeTracker(ABC):
    """Lifecycle contract implemented by every tracker variant.

    A tracker is tracked exactly once. Its slice fields can only be read after
    it is finished.
    """

    @property
    @abstractmethod
    def state(self) -> TrackerState:
        """Current lifecycle state."""

    @property
    def is_started(self) -> bool:
        """Equivalent of ``is_tracking or is_finished``."""

        return self.state is not TrackerState.NOT_STARTED

    @property
    def is_tracking(self) -> bool:
        return self.state is TrackerState.TRACKING

    @property
    def is_finished(self) -> bool:
        return self.state is TrackerState.FINISHED

    @abstractmethod
    def track(self, action: Callable[[], T]) -> T:
        """Run ``action`` synchronously while tracking it."""

    def _ensure_not_started(self) -> None:
        if self.is_started:
            raise InvalidStateError(f"{type(self).__name__} can not be tracked twice")

    def _ensure_finished(self) -> None:
        if not self.is_finished:
            raise InvalidStateError(f"{type(self).__name__} can not be read before tracking is finished")


class BaseAsyncTimeTracker(TimeTracker):
    """Tracker that can also follow a coroutine until it settles."""

    @abstractmethod
    async def track_async(self, action: Callable[[], Awaitable[T]]) -> T:
        """Await ``action()`` while tracking it and return its result."""


class SyncTimeTracker(TimeSlice, TimeTracker):
    """Measures one contiguous burst of synchronous execution."""

    def __init__(self) -> None:
        self._start_time: datetime | None = None
        self._stop_time: datetime | None = None

    @classmethod
    def no_op(cls) -> NoOpSyncTimeTracker:
        return NoOpSyncTimeTracker.shared_instance

    @property
    def state(self) -> TrackerState:
        if self._start_time is None:
            return TrackerState.NOT_STARTED
        if self._stop_time is None:
            return TrackerState.TRACKING
        return TrackerState.FINISHED

    @property
    def start_time(self) -> datetime:
        self._ensure_finished()
        return super().start_time

    @property
    def stop_time(self) -> datetime:
        self._ensure_finished()
        return super().stop_time

    def start(self) -> None:
        """Start tracking; must be called once, before :meth:`stop`."""

        if self.is_started:
            raise InvalidStateError("SyncTimeTracker is already started")
        self._start_time = now()

    def stop(self) -> None:
        """Stop tracking; must be called once, after :meth:`start`."""

        if not self.is_tracking:
            raise InvalidStateError("SyncTimeTracker can only be stopped while tracking")
        self._stop_time = now()

    def split(self) -> TimeSlice:
        """Close the open interval at ``now`` and keep tracking from that instant.

        Returns the closed slice. The tracker stays in the tracking state with a
        fresh open interval, so the caller can carve busy time out of a burst
        without stopping it.
        """

        if not self.is_tracking:
            raise InvalidStateError("split() can only be called while tracking")
        current = now()
        closed = TimeSlice(cast(datetime, self._start_time), current)
        self._start_time = current
        return closed

    def track(self, action: Callable[[], T]) -> T:
        self._ensure_not_started()
        self.start()
        try:
            return action()
        finally:
            self.stop()

    def __repr__(self) -> str:
        if not self.is_finished:
            return f"<SyncTimeTracker {self.state.value}>"
        return super().__repr__()


class SimpleAsyncTimeTracker(TimeSliceGroup, BaseAsyncTimeTracker):
    """Tracks an async action as a single slice from invocation to completion.

    Time spent suspended counts as busy time. This is the coarse, low-overhead
    mode; use :class:`AsyncTimeTracker` to see individual bursts.
    """

    @property
    def state(self) -> TrackerState:
        if not self._slices:
            return TrackerState.NOT_STARTED
        return cast(SyncTimeTracker, self._slices[0]).state

    @property
    def start_time(self) -> datetime:
        self._ensure_finished()
        return super().start_time

    @property
    def stop_time(self) -> datetime:
        self._ensure_finished()
        return super().stop_time

    @property
    def inner_duration(self) -> timedelta:
        self._ensure_finished()
        return super().inner_duration

    def _begin(self) -> SyncTimeTracker:
        self._ensure_not_started()
        tracker = SyncTimeTracker()
        self._slices.append(tracker)
        tracker.start()
        return tracker

    def track(self, action: Callable[[], T]) -> T:
        tracker = self._begin()
        try:
            return action()
        finally:
            tracker.stop()

    async def track_async(self, action: Callable[[], Awaitable[T]]) -> T:
        tracker = self._begin()
        try:
            return await action()
        finally:
            tracker.stop()


class AsyncTimeTracker(TimeSliceGroup, BaseAsyncTimeTracker):
    """Records only the bursts in which tracked code actually runs.

    Every resumption of code inside the tracker's scope is reported to
    :meth:`_track_sync_slice`, which opens, continues or splits
    :class:`SyncTimeTracker` slices. With ``track_nested=False`` the time
    spent inside other trackers' scopes nested in this one is left out.
    """

    def __init__(self, track_nested: bool = True) -> None:
        super().__init__()
        self.track_nested = track_nested
        self._state = TrackerState.NOT_STARTED

    @classmethod
    def simple(cls) -> SimpleAsyncTimeTracker:
        return SimpleAsyncTimeTracker()

    @classmethod
    def no_op(cls) -> NoOpAsyncTimeTracker:
        return NoOpAsyncTimeTracker.shared_instance

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def start_time(self) -> datetime:
        self._ensure_finished()
        return super().start_time

    @property
    def stop_time(self) -> datetime:
        self._ensure_finished()
        return super().stop_time

    @property
    def inner_duration(self) -> timedelta:
        self._ensure_finished()
        return super().inner_duration

    def _track_sync_slice(self, owner: object, action: Callable[[], T]) -> T:
        # Dangling resumptions after the tracker completed.
        if self.is_finished:
            return action()

        last = self._slices[-1] if self._slices else None
        open_burst = last if isinstance(last, SyncTimeTracker) and last.is_tracking else None
        is_nested_run = open_burst is not None
        is_excluded_nested_track = not self.track_nested and owner is not self

        # Carve a nested tracker's synchronous run out of the open burst.
        if open_burst is not None and is_excluded_nested_track:
            self._slices[-1] = open_burst.split()
            try:
                return action()
            finally:
                open_burst.split()  # discarded: belongs to the nested tracker
                self._slices.append(open_burst)

        # Nested async tracks outside of a burst are invisible.
        if is_excluded_nested_track:
            return action()

        # The open burst just continues.
        if is_nested_run:
            return action()

        burst = SyncTimeTracker()
        self._slices.append(burst)
        return burst.track(action)

    def track(self, action: Callable[[], T]) -> T:
        self._ensure_not_started()
        self._state = TrackerState.TRACKING
        scope = TrackingScope.open(self)
        try:
            return scope.run(action)
        finally:
            self._finish()

    async def track_async(self, action: Callable[[], Awaitable[T]]) -> T:
        self._ensure_not_started()
        self._state = TrackerState.TRACKING
        scope = TrackingScope.open(self)
        install_task_factory(asyncio.get_running_loop())
        try:
            return await scope.wrap(action)
        finally:
            try:
                # One loop iteration so resumptions triggered by the settlement close their slices.
                await asyncio.sleep(0)
            finally:
                self._finish()

    def _finish(self) -> None:
        self._state = TrackerState.FINISHED
        if self._slices and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "tracker=%s track_nested=%s slices=%d duration=%s inner=%s",
                type(self).__name__,
                self.track_nested,
                len(self._slices),
                self.duration,
                self.inner_duration,
            )


class NoOpSyncTimeTracker(SyncTimeTracker):
    """Disabled tracker: runs actions untouched and refuses to be read."""

    shared_instance: NoOpSyncTimeTracker

    @property
    def state(self) -> TrackerState:
        raise UnsupportedOperationError()

    @property
    def is_started(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def is_tracking(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def is_finished(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def start_time(self) -> datetime:
        raise UnsupportedOperationError()

    @property
    def stop_time(self) -> datetime:
        raise UnsupportedOperationError()

    @property
    def duration(self) -> timedelta:
        raise UnsupportedOperationError()

    def start(self) -> None:
        raise UnsupportedOperationError()

    def stop(self) -> None:
        raise UnsupportedOperationError()

    def split(self) -> TimeSlice:
        raise UnsupportedOperationError()

    def track(self, action: Callable[[], T]) -> T:
        return action()

    def __repr__(self) -> str:
        return "<NoOpSyncTimeTracker>"


NoOpSyncTimeTracker.shared_instance = NoOpSyncTimeTracker()


class NoOpAsyncTimeTracker(TimeSliceGroup, BaseAsyncTimeTracker):
    """Disabled async tracker: runs actions untouched and refuses to be read."""

    shared_instance: NoOpAsyncTimeTracker

    @property
    def state(self) -> TrackerState:
        raise UnsupportedOperationError()

    @property
    def is_started(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def is_tracking(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def is_finished(self) -> bool:
        raise UnsupportedOperationError()

    @property
    def slices(self) -> list[TimeSlice]:
        raise UnsupportedOperationError()

    @property
    def start_time(self) -> datetime:
        raise UnsupportedOperationError()

    @property
    def stop_time(self) -> datetime:
        raise UnsupportedOperationError()

    @property
    def duration(self) -> timedelta:
        raise UnsupportedOperationError()

    @property
    def inner_duration(self) -> timedelta:
        raise UnsupportedOperationError()

    def track(self, action: Callable[[], T]) -> T:
        return action()

    async def track_async(self, action: Callable[[], Awaitable[T]]) -> T:
        return await action()

    def __repr__(self) -> str:
        return "<NoOpAsyncTimeTracker>"


NoOpAsyncTimeTracker.shared_instance = NoOpAsyncTimeTracker()
