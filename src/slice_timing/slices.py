"""Immutable time slices and composite slice groups."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from .errors import InvalidStateError


class TimeSlice:
    """The timings of an operation: its start, stop and derived duration."""

    def __init__(self, start_time: datetime, stop_time: datetime) -> None:
        if stop_time < start_time:
            raise ValueError(f"stop_time {stop_time.isoformat()} precedes start_time {start_time.isoformat()}")
        self._start_time: datetime | None = start_time
        self._stop_time: datetime | None = stop_time

    @property
    def start_time(self) -> datetime:
        if self._start_time is None:
            raise InvalidStateError("start_time is not known yet")
        return self._start_time

    @property
    def stop_time(self) -> datetime:
        if self._stop_time is None:
            raise InvalidStateError("stop_time is not known yet")
        return self._stop_time

    @property
    def duration(self) -> timedelta:
        """Difference between ``stop_time`` and ``start_time``."""

        return self.stop_time - self.start_time

    def __repr__(self) -> str:
        return f"({self.start_time.isoformat()} + {self.duration})"


class TimeSliceGroup(TimeSlice):
    """Composite interval made of ordered, non-overlapping slices.

    Entries may themselves be groups. Gaps between entries are allowed and
    stand for time that was not attributed to the group (suspension or
    excluded nested work).
    """

    def __init__(self, slices: Iterable[TimeSlice] | None = None) -> None:
        self._slices: list[TimeSlice] = list(slices) if slices is not None else []

    @property
    def slices(self) -> list[TimeSlice]:
        return self._slices

    @property
    def start_time(self) -> datetime:
        return self._bounds()[0].start_time

    @property
    def stop_time(self) -> datetime:
        return self._bounds()[-1].stop_time

    @property
    def inner_duration(self) -> timedelta:
        """Sum of the entries' own durations, recursing into nested groups.

        This is the busy time of the group: gaps between entries and gaps
        inside nested groups are not counted.
        """

        total = timedelta()
        for entry in self._bounds():
            total += entry.inner_duration if isinstance(entry, TimeSliceGroup) else entry.duration
        return total

    def _bounds(self) -> list[TimeSlice]:
        if not self._slices:
            raise InvalidStateError("Time slice group has no slices")
        return self._slices

    def __repr__(self) -> str:
        return repr(self._slices)
