from __future__ import annotations

import asyncio
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from slice_timing.clock import use_clock

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


class ManualClock:
    """Clock that only moves when told to.

    ``advance`` stands in for busy work inside tracked code. ``sleep`` suspends
    the caller and advances the clock from a plain loop callback, which no
    tracker intercepts, so that time shows up as suspended time.
    """

    def __init__(self, start: datetime = _EPOCH) -> None:
        self.start = start
        self._current = start

    def now(self) -> datetime:
        return self._current

    def advance(self, milliseconds: float) -> None:
        self._current += timedelta(milliseconds=milliseconds)

    def at(self, milliseconds: float) -> datetime:
        return self.start + timedelta(milliseconds=milliseconds)

    async def sleep(self, milliseconds: float) -> None:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def wake() -> None:
            self.advance(milliseconds)
            future.set_result(None)

        loop.call_soon(wake)
        await future


@pytest.fixture()
def clock() -> Iterator[ManualClock]:
    manual = ManualClock()
    with use_clock(manual):
        yield manual
