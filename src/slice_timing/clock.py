"""Injectable wall-clock used by every tracker."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current wall-clock time."""

    def now(self) -> datetime:  # pragma: no cover - Protocol
        """Return the current timestamp."""


class SystemClock:
    """Clock backed by the system wall clock (UTC)."""

    def now(self) -> datetime:
        return datetime.now(UTC)


_SYSTEM_CLOCK = SystemClock()
_active_clock: ContextVar[Clock] = ContextVar("slice_timing_clock", default=_SYSTEM_CLOCK)


def get_clock() -> Clock:
    """Return the clock active in the current context."""

    return _active_clock.get()


def now() -> datetime:
    """Read the current timestamp from the active clock."""

    return _active_clock.get().now()


@contextmanager
def use_clock(clock: Clock) -> Iterator[Clock]:
    """Install ``clock`` for the dynamic extent of the ``with`` block.

    The clock lives in a context variable, so asyncio tasks created inside the
    block keep using it after the block exits.
    """

    token = _active_clock.set(clock)
    try:
        yield clock
    finally:
        _active_clock.reset(token)
