"""Exceptions raised by trackers and slices."""

from __future__ import annotations


class TimingError(Exception):
    """Base class for slice-timing errors."""


class InvalidStateError(TimingError):
    """Raised when a tracker or slice is used out of its lifecycle order."""


class UnsupportedOperationError(TimingError):
    """Raised by no-op trackers when they are read as if they held data."""

    def __init__(self, message: str = "Unsupported in no-op implementation") -> None:
        super().__init__(message)
