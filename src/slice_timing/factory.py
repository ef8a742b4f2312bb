"""Build trackers from configuration so callers never branch on it."""

from __future__ import annotations

from .config import TimingConfig
from .config import config as default_config
from .trackers import AsyncTimeTracker, BaseAsyncTimeTracker, SyncTimeTracker


def build_sync_tracker(cfg: TimingConfig = default_config) -> SyncTimeTracker:
    if not cfg.enabled:
        return SyncTimeTracker.no_op()
    return SyncTimeTracker()


def build_async_tracker(cfg: TimingConfig = default_config) -> BaseAsyncTimeTracker:
    """Return a fresh async tracker for ``cfg``, or the shared no-op one when disabled."""

    if not cfg.enabled:
        return AsyncTimeTracker.no_op()
    if cfg.mode == "simple":
        return AsyncTimeTracker.simple()
    return AsyncTimeTracker(track_nested=cfg.track_nested)
