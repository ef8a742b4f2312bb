"""Runtime configuration and environment helpers for slice timing."""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_MODE = "full"
_DEFAULT_TIME_UNIT = "ms"
_MODES = {"full", "simple"}
_TIME_UNITS = {"ms", "s"}


@dataclass(frozen=True)
class TimingConfig:
    """Immutable tracker configuration."""

    enabled: bool
    mode: str
    track_nested: bool
    time_unit: str


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.lower() in {"1", "true", "yes", "on"}


def _parse_choice(value: str | None, fallback: str, choices: set[str]) -> str:
    if value is None:
        return fallback
    normalized = value.strip().lower()
    return normalized if normalized in choices else fallback


def load_config() -> TimingConfig:
    """Load configuration from environment variables, applying defaults."""

    return TimingConfig(
        enabled=_parse_bool(os.getenv("SLICE_TIMING_ENABLED"), True),
        mode=_parse_choice(os.getenv("SLICE_TIMING_MODE"), _DEFAULT_MODE, _MODES),
        track_nested=_parse_bool(os.getenv("SLICE_TIMING_TRACK_NESTED"), True),
        time_unit=_parse_choice(os.getenv("SLICE_TIMING_TIME_UNIT"), _DEFAULT_TIME_UNIT, _TIME_UNITS),
    )


config = load_config()
"""Singleton config loaded at import time for convenience."""
