"""Shared validation helpers."""

from __future__ import annotations

import datetime as dt
import math

from .errors import ConfigurationError


def validate_count(count: int) -> None:
    """Ensure *count* is a usable occurrence count."""
    if isinstance(count, bool) or not isinstance(count, int):
        msg = f"count must be an integer, got {type(count).__name__}"
        raise ConfigurationError(msg)

    if count <= 0:
        msg = f"count must be positive, got {count}"
        raise ConfigurationError(msg)


def interval_seconds(interval: dt.timedelta | float) -> float:
    """Return *interval* in seconds after checking it is finite and >= 0."""
    if isinstance(interval, dt.timedelta):
        seconds = interval.total_seconds()
    elif isinstance(interval, bool) or not isinstance(interval, int | float):
        msg = f"interval must be a timedelta or a number, got {interval!r}"
        raise ConfigurationError(msg)
    else:
        seconds = float(interval)

    if not (seconds >= 0 and math.isfinite(seconds)):
        msg = "interval must be >= 0 and finite"
        raise ConfigurationError(msg)
    return seconds


def epoch_seconds(when: dt.datetime | float) -> float:
    """Return *when* as epoch seconds.

    Naive datetimes are interpreted in local time, as
    :meth:`datetime.datetime.timestamp` does.
    """
    if isinstance(when, dt.datetime):
        return when.timestamp()
    if isinstance(when, bool) or not isinstance(when, int | float):
        msg = f"time must be a datetime or epoch seconds, got {when!r}"
        raise ConfigurationError(msg)
    if not math.isfinite(when):
        msg = "time must be finite"
        raise ConfigurationError(msg)
    return float(when)
