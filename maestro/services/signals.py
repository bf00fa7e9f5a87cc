"""
Small numeric/time helpers shared by both engines.

`mean([])` is NaN, and every comparison against NaN is False, so a
predicate fed a too-short window simply does not fire.
"""
from __future__ import annotations

import calendar
from datetime import datetime
from typing import Sequence, TypeVar

T = TypeVar("T")

NAN = float("nan")


def mean(values: Sequence[float]) -> float:
    if not values:
        return NAN
    return sum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    if not values:
        return NAN
    avg = mean(values)
    return sum((v - avg) ** 2 for v in values) / len(values)


def tail(values: Sequence[T], n: int) -> list[T]:
    """Last `n` items (fewer if the sequence is shorter)."""
    return list(values[-n:]) if n > 0 else []


def naive_local(dt: datetime) -> datetime:
    """Aware datetimes are converted to local wall-clock and stripped."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def one_month_before(dt: datetime) -> datetime:
    """Same wall-clock time one calendar month earlier (day clamped to month end)."""
    year, month = (dt.year, dt.month - 1) if dt.month > 1 else (dt.year - 1, 12)
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def minutes_of_day(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)
