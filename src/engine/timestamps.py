"""
src/engine/timestamps.py

Timestamp parsing and UTC truncation helpers shared by the range resolver, the bucket generator and the aggregator.

Everything returned here is a timezone-aware datetime in UTC, so bucket boundaries never drift with the local timezone of the machine.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

import pandas as pd

# A clock returns "now". Injected wherever "today" matters (relative periods, default window).
Clock = Callable[[], datetime]

# One spare year on each side of datetime.min/max: week starts, ISO Thursdays and
# "next bucket" steps move a few days (or a month) past the timestamp itself.
MIN_YEAR = 2
MAX_YEAR = 9998


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parses a raw field value into an aware UTC datetime, or None if it can't be parsed.

    Accepted inputs:
    - datetime / pandas Timestamp (naive values are taken as UTC)
    - date (midnight UTC)
    - int/float: epoch milliseconds (what JS clients send for Date values)
    - strings: ISO-8601 only ("2025-08-01", "2025-08-01 10:00", "2025-08-01T10:00:00+02:00")
    Partial values ("10:30", "Aug 5") and relative words ("now", "today") are rejected: missing date parts
    would be filled from the wall clock or year 1, and only the data may decide its own timestamps.
    Instants outside years MIN_YEAR..MAX_YEAR are rejected too, so bucket arithmetic never leaves the datetime range.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        try:
            return _in_range(_as_utc(value))
        except OverflowError:
            return None

    if isinstance(value, date):
        return _in_range(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return _in_range(datetime.fromtimestamp(value / 1000.0, tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text or not any(ch.isdigit() for ch in text):
            return None
        try:
            ts = pd.to_datetime(text, utc=True, errors="coerce", format="ISO8601")
        except (ValueError, TypeError, OverflowError):
            return None
        if ts is None or pd.isna(ts):
            return None
        return _in_range(ts.to_pydatetime())

    return None


def _in_range(ts: datetime) -> Optional[datetime]:
    if not MIN_YEAR <= ts.year <= MAX_YEAR:
        return None
    return ts


def _as_utc(value: datetime) -> datetime:
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_hour(ts: datetime) -> datetime:
    ts = _as_utc(ts)
    return ts.replace(minute=0, second=0, microsecond=0)


def start_of_day(ts: datetime) -> datetime:
    ts = _as_utc(ts)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(ts: datetime) -> datetime:
    return start_of_day(ts).replace(day=1)


def today_utc(clock: Clock) -> datetime:
    """
    Start of the current UTC day according to the given clock.
    """
    return start_of_day(clock())
