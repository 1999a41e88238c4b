"""
src/engine/buckets.py

Bucket keys and the bucket axis.

A bucket is a string key naming one time slot at the chosen granularity (UTC):
- hour:  "2025-08-01T10:00"
- day:   "2025-08-01"
- week:  "2025-W31"   (ISO-8601 week-year + week number)
- month: "2025-08"

bucket_key() is used both to build the axis and to place rows, so a row always lands on a key the axis knows
(or on none, when it is outside the resolved range).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Tuple

from .timestamps import start_of_day, start_of_hour, start_of_month

GRANULARITIES = ("hour", "day", "week", "month")


def _check_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unsupported granularity: {granularity!r} (expected one of {GRANULARITIES})")


def week_start(ts: datetime) -> datetime:
    """
    Monday 00:00 UTC of the week containing ts.
    """
    day = start_of_day(ts)
    return day - timedelta(days=day.weekday())


def iso_week(ts: datetime) -> Tuple[int, int]:
    """
    Returns (iso_year, week_number) for ts.

    The Thursday of the week decides the year: week 1 is the week holding the first Thursday of January,
    so 2024-12-30 is 2025-W01 and 2027-01-01 is 2026-W53.
    """
    thursday = week_start(ts) + timedelta(days=3)
    iso_year = thursday.year
    jan1 = datetime(iso_year, 1, 1, tzinfo=timezone.utc)
    week = (thursday - jan1).days // 7 + 1
    return iso_year, week


def bucket_key(ts: datetime, granularity: str) -> str:
    """
    Key of the bucket containing ts.
    """
    if granularity == "hour":
        return start_of_hour(ts).strftime("%Y-%m-%dT%H:00")
    if granularity == "day":
        return start_of_day(ts).strftime("%Y-%m-%d")
    if granularity == "week":
        year, week = iso_week(ts)
        return f"{year:04d}-W{week:02d}"
    if granularity == "month":
        return start_of_month(ts).strftime("%Y-%m")
    _check_granularity(granularity)
    raise AssertionError("unreachable")


def bucket_start(ts: datetime, granularity: str) -> datetime:
    """
    Start instant of the bucket containing ts.
    """
    if granularity == "hour":
        return start_of_hour(ts)
    if granularity == "day":
        return start_of_day(ts)
    if granularity == "week":
        return week_start(ts)
    if granularity == "month":
        return start_of_month(ts)
    _check_granularity(granularity)
    raise AssertionError("unreachable")


def _next_start(current: datetime, granularity: str) -> datetime:
    if granularity == "hour":
        return current + timedelta(hours=1)
    if granularity == "day":
        return current + timedelta(days=1)
    if granularity == "week":
        return current + timedelta(days=7)
    # month: day is always 1 here, so only year/month move
    if current.month == 12:
        return current.replace(year=current.year + 1, month=1)
    return current.replace(month=current.month + 1)


def iter_bucket_starts(start: datetime, end: datetime, granularity: str) -> Iterator[datetime]:
    """
    Yields the start of every bucket from the one containing start through the one containing end.
    """
    _check_granularity(granularity)
    current = bucket_start(start, granularity)
    last = bucket_start(end, granularity)
    while current <= last:
        yield current
        try:
            current = _next_start(current, granularity)
        except (OverflowError, ValueError):
            # last representable bucket (year 9999)
            return


def generate_buckets(start: datetime, end: datetime, granularity: str) -> List[str]:
    """
    Ordered, gapless list of bucket keys covering [start, end].

    The first key is the bucket containing start, the last one the bucket containing end
    (end does not need to sit on a boundary). An inverted range yields an empty list:
    the range resolver swaps bounds before calling this.
    """
    return [bucket_key(s, granularity) for s in iter_bucket_starts(start, end, granularity)]
