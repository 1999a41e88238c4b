"""
src/engine/range_resolver.py

Resolves the [start, end] instants a chart must cover.

Each bound is taken from the first source that provides it:
1. explicit start_date / end_date (when they parse)
2. the data itself: earliest / latest timestamp in a bounded sample of rows
3. relative_period "<N>d": the last N UTC days, today included
4. default: the trailing window of `default_window_days` UTC days, today included

An inverted range is swapped, never rejected.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Iterator, Literal, Optional, Sequence, Tuple

from .chart_request import ChartRequest, SeriesInput
from .timestamps import MIN_YEAR, Clock, parse_timestamp, today_utc, utc_now
from src.data.rows import get_path

logger = logging.getLogger(__name__)

BoundSource = Literal["explicit", "inferred", "relative", "default"]

DEFAULT_SAMPLE_LIMIT = 1000
DEFAULT_WINDOW_DAYS = 30

# Used when the request doesn't name the timestamp field
DEFAULT_TIME_FIELDS: Tuple[str, ...] = ("createdAt", "date")

_RELATIVE_PERIOD = re.compile(r"^\s*(\d+)\s*d\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ResolvedRange:
    """
    start/end: aware UTC datetimes, start <= end
    start_source/end_source: where each bound came from (explicit, inferred, relative, default)
    swapped: True if the bounds arrived inverted
    """
    start: datetime
    end: datetime
    start_source: BoundSource
    end_source: BoundSource
    swapped: bool = False


def time_fields_for(time_field: Optional[str]) -> Tuple[str, ...]:
    """
    Candidate timestamp paths: the configured one, or the defaults (createdAt, then date).
    """
    if time_field:
        return (time_field,)
    return DEFAULT_TIME_FIELDS


def row_timestamp(row, time_fields: Sequence[str]) -> Optional[datetime]:
    """
    Timestamp of a row: first candidate path holding a value, parsed.
    A present but unparseable value is final (no fallback to the next candidate).
    """
    for path in time_fields:
        raw = get_path(row, path)
        if raw is not None:
            return parse_timestamp(raw)
    return None


def parse_relative_period(value: Optional[str]) -> Optional[int]:
    """
    "7d" -> 7. Anything else (including "0d") -> None.
    """
    if not value:
        return None
    m = _RELATIVE_PERIOD.match(value)
    if not m:
        return None
    days = int(m.group(1))
    return days if days >= 1 else None


def trailing_window_start(today: datetime, days: int) -> Optional[datetime]:
    """
    Start of the window of `days` UTC days ending today, or None if it falls before MIN_YEAR.
    """
    try:
        start = today - timedelta(days=days - 1)
    except OverflowError:
        return None
    return start if start.year >= MIN_YEAR else None


def _sample_rows(series: Iterable[SeriesInput], limit: int) -> Iterator:
    taken = 0
    for s in series:
        for row in s.rows or []:
            if taken >= limit:
                return
            taken += 1
            yield row


def infer_bounds(
    series: Sequence[SeriesInput],
    time_fields: Sequence[str],
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Earliest and latest parseable timestamps among the first `sample_limit` rows across all series.
    """
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None
    scanned = 0
    parsed = 0

    for row in _sample_rows(series, sample_limit):
        scanned += 1
        ts = row_timestamp(row, time_fields)
        if ts is None:
            continue
        parsed += 1
        if earliest is None or ts < earliest:
            earliest = ts
        if latest is None or ts > latest:
            latest = ts

    logger.debug("Range inference scanned=%d parsed=%d", scanned, parsed)
    return earliest, latest


def resolve_range(
    request: ChartRequest,
    series: Sequence[SeriesInput],
    *,
    clock: Clock = utc_now,
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    default_window_days: int = DEFAULT_WINDOW_DAYS,
) -> ResolvedRange:
    """
    Resolves the chart range following the order documented in the module docstring.
    `series` must be the normalized series (each one carrying its rows).
    """
    start = parse_timestamp(request.start_date)
    end = parse_timestamp(request.end_date)
    start_src: Optional[BoundSource] = "explicit" if start is not None else None
    end_src: Optional[BoundSource] = "explicit" if end is not None else None

    if request.start_date is not None and start is None:
        logger.info("Ignoring unparseable start_date=%r", request.start_date)
    if request.end_date is not None and end is None:
        logger.info("Ignoring unparseable end_date=%r", request.end_date)

    if start is None or end is None:
        earliest, latest = infer_bounds(series, time_fields_for(request.time_field), sample_limit)
        if start is None and earliest is not None:
            start, start_src = earliest, "inferred"
        if end is None and latest is not None:
            end, end_src = latest, "inferred"

    if start is None or end is None:
        days = parse_relative_period(request.relative_period)
        if request.relative_period and days is None:
            logger.info("Ignoring unsupported relative_period=%r", request.relative_period)
        today = today_utc(clock)
        window_start = trailing_window_start(today, days) if days is not None else None
        if days is not None and window_start is None:
            logger.info("Ignoring out of range relative_period=%r", request.relative_period)
        if window_start is not None:
            if start is None:
                start, start_src = window_start, "relative"
            if end is None:
                end, end_src = today, "relative"

    if start is None or end is None:
        today = today_utc(clock)
        if start is None:
            start, start_src = trailing_window_start(today, default_window_days) or today, "default"
        if end is None:
            end, end_src = today, "default"

    swapped = start > end
    if swapped:
        logger.info("Range start %s is after end %s; swapping", start.isoformat(), end.isoformat())
        start, end = end, start
        start_src, end_src = end_src, start_src

    logger.info(
        "Resolved range %s .. %s (start=%s, end=%s)",
        start.isoformat(), end.isoformat(), start_src, end_src,
    )
    return ResolvedRange(start=start, end=end, start_source=start_src, end_source=end_src, swapped=swapped)  # type: ignore[arg-type]