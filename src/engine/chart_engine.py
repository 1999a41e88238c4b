"""
src/engine/chart_engine.py

Executes a ChartRequest on in-memory rows and returns a chart-ready ChartResult.

Pipeline (strictly forward, nothing shared between calls):
1. normalize_series: request -> ordered list of series, each with its rows
2. resolve_range: explicit dates, data inference, relative period or default window
3. generate_buckets: the gapless bucket axis for the granularity
4. aggregate_series: one value array per series, aligned with the axis

The engine never raises for data-quality problems (bad timestamps, non-numeric values, missing rows):
they are counted on each series and, when nothing at all could be aggregated, reported in `diagnostic`.
Caller mistakes (unknown granularity, malformed request shape) raise.
"""

from __future__ import annotations

import logging
from itertools import chain
from typing import Any, Mapping, Optional, Sequence, Union

from src.data.rows import numeric_fields
from .aggregator import aggregate_series
from .buckets import generate_buckets
from .chart_request import AggregatedSeries, ChartRequest, ChartResult, RangeUsed, SeriesInput
from .normalizer import normalize_series
from .range_resolver import DEFAULT_SAMPLE_LIMIT, DEFAULT_WINDOW_DAYS, resolve_range, time_fields_for
from .timestamps import Clock, utc_now

logger = logging.getLogger(__name__)


class ChartEngine:
    """
    Executes ChartRequests.

    The engine only holds immutable configuration (clock, sample limit, default window),
    so a single instance can serve concurrent requests from several threads.
    The clock is injected so "today" (relative periods, default window) is deterministic in tests.
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        default_window_days: int = DEFAULT_WINDOW_DAYS,
        default_time_field: Optional[str] = None,
    ) -> None:
        if sample_limit < 1:
            raise ValueError("sample_limit must be >= 1")
        if default_window_days < 1:
            raise ValueError("default_window_days must be >= 1")
        self.clock = clock or utc_now
        self.sample_limit = sample_limit
        self.default_window_days = default_window_days
        self.default_time_field = default_time_field

    def aggregate(self, request: Union[ChartRequest, Mapping[str, Any]]) -> ChartResult:
        """
        Runs the whole pipeline for one request.
        A plain mapping (e.g. a decoded JSON body) is validated into a ChartRequest first.
        """
        if not isinstance(request, ChartRequest):
            request = ChartRequest.model_validate(request)
        if request.time_field is None and self.default_time_field:
            request = request.model_copy(update={"time_field": self.default_time_field})

        series = normalize_series(request)
        rng = resolve_range(
            request,
            series,
            clock=self.clock,
            sample_limit=self.sample_limit,
            default_window_days=self.default_window_days,
        )
        buckets = generate_buckets(rng.start, rng.end, request.granularity)

        time_fields = time_fields_for(request.time_field)
        aggregated = [
            aggregate_series(s, buckets, request.granularity, time_fields=time_fields, options=request.options)
            for s in series
        ]

        result = ChartResult(
            buckets=buckets,
            series=aggregated,
            range_used=RangeUsed(start=rng.start.date().isoformat(), end=rng.end.date().isoformat()),
            granularity=request.granularity,
            chart_type=request.chart_type,
            x_label=request.x_label,
            y_label=request.y_label,
            summary=self._build_summary(request, aggregated),
            diagnostic=self._build_diagnostic(series, aggregated),
        )

        logger.info(
            "Chart computed (granularity=%s, buckets=%d, series=%d, diagnostic=%s)",
            request.granularity, len(buckets), len(aggregated), result.diagnostic is not None,
        )
        return result

    @staticmethod
    def _build_summary(request: ChartRequest, aggregated: Sequence[AggregatedSeries]) -> str:
        """
        One line for quick display, e.g. "Computed cash for orders (total 4500)".
        """
        parts = []
        for s in aggregated:
            name = s.label
            if s.entity and s.entity != s.label:
                name = f"{name} for {s.entity}"
            parts.append(f"{name} (total {_format_number(s.total)})")
        return f"Computed {', '.join(parts)} by {request.granularity}"

    @staticmethod
    def _build_diagnostic(series: Sequence[SeriesInput], aggregated: Sequence[AggregatedSeries]) -> Optional[str]:
        """
        Returns a message when no series aggregated a single usable row, listing the numeric fields seen in the data
        so the caller can suggest an alternative metric. None otherwise.
        """
        usable = 0
        for s in aggregated:
            if s.mode == "count":
                usable += s.rows_used
            else:
                usable += s.rows_used - s.invalid_values
        if usable > 0:
            return None

        requested = ", ".join(
            dict.fromkeys(s.metric or s.value_field or "count" for s in aggregated)
        )
        message = f'No numeric data found for metric "{requested}".'

        fields_to_check = [s.value_field for s in aggregated if s.mode == "sum" and s.value_field]
        if fields_to_check:
            message += f' The field "{", ".join(dict.fromkeys(fields_to_check))}" either doesn\'t exist or contains no numeric values.'

        available = numeric_fields(chain.from_iterable(s.rows or [] for s in series))
        if available:
            message += f" Available numeric fields: {', '.join(available)}"
        else:
            message += " No numeric fields found in the data."

        logger.info("Diagnostic: %s", message)
        return message


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def aggregate(request: Union[ChartRequest, Mapping[str, Any]], *, clock: Optional[Clock] = None) -> ChartResult:
    """
    Single entry point for one-off calls: aggregate(request) -> ChartResult.
    """
    return ChartEngine(clock=clock).aggregate(request)


__all__ = ["ChartEngine", "aggregate"]
