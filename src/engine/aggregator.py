"""
src/engine/aggregator.py

Aggregates the rows of one series onto the bucket axis.

For each row:
- read the timestamp (dotted path), skip the row if it can't be parsed
- compute its bucket key with the same function used to build the axis
- drop it if that key is not on the axis (outside the resolved range, never widens it)
- count mode: +1, sum mode: + the coerced value of the value field (0 if it isn't numeric)

Bad rows are counted on the result, never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from src.data.rows import coerce_number, get_path
from .buckets import bucket_key
from .chart_request import AggregatedSeries, ChartOptions, Number, SeriesInput
from .metrics import MetricResolution, resolve_value_field
from .range_resolver import row_timestamp

logger = logging.getLogger(__name__)


def aggregate_series(
    series: SeriesInput,
    buckets: Sequence[str],
    granularity: str,
    *,
    time_fields: Sequence[str],
    options: Optional[ChartOptions] = None,
    resolution: Optional[MetricResolution] = None,
) -> AggregatedSeries:
    """
    Aggregates a normalized series (rows already attached) against the bucket keys.

    `resolution` can be passed to force the aggregation mode; by default it is resolved
    from the series' metric/value_field and its rows (see metrics.py).
    """
    options = options or ChartOptions()
    rows: List[Any] = list(series.rows or [])
    if resolution is None:
        resolution = resolve_value_field(series.metric, series.value_field, rows)

    # Ordered maps: bucket -> accumulated value, bucket -> contributing rows
    sums: Dict[str, Number] = {b: 0 for b in buckets}
    hits: Dict[str, int] = {b: 0 for b in buckets}

    used = skipped = out_of_range = invalid = 0

    for row in rows:
        ts = row_timestamp(row, time_fields)
        if ts is None:
            skipped += 1
            continue

        key = bucket_key(ts, granularity)
        if key not in sums:
            out_of_range += 1
            continue

        if resolution.mode == "count":
            sums[key] += 1
        else:
            value = coerce_number(get_path(row, resolution.value_field or ""))
            if value is None:
                invalid += 1
                value = 0
            sums[key] += value

        hits[key] += 1
        used += 1

    fill = options.fill_value if options.zero_fill else None
    values: List[Optional[Number]] = [sums[b] if hits[b] else fill for b in buckets]
    total = sum(sums.values())

    if skipped or out_of_range or invalid:
        logger.debug(
            "Series %r: skipped=%d (bad timestamp) out_of_range=%d invalid_values=%d",
            series.label, skipped, out_of_range, invalid,
        )
    logger.info(
        "Aggregated series %r (mode=%s, field=%s, rows=%d, used=%d, total=%s)",
        series.label, resolution.mode, resolution.value_field, len(rows), used, total,
    )

    return AggregatedSeries(
        label=series.label or series.metric or "series",
        values=values,
        metric=series.metric,
        entity=series.entity,
        value_field=resolution.value_field,
        mode=resolution.mode,
        total=total,
        rows_total=len(rows),
        rows_used=used,
        rows_skipped=skipped,
        rows_out_of_range=out_of_range,
        invalid_values=invalid,
    )
