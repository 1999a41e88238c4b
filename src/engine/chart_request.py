"""
src/engine/chart_request.py

Defines the structured "ChartRequest" the engine consumes and the "ChartResult" it returns.
A ChartRequest is produced by the caller (an API handler, an agent tool, the CLI) from rows it already fetched and authorized.

Then ChartRequest is executed by chart_engine.py.

Wire names are camelCase (valueField, startDate, zeroFill...), attribute names are snake_case.
Both are accepted on input; results are dumped with by_alias=True to get the wire names back.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Bucket widths supported by the bucket generator. Anything else is a caller bug.
Granularity = Literal["hour", "day", "week", "month"]

# How a series is aggregated into its buckets
AggregationMode = Literal["sum", "count"]

Number = Union[int, float]


class _WireModel(BaseModel):
    """
    Base model accepting both camelCase (wire) and snake_case (python) field names.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChartOptions(_WireModel):
    """
    Output options.

    - zero_fill: report buckets without data as fill_value (default) instead of None
    - fill_value: value used for empty buckets when zero_fill is on
    """
    zero_fill: bool = True
    fill_value: Number = 0


class SeriesInput(_WireModel):
    """
    One logical line on the chart.

    - metric: semantic name of the measured quantity ("cash", "orders_count"...)
    - label: legend label, defaults to metric or entity
    - value_field: record field to sum; inferred from metric when missing (see metrics.py)
    - rows: records for this series; the request's top-level rows are used when omitted
    - filter/entity: passthrough metadata, never interpreted by the engine
    """
    metric: Optional[str] = None
    label: Optional[str] = None
    entity: Optional[str] = None
    filter: Optional[dict[str, Any]] = None
    value_field: Optional[str] = None
    rows: Optional[list[dict[str, Any]]] = None


class ChartRequest(_WireModel):
    """
    Main structured request.

    Either `series` lists the lines to draw, or the single-series shorthand
    (metric/entity/label/value_field/filter at the top level) describes one line over `rows`.

    - time_field: dotted path of the timestamp in each row; createdAt then date when missing
    - granularity: bucket width (hour/day/week/month)
    - start_date/end_date: explicit bounds, ignored when they don't parse
    - relative_period: "<N>d" shorthand, used only if the bounds can't be resolved otherwise
    - chart_type, x_label, y_label: passthrough for the presentation layer
    """
    rows: Optional[list[dict[str, Any]]] = None
    series: Optional[list[SeriesInput]] = None

    metric: Optional[str] = None
    label: Optional[str] = None
    entity: Optional[str] = None
    filter: Optional[dict[str, Any]] = None
    value_field: Optional[str] = None

    time_field: Optional[str] = None
    granularity: Granularity = "day"

    start_date: Optional[Any] = None
    end_date: Optional[Any] = None
    relative_period: Optional[str] = None

    chart_type: str = "line"
    x_label: Optional[str] = None
    y_label: Optional[str] = None

    options: ChartOptions = Field(default_factory=ChartOptions)


class AggregatedSeries(_WireModel):
    """
    One aggregated line, values positioned 1:1 against ChartResult.buckets.

    The rows_* counters are diagnostics: rows_used + rows_skipped + rows_out_of_range == rows_total.
    invalid_values counts used rows whose value could not be read as a number (they added 0).
    """
    label: str
    values: list[Optional[Number]]
    metric: Optional[str] = None
    entity: Optional[str] = None
    value_field: Optional[str] = None
    mode: AggregationMode = "count"
    total: Number = 0

    rows_total: int = 0
    rows_used: int = 0
    rows_skipped: int = 0
    rows_out_of_range: int = 0
    invalid_values: int = 0


class RangeUsed(_WireModel):
    """
    Resolved range as UTC ISO dates (YYYY-MM-DD).
    """
    start: str
    end: str


class ChartResult(_WireModel):
    """
    Chart-ready output: the bucket axis plus one value array per series.
    diagnostic is set when no row produced a usable value (e.g. the metric field doesn't exist).
    """
    buckets: list[str]
    series: list[AggregatedSeries]
    range_used: RangeUsed

    granularity: Granularity = "day"
    chart_type: str = "line"
    x_label: Optional[str] = None
    y_label: Optional[str] = None

    summary: str = ""
    diagnostic: Optional[str] = None
