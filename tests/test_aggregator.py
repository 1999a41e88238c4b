"""
tests/test_aggregator.py

Series aggregation tests:
- metric -> aggregation mode resolution (sum on a field vs count)
- per-bucket accumulation, value coercion, zero-fill / null behaviour
- bad rows are counted and skipped, never raised
"""

from __future__ import annotations

import pytest

from src.engine.aggregator import aggregate_series
from src.engine.chart_request import ChartOptions, SeriesInput
from src.engine.metrics import MetricRule, infer_field_from_metric, resolve_value_field

BUCKETS = ["2025-08-01", "2025-08-02", "2025-08-03"]
TIME_FIELDS = ("createdAt", "date")


def _aggregate(rows, options=None, **series_kwargs):
    series = SeriesInput(rows=rows, label=series_kwargs.pop("label", "s"), **series_kwargs)
    return aggregate_series(series, BUCKETS, "day", time_fields=TIME_FIELDS, options=options)


# ---------------------------
# Metric resolution
# ---------------------------

def test_explicit_value_field_sums():
    res = resolve_value_field("orders_count", "total", [])
    assert (res.mode, res.value_field) == ("sum", "total")


def test_metric_present_in_rows_is_summed(orders):
    res = resolve_value_field("cash", None, orders)
    assert (res.mode, res.value_field) == ("sum", "cash")


def test_metric_keyword_maps_to_field_when_not_in_rows():
    res = resolve_value_field("cash", None, [{"createdAt": "2025-08-01", "total": 5}])
    assert (res.mode, res.value_field) == ("sum", "total")


@pytest.mark.parametrize(
    "metric, expected",
    [
        ("Total revenue", ("sum", "total")),
        ("sales_price", ("sum", "total")),  # first rule wins
        ("unit price", ("sum", "price")),
        ("stock level", ("sum", "stock")),
        ("qty_sold", ("sum", "quantity")),
        ("orders_count", ("count", None)),
        ("total_users", ("count", None)),  # count keyword beats the "total" rule
        ("appointments", ("count", None)),
        ("weather", ("count", None)),
        (None, ("count", None)),
        ("   ", ("count", None)),
    ],
)
def test_metric_keyword_resolution(metric, expected):
    res = resolve_value_field(metric, None, [])
    assert (res.mode, res.value_field) == expected


def test_real_field_beats_count_keyword():
    # a "count" column that really exists is summed
    res = resolve_value_field("count", None, [{"count": 3}])
    assert (res.mode, res.value_field) == ("sum", "count")


def test_custom_rule_table():
    rules = (MetricRule(keywords=("weight", "kg"), field="weight_kg"),)
    assert infer_field_from_metric("shipped kg", rules) == "weight_kg"
    assert infer_field_from_metric("revenue", rules) is None


# ---------------------------
# Aggregation
# ---------------------------

def test_sum_per_day(orders):
    out = _aggregate(orders, metric="cash")
    assert out.mode == "sum"
    assert out.value_field == "cash"
    assert out.values == [1000, 1500, 2000]
    assert out.total == 4500
    assert out.rows_used == 3


def test_count_per_day():
    rows = [
        {"createdAt": "2025-08-01T01:00:00Z"},
        {"createdAt": "2025-08-01T02:00:00Z"},
        {"createdAt": "2025-08-03T02:00:00Z"},
    ]
    out = _aggregate(rows, metric="orders_count")
    assert out.mode == "count"
    assert out.value_field is None
    assert out.values == [2, 0, 1]
    assert out.total == 3


def test_formatted_strings_are_coerced_and_bad_values_add_zero():
    rows = [
        {"createdAt": "2025-08-01", "total": "$1,200.50"},
        {"createdAt": "2025-08-01", "total": "n/a"},
        {"createdAt": "2025-08-02", "total": None},
        {"createdAt": "2025-08-02", "total": "300"},
    ]
    out = _aggregate(rows, value_field="total")
    assert out.values == [1200.5, 300, 0]
    assert out.invalid_values == 2
    assert out.rows_used == 4


def test_bad_timestamps_and_out_of_range_rows_are_counted():
    rows = [
        {"createdAt": "2025-08-01", "cash": 10},
        {"createdAt": "yesterday", "cash": 10},
        {"createdAt": None, "date": "2025-08-02", "cash": 5},  # falls back to date
        {"createdAt": "2025-08-04", "cash": 99},  # one day after the axis
        {"cash": 7},
    ]
    out = _aggregate(rows, metric="cash")
    assert out.values == [10, 5, 0]
    assert out.total == 15
    assert out.rows_skipped == 2
    assert out.rows_out_of_range == 1
    assert out.rows_used + out.rows_skipped + out.rows_out_of_range == out.rows_total == 5


def test_zero_fill_off_reports_none_only_for_buckets_without_rows():
    # a bucket whose rows sum to 0 is "0", a bucket without rows is "no data"
    rows = [
        {"createdAt": "2025-08-01", "cash": 10},
        {"createdAt": "2025-08-02", "cash": 0},
    ]
    out = _aggregate(rows, options=ChartOptions(zero_fill=False), metric="cash")
    assert out.values == [10, 0, None]
    assert out.total == 10


def test_fill_value_is_used_for_empty_buckets_only():
    rows = [{"createdAt": "2025-08-02", "cash": 4}]
    out = _aggregate(rows, options=ChartOptions(zero_fill=True, fill_value=-1), metric="cash")
    assert out.values == [-1, 4, -1]
    assert out.total == 4


def test_series_without_rows_is_all_zero():
    out = _aggregate([], metric="cash")
    assert out.values == [0, 0, 0]
    assert out.total == 0
    assert out.rows_total == 0


def test_epoch_millis_and_datetime_objects_are_accepted():
    from datetime import datetime, timezone

    rows = [
        {"createdAt": 1754006400000},  # 2025-08-01T00:00:00Z
        {"createdAt": datetime(2025, 8, 3, 12, tzinfo=timezone.utc)},
    ]
    out = _aggregate(rows)
    assert out.values == [1, 0, 1]
