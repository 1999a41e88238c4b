"""
tests/test_rows.py

Row accessor and timestamp parsing tests: dotted paths, numeric coercion, numeric field discovery,
and the inputs parse_timestamp accepts or rejects.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.data.rows import coerce_number, get_path, numeric_fields
from src.engine.timestamps import parse_timestamp, today_utc


def test_get_path_nested_and_indexed():
    row = {"meta": {"createdAt": "2025-08-01"}, "items": [{"price": 3}, {"price": 5}], "a.b": 1}
    assert get_path(row, "meta.createdAt") == "2025-08-01"
    assert get_path(row, "items.1.price") == 5
    assert get_path(row, "items.-1.price") == 5
    assert get_path(row, "a.b") == 1  # flat key containing a dot
    assert get_path(row, "meta.missing") is None
    assert get_path(row, "items.9.price") is None
    assert get_path(row, "items.x") is None
    assert get_path(None, "meta") is None
    assert get_path("not a row", "meta") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (10, 10),
        (2.5, 2.5),
        ("1,234", 1234),
        ("$1,250.50", 1250.5),
        ("-50", -50),
        (" 7 kg", 7),
        ("n/a", None),
        ("-", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ({"value": 1}, None),
    ],
)
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


def test_numeric_fields_first_seen_order():
    rows = [
        {"createdAt": "2025-08-01", "total": 10, "paid": True},
        {"createdAt": "2025-08-02", "qty": 2.5, "total": 3},
        "not a row",
    ]
    assert numeric_fields(rows) == ["total", "qty"]
    assert numeric_fields([]) == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-08-01", datetime(2025, 8, 1, tzinfo=timezone.utc)),
        ("2025-08-01T10:00:00+02:00", datetime(2025, 8, 1, 8, tzinfo=timezone.utc)),
        ("2025-08-01T10:00:00.000Z", datetime(2025, 8, 1, 10, tzinfo=timezone.utc)),
        (date(2025, 8, 1), datetime(2025, 8, 1, tzinfo=timezone.utc)),
        (datetime(2025, 8, 1, 10), datetime(2025, 8, 1, 10, tzinfo=timezone.utc)),
        (1754006400000, datetime(2025, 8, 1, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp_accepts(raw, expected):
    assert parse_timestamp(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        None, "", "garbage", "now", "today", True, float("inf"), ["2025-08-01"],
        # partial values: the missing parts would come from the wall clock or year 1
        "10:30", "Aug 5",
        # outside the supported years
        253402300799000, datetime(1, 1, 1), datetime(9999, 12, 31, 23), "9999-12-31", date(1, 1, 1),
    ],
)
def test_parse_timestamp_rejects(raw):
    assert parse_timestamp(raw) is None


def test_today_utc_truncates_clock():
    now = datetime(2025, 8, 20, 23, 59, tzinfo=timezone.utc)
    assert today_utc(lambda: now) == datetime(2025, 8, 20, tzinfo=timezone.utc)
