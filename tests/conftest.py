"""
tests/conftest.py

Shared fixtures:
- a fixed clock, so "today" is always 2025-08-20 (UTC) whatever the machine date is
- a small set of order rows spanning 2025-08-01..2025-08-03
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest


FIXED_NOW = datetime(2025, 8, 20, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def orders():
    # 3 orders, one per day, with the cash collected on each
    return [
        {"createdAt": "2025-08-01T09:15:00Z", "cash": 1000, "total": 1100, "status": "paid"},
        {"createdAt": "2025-08-02T18:40:00Z", "cash": 1500, "total": 1600, "status": "paid"},
        {"createdAt": "2025-08-03T23:59:00Z", "cash": 2000, "total": 2100, "status": "pending"},
    ]
