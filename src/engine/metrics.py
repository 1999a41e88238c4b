"""
src/engine/metrics.py

Decides how a series is aggregated: sum a numeric field, or count rows.

The metric name is free text chosen by the caller ("cash", "orders_count", "Total revenue"...).
Resolution order (first match wins):
1. explicit value_field                                   -> sum on it
2. the metric is itself a field of the rows with numbers -> sum on it
3. the metric contains a count keyword                    -> count
4. the metric contains a keyword of METRIC_FIELD_RULES    -> sum on the rule's field
5. anything else (including no metric at all)             -> count

A field that really exists (1, 2) always beats keyword guessing (3, 4),
and among keyword guesses "count" beats "sum" ("total_users" counts users).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

from src.data.rows import coerce_number, get_path
from .chart_request import AggregationMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricRule:
    """
    Maps any of the keywords (case-insensitive substring of the metric name) to a record field.
    """
    keywords: Tuple[str, ...]
    field: str

    def matches(self, metric: str) -> bool:
        m = metric.lower()
        return any(k in m for k in self.keywords)


# Ordered: the first matching rule wins ("sales_price" -> total, not price).
METRIC_FIELD_RULES: Tuple[MetricRule, ...] = (
    MetricRule(keywords=("revenue", "sales", "total", "amount", "cash"), field="total"),
    MetricRule(keywords=("price",), field="price"),
    MetricRule(keywords=("stock",), field="stock"),
    MetricRule(keywords=("quantity", "qty", "sold"), field="quantity"),
)

COUNT_KEYWORDS: Tuple[str, ...] = ("count", "number", "users", "appointments")

# Rows inspected when checking whether the metric name is a field of the data
FIELD_SAMPLE_SIZE = 50


@dataclass(frozen=True)
class MetricResolution:
    """
    mode: sum or count
    value_field: the field summed (None in count mode)
    reason: which resolution step decided, for logs
    """
    mode: AggregationMode
    value_field: Optional[str]
    reason: str


def is_count_metric(metric: str) -> bool:
    m = metric.lower()
    return any(k in m for k in COUNT_KEYWORDS)


def infer_field_from_metric(metric: str, rules: Sequence[MetricRule] = METRIC_FIELD_RULES) -> Optional[str]:
    """
    Returns the field of the first rule matching the metric name, or None.
    """
    for rule in rules:
        if rule.matches(metric):
            return rule.field
    return None


def _metric_is_numeric_field(metric: str, rows: Iterable[Any]) -> bool:
    for i, row in enumerate(rows):
        if i >= FIELD_SAMPLE_SIZE:
            break
        if coerce_number(get_path(row, metric)) is not None:
            return True
    return False


def resolve_value_field(
    metric: Optional[str],
    value_field: Optional[str],
    rows: Iterable[Any] = (),
    rules: Sequence[MetricRule] = METRIC_FIELD_RULES,
) -> MetricResolution:
    """
    Applies the resolution order described in the module docstring.
    """
    if value_field:
        return MetricResolution("sum", value_field, "explicit value_field")

    metric = (metric or "").strip()
    if not metric:
        return MetricResolution("count", None, "no metric")

    if _metric_is_numeric_field(metric, rows):
        return MetricResolution("sum", metric, "metric is a numeric field")

    if is_count_metric(metric):
        return MetricResolution("count", None, "count keyword")

    inferred = infer_field_from_metric(metric, rules)
    if inferred:
        return MetricResolution("sum", inferred, "keyword rule")

    logger.info("No field rule for metric=%r; counting rows", metric)
    return MetricResolution("count", None, "no rule matched")
