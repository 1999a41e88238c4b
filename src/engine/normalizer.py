"""
src/engine/normalizer.py

Turns a ChartRequest into the ordered list of series to aggregate.

Two request shapes are accepted:
- explicit: request.series = [SeriesInput, ...]
- shorthand: metric/entity/label/value_field/filter at the top level describe a single series over request.rows

Every returned series carries a rows list (its own, else the top-level rows, else []) and a label.
Input models are never mutated: copies are returned.
"""

from __future__ import annotations

import logging
from typing import List

from .chart_request import ChartRequest, SeriesInput

logger = logging.getLogger(__name__)


def _default_label(s: SeriesInput, index: int) -> str:
    return s.label or s.metric or s.entity or f"series_{index + 1}"


def normalize_series(request: ChartRequest) -> List[SeriesInput]:
    """
    Returns a non-empty list of series, in input order (legend order).
    Missing rows are not an error: the series will simply aggregate to zeros.
    """
    shared_rows = request.rows if request.rows is not None else []

    if request.series:
        raw = list(request.series)
        shape = "explicit"
    else:
        raw = [
            SeriesInput(
                metric=request.metric,
                label=request.label,
                entity=request.entity,
                filter=request.filter,
                value_field=request.value_field,
                rows=request.rows,
            )
        ]
        shape = "shorthand"

    out: List[SeriesInput] = []
    for i, s in enumerate(raw):
        rows = s.rows if s.rows is not None else shared_rows
        out.append(s.model_copy(update={"rows": rows, "label": _default_label(s, i)}))

    logger.info(
        "Normalized %d series (%s): %s",
        len(out), shape, ", ".join(f"{s.label}[{len(s.rows or [])}]" for s in out),
    )
    return out
