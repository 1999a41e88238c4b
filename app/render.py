# app/render.py
"""
app/render.py

Terminal rendering utilities using rich.

This module keeps all CLI presentation concerns in one place.

We render:
- header panel
- range / request info panel
- the chart result as a table (one row per bucket, one column per series)
- summary and diagnostic panels

All printing is done via Rich's Console.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.engine.chart_request import ChartResult

logger = logging.getLogger(__name__)
console = Console()


def render_header(title: str) -> None:
    """
    Prints a simple header panel at startup.
    """
    panel = Panel.fit(Text(title, style="bold"), title="Chart", border_style="cyan")
    console.print(panel)
    logger.info("Rendered header: %s", title)


def render_info_panel(result: ChartResult, *, rows_loaded: Optional[int] = None) -> None:
    """
    Prints the resolved range and request information (useful for debugging and transparency).
    """
    info = (
        f"[bold]Range[/bold]\n"
        f"- {result.range_used.start} → {result.range_used.end}\n"
        f"- Granularity: {result.granularity}\n"
        f"- Buckets: {len(result.buckets)}\n\n"
        f"[bold]Series[/bold]\n"
    )
    for s in result.series:
        field = s.value_field or "-"
        info += (
            f"- {s.label}: {s.mode} ({field}), rows used {s.rows_used}/{s.rows_total}, "
            f"skipped {s.rows_skipped}, out of range {s.rows_out_of_range}\n"
        )
    if rows_loaded is not None:
        info += f"\n[bold]Rows loaded[/bold]: {rows_loaded}"
    console.print(Panel(info.rstrip(), title="Request", border_style="green"))
    logger.info("Rendered info panel (buckets=%d, series=%d)", len(result.buckets), len(result.series))


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return f"{value:,}" if isinstance(value, int) else str(value)


def _result_to_rich_table(result: ChartResult, *, title: str, max_rows: int = 50) -> Table:
    """
    Convert a ChartResult into a Rich Table.

    - Limits rows (buckets) to avoid flooding the terminal, keeping the most recent ones.
    - Adds a total row at the bottom.
    """
    table = Table(title=title, show_lines=False)
    table.add_column(result.x_label or "Bucket")
    for s in result.series:
        table.add_column(s.label, justify="right")

    start = max(0, len(result.buckets) - max_rows)
    for i in range(start, len(result.buckets)):
        # * to unpack the per-series values as separate arguments to add_row
        table.add_row(result.buckets[i], *[_fmt(s.values[i]) for s in result.series])

    table.add_section()
    table.add_row("Total", *[_fmt(s.total) for s in result.series], style="bold")

    if start > 0:
        table.caption = f"Showing last {max_rows} of {len(result.buckets)} buckets"
    return table


def render_chart_table(result: ChartResult, *, title: str = "Chart data", max_rows: int = 50) -> None:
    """
    Renders the bucket table to the terminal.
    Falls back to a message if there are no buckets.
    """
    if not result.buckets:
        console.print(Panel("No buckets to display.", title=title, border_style="yellow"))
        logger.info("Rendered empty chart table: %s", title)
        return

    console.print(_result_to_rich_table(result, title=title, max_rows=max_rows))
    logger.info("Rendered chart table: %s (buckets=%d, series=%d)", title, len(result.buckets), len(result.series))


def render_summary(result: ChartResult) -> None:
    """
    Prints the summary line, and the diagnostic (if any) as a yellow panel.
    """
    console.print(Panel(result.summary, title="Summary", border_style="magenta"))
    if result.diagnostic:
        console.print(Panel(result.diagnostic, title="Diagnostic", border_style="yellow"))
    logger.info("Rendered summary (diagnostic=%s)", bool(result.diagnostic))


def render_error(message: str) -> None:
    console.print(Panel(message, title="Error", border_style="red"))
