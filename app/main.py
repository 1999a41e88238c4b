# app/main.py
"""
app/main.py

CLI entrypoint for the chart aggregation engine.

Main responsibilities:
- Load environment variables (.env)
- Load Settings from src/config.py
- Read a ChartRequest from a YAML or JSON file
- Optionally load the top-level rows from a record file (CSV / JSON / JSON lines)
- Run the ChartEngine
- Render the result (rich tables and panels) or print it as JSON

Run:
  python -m app.main request.yaml --rows orders.csv
  python -m app.main request.json --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml
from dotenv import load_dotenv

from src.config import Settings, get_settings
from src.data.loader import RecordLoader
from src.engine.chart_engine import ChartEngine

from app.render import (
    render_chart_table,
    render_error,
    render_header,
    render_info_panel,
    render_summary,
)

# Initializing here the logger for the main module, other modules will initialize their own loggers with their respective __name__.
logger = logging.getLogger(__name__)


def _configure_logging(level: str = "INFO") -> None:
    """
    Configure basic logging for the CLI app.

    Logs go to stderr (standard behavior), so --json output on stdout stays clean.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chart-aggregate", description="Aggregate timestamped records into a chart series.")
    parser.add_argument("request", help="ChartRequest file (YAML or JSON)")
    parser.add_argument("--rows", help="Record file used as the request's top-level rows (.csv, .json, .jsonl)")
    parser.add_argument("--granularity", choices=["hour", "day", "week", "month"], help="Override the request granularity")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON instead of tables")
    return parser


def load_request(path: str | Path) -> Dict[str, Any]:
    """
    Reads the request file. yaml.safe_load also parses JSON, so one loader covers both.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Request file root must be a mapping/dict")
    return data


def build_engine(cfg: Settings) -> ChartEngine:
    return ChartEngine(
        sample_limit=cfg.range_sample_limit,
        default_window_days=cfg.default_window_days,
        default_time_field=cfg.default_time_field,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    # Define environment variables as attributes of a Settings dataclass (see src/config.py)
    cfg = get_settings()
    _configure_logging(cfg.log_level)

    args = _build_parser().parse_args(argv)

    rows_loaded: Optional[int] = None
    try:
        payload = load_request(args.request)
        payload.setdefault("granularity", cfg.default_granularity)
        if args.granularity:
            payload["granularity"] = args.granularity
        if args.rows:
            load_result = RecordLoader().load(args.rows)
            payload["rows"] = load_result.rows
            rows_loaded = load_result.row_count

        result = build_engine(cfg).aggregate(payload)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # ValidationError is a ValueError: bad request shape or unsupported granularity
        logger.exception("Chart aggregation failed")
        if args.json:
            print(json.dumps({"error": str(e)}), file=sys.stderr)
        else:
            render_error(f"I couldn't compute that: {e}")
        return 1

    if args.json:
        print(result.model_dump_json(by_alias=True, indent=2))
        return 0

    render_header(cfg.app_title)
    render_info_panel(result, rows_loaded=rows_loaded)
    render_chart_table(result, max_rows=cfg.max_render_rows)
    render_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
