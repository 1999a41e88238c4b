# src/config.py

"""
src/config.py

Centralized configuration via environment variables.
Used to keep config in one place so the engine and the CLI are easy to run in different environments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """
    Settings container (dataclass) loaded from environment variables.
    The from_env class method is responsible for parsing environment variables and constructing the Settings object.
    """
    app_title: str

    default_granularity: str
    default_time_field: Optional[str]

    # Range resolution
    range_sample_limit: int  # max rows scanned when inferring the date range from the data
    default_window_days: int  # trailing window used when nothing else resolves the range

    max_render_rows: int = 50  # Max number of buckets to render in the CLI table
    log_level: str = "INFO"

    @staticmethod
    def _get_int(name: str, default: int) -> int:
        """
        Small helper to safely parse integer env vars.
        """
        raw = os.getenv(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    @classmethod
    def from_env(cls) -> Settings:
        """
        Method used to construct Settings from environment variables.
        """
        time_field = os.getenv("DEFAULT_TIME_FIELD", "").strip()

        return cls(
            app_title=os.getenv("APP_TITLE", "Chart Aggregation Engine"),
            default_granularity=os.getenv("DEFAULT_GRANULARITY", "day").strip().lower(),
            default_time_field=time_field or None,

            range_sample_limit=max(1, cls._get_int("RANGE_SAMPLE_LIMIT", 1000)),
            default_window_days=max(1, cls._get_int("DEFAULT_WINDOW_DAYS", 30)),

            max_render_rows=cls._get_int("MAX_RENDER_ROWS", 50),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )


def get_settings() -> Settings:
    """
    Single entry point used by the app.
    """
    return Settings.from_env()
