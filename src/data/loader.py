"""
src/data/loader.py

Loads a record file (CSV, JSON array or JSON lines) into plain row dicts for the engine.
The engine itself never reads files: this loader is used by the CLI to build the top-level rows of a ChartRequest.

Moreover, it:
- strips column names (CSV headers often carry stray spaces)
- maps NaN/NaT cells to None, so missing values look the same as missing keys to the engine
- fail if the file type is not supported
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

import logging
logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".json", ".jsonl", ".ndjson")


@dataclass(frozen=True)
class LoadResult:
    """
    Class that is used to return the loaded rows and the columns found in the file
    """
    rows: List[Dict[str, Any]]
    columns: List[str]

    @property
    def row_count(self) -> int:
        return len(self.rows)


class RecordLoader:
    """
    Class defined to load a record file into a list of dicts.
    The file type is decided by the suffix; timestamps are left as they are in the file,
    parsing them is the engine's job (it must tolerate bad values row by row).
    """

    def load(self, path: str | Path) -> LoadResult:
        """
        Method that returns the LoadResult class with the rows and the column names.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported record file type: {suffix or path.name} (expected one of {SUPPORTED_SUFFIXES})")
        if not path.exists():
            raise FileNotFoundError(f"Record file not found: {path}")

        df = self._read(path, suffix)
        df = self._normalize(df)
        rows = self._to_rows(df)

        logger.info("Loaded %d row(s) from %s (columns=%d)", len(rows), str(path), len(df.columns))
        return LoadResult(rows=rows, columns=[str(c) for c in df.columns])

    @staticmethod
    def _read(path: Path, suffix: str) -> pd.DataFrame:
        # dtype=False / convert_dates=False: keep values as written, no pandas guessing
        if suffix == ".csv":
            return pd.read_csv(path)
        if suffix == ".json":
            return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
        return pd.read_json(path, lines=True, dtype=False, convert_dates=False)

    @staticmethod
    def _normalize(df: pd.DataFrame) -> pd.DataFrame:
        """
        Method that strips the column names
        """
        return df.rename(columns=lambda c: str(c).strip())

    @staticmethod
    def _to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
        """
        Converts the DataFrame to records, replacing missing cells with None.
        Nested JSON objects survive as dicts, so dotted time fields keep working.
        """
        rows = df.to_dict(orient="records")
        return [{str(k): _to_python(v) for k, v in row.items()} for row in rows]


def _to_python(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    # numpy scalars -> python scalars (int64 -> int, float64 -> float)
    if isinstance(value, np.generic):
        return _to_python(value.item())
    return value
