"""Conversion of provider payloads into JSON-safe values.

yfinance hands back pandas and numpy objects, NaN for missing numerics and
Timestamps for dates. Everything served by the gateway passes through
`to_jsonable` so that responses are valid JSON (no NaN/inf) and cache
entries hold plain Python data.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

import pandas as pd


def _is_nan_or_inf(x: Any) -> bool:
    """Check if value is NaN or inf, handling numpy types safely."""
    try:
        return math.isnan(x) or math.isinf(x)
    except (TypeError, ValueError):
        return False


def to_jsonable(obj: Any) -> Any:
    """Recursively convert obj into JSON-safe Python data.

    - dicts/lists/tuples are walked (dict keys become strings)
    - NaN, inf, -inf and pandas NA become None
    - datetimes and pandas Timestamps become ISO strings
    - numpy scalars become Python scalars
    - DataFrames become a list of records, Series a dict
    """
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_jsonable(item) for item in obj]
    if isinstance(obj, pd.DataFrame):
        return to_jsonable(obj.to_dict("records"))
    if isinstance(obj, pd.Series):
        return to_jsonable(obj.to_dict())
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if obj is pd.NaT or obj is pd.NA:
        return None
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    # numpy scalars expose item()
    if hasattr(obj, "item") and not isinstance(obj, (int, float)):
        try:
            obj = obj.item()
        except (TypeError, ValueError):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
    if isinstance(obj, (int, float)):
        return None if _is_nan_or_inf(obj) else obj
    return str(obj)


def statement_to_records(df: pd.DataFrame | None) -> list[dict[str, Any]]:
    """
    Convert a yfinance financial statement into per-period records.

    yfinance statements have line items as rows and period end dates as
    columns; each output record is one period with "period_end" set.
    """
    if df is None or df.empty:
        return []
    records = []
    for column in df.columns:
        period_end = column.date().isoformat() if hasattr(column, "date") else str(column)
        record: dict[str, Any] = {"period_end": period_end}
        for item, value in df[column].items():
            record[str(item)] = to_jsonable(value)
        records.append(record)
    return records
