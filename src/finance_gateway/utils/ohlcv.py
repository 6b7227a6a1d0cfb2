"""OHLCV chart standardization utilities."""

import pandas as pd

from finance_gateway.utils.normalize import to_jsonable

CHART_COLUMNS = ["date", "open", "high", "low", "close", "adjclose", "volume"]


def standardize_chart(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize a yfinance history frame to the chart schema.

    Output columns (always, in this order):
    date, open, high, low, close, adjclose, volume.
    Missing columns are filled with NA; dividends/splits are dropped.

    Args:
        df: Raw DataFrame from Ticker.history(auto_adjust=False)

    Returns:
        Standardized DataFrame
    """
    df = df.copy()

    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    df = df.rename(columns={"Adj Close": "adjclose"})
    df.columns = [str(c).lower() for c in df.columns]

    df = df.reset_index()
    date_cols = [c for c in df.columns if str(c).lower() in ("date", "datetime", "index")]
    if date_cols:
        df = df.rename(columns={date_cols[0]: "date"})

    # Daily bars as YYYY-MM-DD, intraday as full ISO timestamps
    if "date" in df.columns and pd.api.types.is_datetime64_any_dtype(df["date"]):
        has_time = (df["date"].dt.normalize() != df["date"]).any()
        if has_time:
            if df["date"].dt.tz is not None:
                df["date"] = df["date"].dt.strftime("%Y-%m-%dT%H:%M:%S%z")
            else:
                df["date"] = df["date"].dt.strftime("%Y-%m-%dT%H:%M:%S")
        else:
            df["date"] = df["date"].dt.strftime("%Y-%m-%d")

    for col in CHART_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA

    return df[CHART_COLUMNS]


def chart_to_rows(df: pd.DataFrame) -> list[dict]:
    """Standardize and convert to JSON-safe row dicts."""
    return to_jsonable(standardize_chart(df).to_dict("records"))
