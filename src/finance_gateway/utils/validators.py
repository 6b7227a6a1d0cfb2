"""Validation utilities for request parameters."""

from datetime import datetime, timedelta

import pytz

# Allowlists for cache key stability
VALID_PERIODS = {"1d", "5d", "1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max"}
VALID_INTERVALS = {
    "1m",
    "2m",
    "5m",
    "15m",
    "30m",
    "60m",
    "90m",
    "1h",
    "1d",
    "5d",
    "1wk",
    "1mo",
    "3mo",
}

# Lookback in days for fixed-length periods
_PERIOD_DAYS = {
    "1d": 1,
    "5d": 5,
    "1mo": 30,
    "3mo": 90,
    "6mo": 180,
    "1y": 365,
    "2y": 2 * 365,
    "5y": 5 * 365,
    "10y": 10 * 365,
}

# Public screener names -> Yahoo predefined screener ids
SCREENER_IDS = {
    "day_gainers": "day_gainers",
    "day_losers": "day_losers",
    "most_actives": "most_actives",
    "most_shorted": "most_shorted_stocks",
    "growth_stocks": "growth_technology_stocks",
    "undervalued_growth_stocks": "undervalued_growth_stocks",
}

EXCHANGE_TZ = "America/New_York"


def normalize_symbol(symbol: str) -> str:
    """Uppercase and strip a ticker symbol."""
    return symbol.upper().strip()


def parse_symbols(raw: str) -> list[str]:
    """
    Parse a comma-separated symbol list.

    Symbols are trimmed and uppercased; empty segments are dropped.
    Duplicates are kept.

    Raises:
        ValueError: If no symbols remain
    """
    symbols = [normalize_symbol(part) for part in raw.split(",")]
    symbols = [s for s in symbols if s]
    if not symbols:
        raise ValueError("At least one symbol is required")
    return symbols


def validate_period(period: str) -> str:
    """Normalize and validate a history period."""
    normalized = period.lower().strip()
    if normalized not in VALID_PERIODS:
        raise ValueError(f"Invalid period '{period}'. Must be one of: {sorted(VALID_PERIODS)}")
    return normalized


def validate_interval(interval: str) -> str:
    """Normalize and validate a bar interval."""
    normalized = interval.lower().strip()
    if normalized not in VALID_INTERVALS:
        raise ValueError(
            f"Invalid interval '{interval}'. Must be one of: {sorted(VALID_INTERVALS)}"
        )
    return normalized


def period_range(period: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Convert a named period to a (period1, period2) datetime range.

    ytd starts on January 1 of the current year in exchange time; max starts
    at the Unix epoch.
    """
    period = validate_period(period)
    if now is None:
        now = datetime.now(pytz.timezone(EXCHANGE_TZ))

    if period == "ytd":
        start = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    elif period == "max":
        start = datetime(1970, 1, 1, tzinfo=pytz.utc)
    else:
        start = now - timedelta(days=_PERIOD_DAYS[period])
    return start, now


def normalize_screener_type(screener_type: str) -> str:
    """
    Map a public screener name to its Yahoo screener id.

    Raises:
        ValueError: If the type is not supported
    """
    normalized = screener_type.lower().strip()
    if normalized not in SCREENER_IDS:
        raise ValueError(
            f"Invalid screener type: {screener_type}. "
            f"Valid types are: {', '.join(SCREENER_IDS)}"
        )
    return SCREENER_IDS[normalized]


def clamp_count(value: int | None, default: int, maximum: int) -> int:
    """Missing or non-positive counts fall back to default; large ones are capped."""
    if value is None or value < 1:
        return default
    return min(value, maximum)
