"""Utility modules."""

from finance_gateway.utils.normalize import statement_to_records, to_jsonable
from finance_gateway.utils.ohlcv import chart_to_rows, standardize_chart
from finance_gateway.utils.responses import build_error_response, build_meta
from finance_gateway.utils.validators import (
    clamp_count,
    normalize_screener_type,
    normalize_symbol,
    parse_symbols,
    period_range,
    validate_interval,
    validate_period,
)

__all__ = [
    "statement_to_records",
    "to_jsonable",
    "chart_to_rows",
    "standardize_chart",
    "build_error_response",
    "build_meta",
    "clamp_count",
    "normalize_screener_type",
    "normalize_symbol",
    "parse_symbols",
    "period_range",
    "validate_interval",
    "validate_period",
]
