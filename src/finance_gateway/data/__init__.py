"""Data layer: cache, fan-out, caching resolver and provider client."""

from finance_gateway.data.cache import CacheStore
from finance_gateway.data.fanout import fan_out, fan_out_keyed, fan_out_ordered
from finance_gateway.data.outcome import (
    Err,
    KeyedResult,
    Ok,
    OrderedResult,
    Outcome,
    keyed_to_json,
    ordered_to_json,
    outcome_to_json,
)
from finance_gateway.data.resolver import CachedResolver, make_cache_key
from finance_gateway.data.yahoo_client import (
    DataProvider,
    ProviderError,
    ProviderRetryError,
    ProviderTimeoutError,
    ServerShuttingDownError,
    YahooFinanceClient,
)

__all__ = [
    # Cache
    "CacheStore",
    "CachedResolver",
    "make_cache_key",
    # Fan-out
    "fan_out",
    "fan_out_keyed",
    "fan_out_ordered",
    # Outcomes
    "Err",
    "KeyedResult",
    "Ok",
    "OrderedResult",
    "Outcome",
    "keyed_to_json",
    "ordered_to_json",
    "outcome_to_json",
    # Provider
    "DataProvider",
    "ProviderError",
    "ProviderRetryError",
    "ProviderTimeoutError",
    "ServerShuttingDownError",
    "YahooFinanceClient",
]
