"""Read-through/write-through caching around the fan-out aggregator."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from finance_gateway.data.cache import CacheStore
from finance_gateway.data.fanout import KeyOperation, fan_out_keyed, fan_out_ordered
from finance_gateway.data.outcome import KeyedResult, Outcome, OrderedResult

logger = logging.getLogger(__name__)

V = TypeVar("V")
R = TypeVar("R")

_MISSING = object()


def make_cache_key(kind: str, keys: Sequence[str], *options: Any) -> str:
    """
    Canonical, order-sensitive cache key for a parameter tuple.

    Example: make_cache_key("history", ["AAPL", "MSFT"], "1y", "1d")
    -> "history:AAPL,MSFT:1y:1d"
    """
    parts = [kind, ",".join(keys)]
    parts.extend("" if opt is None else str(opt) for opt in options)
    return ":".join(parts)


class CachedResolver:
    """
    Binds a CacheStore to fan-out calls.

    When disabled, every call is a pass-through that never touches the store.
    No lock is held between lookup and population, so two concurrent misses
    for the same key may both fan out.
    """

    def __init__(
        self,
        store: CacheStore,
        enabled: bool = True,
        ttl: float | None = None,
        fan_out_limit: int | None = None,
    ):
        self.store = store
        self.enabled = enabled
        self._ttl = ttl
        self._fan_out_limit = fan_out_limit

    async def resolve_keyed(
        self,
        kind: str,
        keys: Sequence[str],
        op: KeyOperation[V],
        options: Sequence[Any] = (),
        ttl: float | None = None,
    ) -> KeyedResult[V]:
        """Keyed aggregate for keys, served from cache when possible."""
        cache_key = make_cache_key(kind, keys, *options)
        return await self._resolve(
            cache_key,
            lambda: fan_out_keyed(keys, op, limit=self._fan_out_limit, label=kind),
            ttl,
        )

    async def resolve_ordered(
        self,
        kind: str,
        keys: Sequence[str],
        op: KeyOperation[V],
        options: Sequence[Any] = (),
        ttl: float | None = None,
    ) -> OrderedResult[V]:
        """Ordered aggregate for keys, served from cache when possible."""
        cache_key = make_cache_key(kind, keys, *options)
        return await self._resolve(
            cache_key,
            lambda: fan_out_ordered(keys, op, limit=self._fan_out_limit, label=kind),
            ttl,
        )

    async def resolve_one(
        self,
        kind: str,
        key: str,
        op: KeyOperation[V],
        options: Sequence[Any] = (),
        ttl: float | None = None,
    ) -> Outcome[V]:
        """Single-key variant: a one-element ordered aggregate, unwrapped."""
        result = await self.resolve_ordered(kind, [key], op, options, ttl)
        return result[0]

    async def _resolve(
        self,
        cache_key: str,
        compute: Callable[[], Awaitable[R]],
        ttl: float | None,
    ) -> R:
        if self.enabled:
            cached = self._lookup(cache_key)
            if cached is not _MISSING:
                logger.debug(f"Cache hit: {cache_key}")
                return cached
            logger.debug(f"Cache miss: {cache_key}")

        result = await compute()

        if self.enabled:
            self._populate(cache_key, result, ttl if ttl is not None else self._ttl)
        return result

    def _lookup(self, cache_key: str) -> Any:
        try:
            return self.store.get(cache_key, _MISSING)
        except Exception as e:
            logger.warning(f"Cache read failed for {cache_key}, bypassing cache: {e}")
            return _MISSING

    def _populate(self, cache_key: str, result: Any, ttl: float | None) -> None:
        try:
            self.store.set(cache_key, result, ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {cache_key}: {e}")
            return
        logger.debug(f"Cached {cache_key}")
