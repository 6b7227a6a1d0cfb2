"""Pytest configuration and fixtures."""

import asyncio
from typing import Any

import pandas as pd
import pytest

from finance_gateway.data.cache import CacheStore
from finance_gateway.data.resolver import CachedResolver
from finance_gateway.tools.market_data import MarketData


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """
    In-memory data provider that records every call.

    Keys listed in `failures` raise the mapped exception from any method.
    """

    def __init__(self, delay: float = 0.0):
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, Exception] = {}
        self.delay = delay

    async def _record(self, method: str, key: str, *args: Any) -> None:
        self.calls.append((method, key, *args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if key in self.failures:
            raise self.failures[key]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def quote(self, symbol: str) -> dict[str, Any]:
        await self._record("quote", symbol)
        return {
            "symbol": symbol,
            "regularMarketPrice": 100.0,
            "quoteType": "EQUITY",
            "sector": "Technology",
        }

    async def company_info(self, symbol: str) -> dict[str, Any]:
        await self._record("company_info", symbol)
        return {"symbol": symbol, "profile": {"sector": "Technology"}}

    async def chart(self, symbol, period1, period2, interval) -> list[dict[str, Any]]:
        await self._record("chart", symbol, interval)
        return [{"date": "2024-01-02", "close": 101.0}, {"date": "2024-01-03", "close": 102.0}]

    async def search(self, query: str, quotes_count: int = 10, news_count: int = 10) -> dict[str, Any]:
        await self._record("search", query, quotes_count, news_count)
        news = [{"title": f"{query} story {i}"} for i in range(news_count)]
        quotes = [{"symbol": f"Q{i}"} for i in range(quotes_count)]
        return {"count": len(quotes), "quotes": quotes, "news": news}

    async def trending_symbols(self, region: str, count: int = 10) -> dict[str, Any]:
        await self._record("trending_symbols", region, count)
        return {"count": 2, "quotes": [{"symbol": "NVDA"}, {"symbol": "TSLA"}]}

    async def recommendations_by_symbol(self, symbol: str) -> dict[str, Any]:
        await self._record("recommendations_by_symbol", symbol)
        return {"symbol": symbol, "recommendedSymbols": [{"symbol": "MSFT", "score": 0.3}]}

    async def insights(self, symbol: str) -> dict[str, Any]:
        await self._record("insights", symbol)
        return {"symbol": symbol, "instrumentInfo": {"technicalEvents": {}}}

    async def screener(self, scr_id: str, count: int = 25) -> dict[str, Any]:
        await self._record("screener", scr_id, count)
        quotes = [{"symbol": f"S{i}"} for i in range(count + 5)]
        return {"id": scr_id, "count": len(quotes), "quotes": quotes}

    async def news(self, symbol: str, count: int = 10) -> list[dict[str, Any]]:
        await self._record("news", symbol, count)
        return [{"title": f"{symbol} headline {i}"} for i in range(count)]

    async def financials(self, symbol: str) -> dict[str, Any]:
        await self._record("financials", symbol)
        return {"symbol": symbol, "income_statement": [{"period_end": "2024-09-30"}]}

    async def fund_holdings(self, symbol: str) -> dict[str, Any]:
        await self._record("fund_holdings", symbol)
        return {"symbol": symbol, "top_holdings": [{"symbol": "AAPL", "weight": 0.07}]}

    async def shutdown(self) -> None:
        self.calls.append(("shutdown", ""))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    return CacheStore(default_ttl=300, clock=clock)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def resolver(store: CacheStore) -> CachedResolver:
    return CachedResolver(store)


@pytest.fixture
def market(provider: FakeProvider, resolver: CachedResolver) -> MarketData:
    return MarketData(provider, resolver)


@pytest.fixture
def sample_chart_df() -> pd.DataFrame:
    """Raw yfinance history frame (auto_adjust=False)."""
    return pd.DataFrame(
        {
            "Date": pd.date_range("2024-01-01", periods=5, freq="D"),
            "Open": [100.0, 101.0, 102.0, 101.5, 103.0],
            "High": [101.0, 102.5, 103.0, 102.5, 104.5],
            "Low": [99.5, 100.5, 101.0, 100.5, 102.0],
            "Close": [100.5, 102.0, 101.5, 102.0, 104.0],
            "Adj Close": [100.0, 101.5, 101.0, 101.5, 103.5],
            "Volume": [1000000] * 5,
            "Dividends": [0.0] * 5,
            "Stock Splits": [0.0] * 5,
        }
    ).set_index("Date")
