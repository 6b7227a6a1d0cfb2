"""Endpoint-level market data operations.

Each method binds request parameters to a cached fan-out over the provider.
Both the HTTP routes and the MCP tools call through here, so a quote fetched
over one protocol is served from cache on the other.
"""

import logging
from typing import Any

from finance_gateway.data.outcome import KeyedResult, OrderedResult, Outcome
from finance_gateway.data.resolver import CachedResolver
from finance_gateway.data.yahoo_client import DataProvider
from finance_gateway.utils.validators import (
    clamp_count,
    normalize_screener_type,
    normalize_symbol,
    period_range,
    validate_interval,
    validate_period,
)

logger = logging.getLogger(__name__)

DEFAULT_SCREENER_COUNT = 25
MAX_SCREENER_COUNT = 100
DEFAULT_NEWS_COUNT = 10
MAX_NEWS_COUNT = 50
DEFAULT_SEARCH_COUNT = 10
MAX_SEARCH_COUNT = 50
DEFAULT_TRENDING_COUNT = 10
MAX_TRENDING_COUNT = 50

GENERAL_NEWS_QUERY = "stock market"


def _news_response(articles: list[dict[str, Any]], subject: str) -> dict[str, Any]:
    return {
        "count": len(articles),
        "news": articles,
        "message": (
            f"Found {len(articles)} news articles for {subject}"
            if articles
            else f"No recent news found for {subject}."
        ),
        "dataAvailable": {"hasNews": bool(articles)},
    }


class MarketData:
    """Cached market data operations over a data provider."""

    def __init__(self, provider: DataProvider, resolver: CachedResolver):
        self.provider = provider
        self.resolver = resolver

    async def quotes(self, symbols: list[str]) -> KeyedResult[dict[str, Any]]:
        """Quotes keyed by symbol."""
        logger.info(f"Quote request for symbols: {', '.join(symbols)}")
        return await self.resolver.resolve_keyed("quote", symbols, self.provider.quote)

    async def history(
        self,
        symbols: list[str],
        period: str = "1y",
        interval: str = "1d",
    ) -> OrderedResult[list[dict[str, Any]]]:
        """
        Historical bars per symbol, in request order.

        Raises:
            ValueError: If period or interval is not allowed
        """
        period = validate_period(period)
        interval = validate_interval(interval)
        period1, period2 = period_range(period)

        logger.info(
            f"History request for symbols: {', '.join(symbols)}, "
            f"period: {period}, interval: {interval}"
        )

        async def _chart(symbol: str) -> list[dict[str, Any]]:
            return await self.provider.chart(symbol, period1, period2, interval)

        return await self.resolver.resolve_ordered(
            "history", symbols, _chart, options=(period, interval)
        )

    async def company_info(self, symbols: list[str]) -> OrderedResult[dict[str, Any]]:
        """Company profiles per symbol, in request order."""
        logger.info(f"Info request for symbols: {', '.join(symbols)}")
        return await self.resolver.resolve_ordered("info", symbols, self.provider.company_info)

    async def search(self, query: str, count: int | None = None) -> Outcome[dict[str, Any]]:
        """Symbol and news search."""
        query = query.strip()
        count = clamp_count(count, DEFAULT_SEARCH_COUNT, MAX_SEARCH_COUNT)
        logger.info(f'Search request for "{query}"')

        async def _search(q: str) -> dict[str, Any]:
            return await self.provider.search(q, quotes_count=count, news_count=count)

        return await self.resolver.resolve_one("search", query, _search, options=(count,))

    async def trending(self, region: str = "US", count: int | None = None) -> Outcome[dict[str, Any]]:
        """Trending symbols for a region."""
        region = region.upper().strip() or "US"
        count = clamp_count(count, DEFAULT_TRENDING_COUNT, MAX_TRENDING_COUNT)
        logger.info(f"Trending symbols request for region: {region}")

        async def _trending(r: str) -> dict[str, Any]:
            return await self.provider.trending_symbols(r, count)

        return await self.resolver.resolve_one("trending", region, _trending, options=(count,))

    async def recommendations(self, symbol: str) -> Outcome[dict[str, Any]]:
        """Similar-stock recommendations for a symbol."""
        symbol = normalize_symbol(symbol)
        logger.info(f"Recommendations request for symbol: {symbol}")
        return await self.resolver.resolve_one(
            "recommendations", symbol, self.provider.recommendations_by_symbol
        )

    async def insights(self, symbol: str) -> Outcome[dict[str, Any]]:
        """Research insights for a symbol."""
        symbol = normalize_symbol(symbol)
        logger.info(f"Insights request for symbol: {symbol}")
        return await self.resolver.resolve_one("insights", symbol, self.provider.insights)

    async def screener(
        self, screener_type: str, count: int | None = None
    ) -> Outcome[dict[str, Any]]:
        """
        Predefined screener results, truncated to count quotes.

        Raises:
            ValueError: If screener_type is not supported
        """
        scr_id = normalize_screener_type(screener_type)
        name = screener_type.lower().strip()
        count = clamp_count(count, DEFAULT_SCREENER_COUNT, MAX_SCREENER_COUNT)
        logger.info(f"Screener request for type: {name}, count: {count}")

        async def _screen(_: str) -> dict[str, Any]:
            result = await self.provider.screener(scr_id, count)
            return {**result, "quotes": list(result.get("quotes") or [])[:count]}

        return await self.resolver.resolve_one("screener", name, _screen, options=(count,))

    async def news(self, symbol: str | None = None, count: int | None = None) -> Outcome[dict[str, Any]]:
        """News for a symbol, or general market news when symbol is None."""
        count = clamp_count(count, DEFAULT_NEWS_COUNT, MAX_NEWS_COUNT)

        if symbol is None:
            logger.info(f"General news request, count: {count}")

            async def _general(query: str) -> dict[str, Any]:
                result = await self.provider.search(query, quotes_count=0, news_count=count)
                return _news_response(list(result.get("news") or [])[:count], "the market")

            return await self.resolver.resolve_one(
                "news_general", GENERAL_NEWS_QUERY, _general, options=(count,)
            )

        symbol = normalize_symbol(symbol)
        logger.info(f"News request for symbol: {symbol}, count: {count}")

        async def _symbol_news(s: str) -> dict[str, Any]:
            articles = await self.provider.news(s, count)
            return {"symbol": s, **_news_response(articles, s)}

        return await self.resolver.resolve_one("news", symbol, _symbol_news, options=(count,))

    async def financials(self, symbol: str) -> Outcome[dict[str, Any]]:
        """Annual financial statements."""
        symbol = normalize_symbol(symbol)
        logger.info(f"Financials request for symbol: {symbol}")
        return await self.resolver.resolve_one("financials", symbol, self.provider.financials)

    async def fund_holdings(self, symbol: str) -> Outcome[dict[str, Any]]:
        """Fund/ETF holdings."""
        symbol = normalize_symbol(symbol)
        logger.info(f"Holdings request for symbol: {symbol}")
        return await self.resolver.resolve_one("holdings", symbol, self.provider.fund_holdings)

