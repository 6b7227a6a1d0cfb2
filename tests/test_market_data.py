"""Tests for endpoint-level market data operations."""

import asyncio

import pytest

from finance_gateway.data.outcome import Err, Ok


class TestQuotesAndHistory:
    """Tests for multi-symbol operations."""

    def test_quotes_keyed_with_failure_marker(self, market, provider) -> None:
        """A bad symbol fails alone in the keyed result."""
        provider.failures["XYZINVALID"] = ValueError("Quote not found for XYZINVALID")
        result = asyncio.run(market.quotes(["AAPL", "XYZINVALID"]))
        assert isinstance(result["AAPL"], Ok)
        assert result["XYZINVALID"] == Err("Quote not found for XYZINVALID")

    def test_quotes_cached(self, market, provider) -> None:
        """A repeat request within the TTL makes no provider calls."""
        asyncio.run(market.quotes(["AAPL", "MSFT"]))
        asyncio.run(market.quotes(["AAPL", "MSFT"]))
        assert provider.count("quote") == 2

    def test_history_ordered(self, market, provider) -> None:
        """History results follow the request order."""
        provider.failures["BAD"] = ValueError("No data found")
        result = asyncio.run(market.history(["MSFT", "BAD", "AAPL"], period="5d"))
        assert isinstance(result[0], Ok)
        assert result[1] == Err("No data found")
        assert isinstance(result[2], Ok)

    def test_history_cache_key_includes_period_and_interval(self, market, store) -> None:
        """History is cached per period and interval."""
        asyncio.run(market.history(["AAPL"], period="1Y", interval="1D"))
        assert "history:AAPL:1y:1d" in store

    def test_history_invalid_period(self, market, provider) -> None:
        """An unknown period is rejected before any fetch."""
        with pytest.raises(ValueError, match="Invalid period"):
            asyncio.run(market.history(["AAPL"], period="7y"))
        assert provider.calls == []

    def test_history_invalid_interval(self, market) -> None:
        """An unknown interval is rejected."""
        with pytest.raises(ValueError, match="Invalid interval"):
            asyncio.run(market.history(["AAPL"], interval="2h"))

    def test_company_info_ordered(self, market) -> None:
        """Info results are positional."""
        result = asyncio.run(market.company_info(["AAPL", "MSFT"]))
        assert [o.value["symbol"] for o in result] == ["AAPL", "MSFT"]


class TestSingleItemOperations:
    """Tests for single-key operations."""

    def test_search_cached_by_query_and_count(self, market, provider, store) -> None:
        """Search is cached under the trimmed query and count."""
        asyncio.run(market.search("  apple ", 5))
        asyncio.run(market.search("apple", 5))
        assert provider.count("search") == 1
        assert "search:apple:5" in store

    def test_trending_uppercases_region(self, market, store) -> None:
        """Region codes are case-insensitive."""
        outcome = asyncio.run(market.trending("us"))
        assert isinstance(outcome, Ok)
        assert "trending:US:10" in store

    def test_recommendations_failure(self, market, provider) -> None:
        """A provider failure becomes an Err outcome."""
        provider.failures["BAD"] = RuntimeError("upstream 404")
        outcome = asyncio.run(market.recommendations("bad"))
        assert outcome == Err("upstream 404")

    def test_screener_truncates_quotes(self, market) -> None:
        """Screener quotes are limited to count."""
        outcome = asyncio.run(market.screener("day_gainers", 3))
        assert len(outcome.value["quotes"]) == 3

    def test_screener_maps_public_name(self, market, provider) -> None:
        """Public screener names map to Yahoo screener ids."""
        asyncio.run(market.screener("Growth_Stocks"))
        assert provider.calls[0][:2] == ("screener", "growth_technology_stocks")

    def test_screener_invalid_type(self, market) -> None:
        """An unsupported screener is a ValueError."""
        with pytest.raises(ValueError, match="Invalid screener type: bogus"):
            asyncio.run(market.screener("bogus"))

    def test_screener_count_capped(self, market, provider) -> None:
        """Counts above the maximum are capped at 100."""
        asyncio.run(market.screener("most_actives", 500))
        assert provider.calls[0][2] == 100

    def test_general_news(self, market, provider, store) -> None:
        """General news searches the market query without quotes."""
        outcome = asyncio.run(market.news(None, 3))
        assert outcome.value["count"] == 3
        assert outcome.value["dataAvailable"] == {"hasNews": True}
        assert provider.calls[0] == ("search", "stock market", 0, 3)
        assert "news_general:stock market:3" in store

    def test_symbol_news(self, market) -> None:
        """Symbol news carries the symbol and a message."""
        outcome = asyncio.run(market.news("aapl", 2))
        assert outcome.value["symbol"] == "AAPL"
        assert outcome.value["message"] == "Found 2 news articles for AAPL"

    def test_financials_and_holdings(self, market) -> None:
        """Statement and holdings lookups resolve independently."""
        assert isinstance(asyncio.run(market.financials("AAPL")), Ok)
        assert isinstance(asyncio.run(market.fund_holdings("SPY")), Ok)
