"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from finance_gateway.api import create_api


@pytest.fixture
def client(market) -> TestClient:
    return TestClient(create_api(market))


class TestHealth:
    """Tests for the health route."""

    def test_health(self, client) -> None:
        """Health answers ok with timing header."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "X-Process-Time" in response.headers


class TestMultiSymbolRoutes:
    """Tests for quote/history/info."""

    def test_quote_keyed_partial_failure(self, client, provider) -> None:
        """A bad symbol gets an error marker; the response is still 200."""
        provider.failures["XYZINVALID"] = ValueError("Quote not found for XYZINVALID")
        response = client.get("/quote/aapl,XYZINVALID")
        assert response.status_code == 200
        body = response.json()
        assert body["AAPL"]["symbol"] == "AAPL"
        assert body["XYZINVALID"] == {"error": "Quote not found for XYZINVALID"}

    def test_quote_empty_symbols(self, client) -> None:
        """Only separators is a 400."""
        response = client.get("/quote/,,")
        assert response.status_code == 400
        assert "error" in response.json()

    def test_history_ordered(self, client, provider) -> None:
        """History is a list in request order."""
        provider.failures["BAD"] = ValueError("No data found")
        response = client.get("/history/MSFT,BAD?period=5d&interval=1d")
        assert response.status_code == 200
        body = response.json()
        assert len(body) == 2
        assert body[0][0]["close"] == 101.0
        assert body[1] == {"error": "No data found"}

    def test_history_invalid_period(self, client) -> None:
        """An invalid period is a 400."""
        response = client.get("/history/AAPL?period=7y")
        assert response.status_code == 400
        assert "Invalid period" in response.json()["error"]

    def test_info(self, client) -> None:
        """Info returns one profile per symbol."""
        response = client.get("/info/AAPL,MSFT")
        assert [item["symbol"] for item in response.json()] == ["AAPL", "MSFT"]

    def test_quote_served_from_cache(self, client, provider) -> None:
        """A repeat within the TTL does not hit the provider."""
        client.get("/quote/AAPL,MSFT")
        client.get("/quote/AAPL,MSFT")
        assert provider.count("quote") == 2


class TestSingleItemRoutes:
    """Tests for single-key routes."""

    def test_search(self, client) -> None:
        """Search returns quotes and news."""
        response = client.get("/search/apple?count=2")
        assert response.status_code == 200
        assert len(response.json()["quotes"]) == 2

    def test_trending(self, client) -> None:
        """Trending returns quotes."""
        response = client.get("/trending/us")
        assert response.json()["count"] == 2

    def test_recommendations_failure_is_500(self, client, provider) -> None:
        """A failed single-item fetch answers 500 with the message."""
        provider.failures["BAD"] = RuntimeError("upstream 404")
        response = client.get("/recommendations/BAD")
        assert response.status_code == 500
        assert response.json() == {"error": "upstream 404"}

    def test_insights(self, client) -> None:
        """Insights returns the provider payload."""
        assert client.get("/insights/AAPL").json()["symbol"] == "AAPL"

    def test_screener(self, client) -> None:
        """Screener quotes are truncated to count."""
        response = client.get("/screener/day_gainers?count=5")
        assert response.status_code == 200
        assert len(response.json()["quotes"]) == 5

    def test_screener_invalid_type(self, client) -> None:
        """An unsupported screener type is a 400."""
        response = client.get("/screener/bogus")
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid screener type: bogus")

    def test_general_news(self, client) -> None:
        """General news has count and articles."""
        body = client.get("/news?count=4").json()
        assert body["count"] == 4
        assert len(body["news"]) == 4

    def test_symbol_news(self, client) -> None:
        """Symbol news carries the symbol."""
        assert client.get("/news/aapl").json()["symbol"] == "AAPL"

    def test_financials(self, client) -> None:
        """Financial statements are returned."""
        assert client.get("/financials/AAPL").status_code == 200

    def test_holdings(self, client) -> None:
        """Fund holdings are served for ETFs."""
        response = client.get("/holdings/spy")
        assert response.status_code == 200
        assert response.json()["symbol"] == "SPY"

    def test_holdings_failure_is_500(self, client, provider) -> None:
        """Symbols without fund data answer 500 with the message."""
        provider.failures["AAPL"] = ValueError("No fund data found")
        response = client.get("/holdings/AAPL")
        assert response.status_code == 500
        assert response.json() == {"error": "No fund data found"}


class TestQueryValidation:
    """Tests for malformed query parameters."""

    @pytest.mark.parametrize(
        "path",
        [
            "/screener/day_gainers?count=abc",
            "/news/AAPL?count=ten",
            "/news?count=x",
            "/search/apple?count=1.5",
        ],
    )
    def test_non_numeric_count_is_400(self, client, provider, path: str) -> None:
        """A non-integer count answers 400 with an error body."""
        response = client.get(path)
        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"error"}
        assert "count" in body["error"]
        assert provider.calls == []


class TestCacheRoutes:
    """Tests for cache management routes."""

    def test_stats_and_clear(self, client, provider) -> None:
        """Stats reflect cached entries; clear forces a refetch."""
        client.get("/quote/AAPL")
        stats = client.get("/cache/stats").json()
        assert stats["enabled"] is True
        assert stats["entries"] == 1

        assert client.post("/cache/clear").json() == {"cleared": True}
        client.get("/quote/AAPL")
        assert provider.count("quote") == 2


class TestUnhandledErrors:
    """Tests for the global exception handler."""

    def test_unexpected_exception_is_500(self, market, monkeypatch) -> None:
        """Exceptions escaping a route become a 500 error body."""

        async def explode(symbols):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(market, "quotes", explode)
        client = TestClient(create_api(market), raise_server_exceptions=False)
        response = client.get("/quote/AAPL")
        assert response.status_code == 500
        assert response.json() == {"error": "kaboom"}
