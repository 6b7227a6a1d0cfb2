"""Async Yahoo Finance client with bounded concurrency and retry logic."""

import asyncio
import logging
import random
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Protocol, TypeVar

import requests
import yfinance as yf
from requests.exceptions import HTTPError

from finance_gateway.utils.normalize import statement_to_records, to_jsonable
from finance_gateway.utils.ohlcv import chart_to_rows

logger = logging.getLogger(__name__)

T = TypeVar("T")

YAHOO_QUERY_URL = "https://query2.finance.yahoo.com"
_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "application/json",
}

# Company profile fields exposed by company_info()
PROFILE_FIELDS: tuple[str, ...] = (
    "longName",
    "shortName",
    "quoteType",
    "exchange",
    "sector",
    "industry",
    "website",
    "address1",
    "city",
    "state",
    "country",
    "phone",
    "fullTimeEmployees",
    "longBusinessSummary",
    "companyOfficers",
)


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class ProviderError(Exception):
    """Raised when the provider returns an error payload or times out."""

    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a single provider call exceeds the per-call timeout."""

    pass


class ProviderRetryError(ProviderError):
    """Raised when a provider call fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


class DataProvider(Protocol):
    """Async capability interface to the upstream financial-data source."""

    async def quote(self, symbol: str) -> dict[str, Any]: ...

    async def company_info(self, symbol: str) -> dict[str, Any]: ...

    async def chart(
        self, symbol: str, period1: datetime, period2: datetime, interval: str
    ) -> list[dict[str, Any]]: ...

    async def search(self, query: str, quotes_count: int, news_count: int) -> dict[str, Any]: ...

    async def trending_symbols(self, region: str, count: int) -> dict[str, Any]: ...

    async def recommendations_by_symbol(self, symbol: str) -> dict[str, Any]: ...

    async def insights(self, symbol: str) -> dict[str, Any]: ...

    async def screener(self, scr_id: str, count: int) -> dict[str, Any]: ...

    async def news(self, symbol: str, count: int) -> list[dict[str, Any]]: ...

    async def financials(self, symbol: str) -> dict[str, Any]: ...

    async def fund_holdings(self, symbol: str) -> dict[str, Any]: ...


def is_retryable_error(error: Exception, max_retries: int) -> tuple[bool, int]:
    """
    Check if an error is retryable (transient).

    Returns:
        Tuple of (is_retryable, max_retries_for_this_error)
    """
    if (
        isinstance(error, HTTPError)
        and hasattr(error, "response")
        and error.response is not None
    ):
        status_code = error.response.status_code
        if status_code == 401:
            # Invalid crumb rarely recovers with more retries
            return (True, 1)
        if status_code == 429 or 500 <= status_code < 600:
            return (True, max_retries)
        return (False, 0)

    error_str = str(error).lower()

    if "401" in error_str or "invalid crumb" in error_str:
        return (True, 1)

    retryable_patterns = [
        "rate limit",
        "too many requests",
        "connection",
        "timed out",
        "temporary",
    ]
    if any(pattern in error_str for pattern in retryable_patterns):
        return (True, max_retries)

    return (False, 0)


def _finance_result(payload: dict[str, Any], what: str) -> Any:
    """Unwrap Yahoo's {"finance": {"result": ..., "error": ...}} envelope."""
    finance = payload.get("finance") or {}
    error = finance.get("error")
    if error:
        description = error.get("description") if isinstance(error, dict) else str(error)
        raise ProviderError(f"{what}: {description}")
    result = finance.get("result")
    if not result:
        raise ValueError(f"No data returned for {what}")
    return result


def profile_from_quote(info: dict[str, Any], symbol: str) -> dict[str, Any]:
    """Company profile subset of a quote payload."""
    return {
        "symbol": info.get("symbol", symbol),
        "profile": {field: info.get(field) for field in PROFILE_FIELDS},
    }


class YahooFinanceClient:
    """
    Data provider backed by yfinance and Yahoo's public JSON endpoints.

    Blocking calls run in a bounded thread pool; each call is retried with
    exponential backoff on transient errors and bounded by a timeout so a
    hung request resolves with an error instead of stalling a fan-out.
    """

    def __init__(
        self,
        max_workers: int = 4,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        call_timeout: float = 30.0,
    ):
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._semaphore = asyncio.Semaphore(max_workers)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._call_timeout = call_timeout
        self._shutdown_event = asyncio.Event()

    # ------------------------------------------------------------------
    # Retry machinery
    # ------------------------------------------------------------------

    def calculate_backoff(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and jitter."""
        delay = self._base_delay * (2**attempt)
        # Jitter (+/-25%)
        jitter = delay * 0.25 * (2 * random.random() - 1)
        return min(delay + jitter, self._max_delay)

    async def _run_once(self, operation_name: str, sync_func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, sync_func),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(
                f"{operation_name} timed out after {self._call_timeout:g}s"
            ) from None

    async def _retry_with_backoff(self, operation_name: str, sync_func: Callable[[], T]) -> T:
        """
        Execute a synchronous function in the executor with retry logic.

        Raises:
            ProviderRetryError: If all retries exhausted
            ServerShuttingDownError: If server is shutting down
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            if self._shutdown_event.is_set():
                raise ServerShuttingDownError("Server is shutting down")

            try:
                return await self._run_once(operation_name, sync_func)
            except ProviderError:
                # Per-call timeouts are final: the hung call still holds a worker.
                # Timeouts raised by requests inside the call are classified below.
                raise
            except Exception as e:
                last_error = e
                is_retryable, error_max_retries = is_retryable_error(e, self._max_retries)
                if not is_retryable:
                    raise

                effective_max_retries = min(self._max_retries, error_max_retries)
                if attempt >= effective_max_retries:
                    logger.warning(
                        f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                    )
                    raise ProviderRetryError(
                        f"Failed after {attempt + 1} attempts: {e}",
                        last_error=last_error,
                    ) from e

                delay = self.calculate_backoff(attempt)
                logger.info(
                    f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

        raise ProviderRetryError(
            f"Failed after {self._max_retries + 1} attempts",
            last_error=last_error,
        )

    async def _call(self, operation_name: str, sync_func: Callable[[], T]) -> T:
        if self._shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")
        async with self._semaphore:
            return await self._retry_with_backoff(operation_name, sync_func)

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = requests.get(
            f"{YAHOO_QUERY_URL}{path}",
            params=params,
            headers=_HEADERS,
            timeout=self._call_timeout,
        )
        response.raise_for_status()
        return response.json()

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def quote(self, symbol: str) -> dict[str, Any]:
        """Current quote and summary fields for a symbol."""

        def _fetch() -> dict[str, Any]:
            info = yf.Ticker(symbol).info
            if not info or (
                info.get("quoteType") is None and info.get("regularMarketPrice") is None
            ):
                raise ValueError(f"Quote not found for symbol: {symbol}")
            return to_jsonable(info)

        return await self._call(f"quote({symbol})", _fetch)

    async def company_info(self, symbol: str) -> dict[str, Any]:
        """Company profile subset of the quote summary."""
        return profile_from_quote(await self.quote(symbol), symbol)

    async def chart(
        self, symbol: str, period1: datetime, period2: datetime, interval: str
    ) -> list[dict[str, Any]]:
        """Historical OHLCV bars between period1 and period2."""

        def _fetch() -> list[dict[str, Any]]:
            df = yf.Ticker(symbol).history(
                start=period1,
                end=period2,
                interval=interval,
                auto_adjust=False,
                raise_errors=True,
            )
            if df.empty:
                raise ValueError(f"No data returned for {symbol}")
            return chart_to_rows(df)

        return await self._call(f"chart({symbol})", _fetch)

    async def search(self, query: str, quotes_count: int = 10, news_count: int = 10) -> dict[str, Any]:
        """Symbol and news search."""

        def _fetch() -> dict[str, Any]:
            result = yf.Search(query, max_results=quotes_count, news_count=news_count)
            quotes = to_jsonable(result.quotes or [])
            news = to_jsonable(result.news or [])
            return {"count": len(quotes), "quotes": quotes, "news": news}

        return await self._call(f"search({query!r})", _fetch)

    async def trending_symbols(self, region: str, count: int = 10) -> dict[str, Any]:
        """Currently trending symbols for a region."""

        def _fetch() -> dict[str, Any]:
            payload = self._get_json(f"/v1/finance/trending/{region}", {"count": count})
            return to_jsonable(_finance_result(payload, f"trending {region}")[0])

        return await self._call(f"trending_symbols({region})", _fetch)

    async def recommendations_by_symbol(self, symbol: str) -> dict[str, Any]:
        """Similar symbols recommended for a symbol."""

        def _fetch() -> dict[str, Any]:
            payload = self._get_json(f"/v6/finance/recommendationsbysymbol/{symbol}")
            return to_jsonable(_finance_result(payload, f"recommendations {symbol}")[0])

        return await self._call(f"recommendations_by_symbol({symbol})", _fetch)

    async def insights(self, symbol: str) -> dict[str, Any]:
        """Technical events, valuation and research insights."""

        def _fetch() -> dict[str, Any]:
            payload = self._get_json("/ws/insights/v2/finance/insights", {"symbol": symbol})
            return to_jsonable(_finance_result(payload, f"insights {symbol}"))

        return await self._call(f"insights({symbol})", _fetch)

    async def screener(self, scr_id: str, count: int = 25) -> dict[str, Any]:
        """Predefined Yahoo screener results."""

        def _fetch() -> dict[str, Any]:
            return to_jsonable(yf.screen(scr_id, count=count))

        return await self._call(f"screener({scr_id})", _fetch)

    async def news(self, symbol: str, count: int = 10) -> list[dict[str, Any]]:
        """Recent news articles for a symbol."""

        def _fetch() -> list[dict[str, Any]]:
            return to_jsonable((yf.Ticker(symbol).news or [])[:count])

        return await self._call(f"news({symbol})", _fetch)

    async def financials(self, symbol: str) -> dict[str, Any]:
        """Annual income statement, balance sheet and cash flow."""

        def _fetch() -> dict[str, Any]:
            ticker = yf.Ticker(symbol)
            statements = {
                "income_statement": statement_to_records(ticker.income_stmt),
                "balance_sheet": statement_to_records(ticker.balance_sheet),
                "cash_flow": statement_to_records(ticker.cashflow),
            }
            if not any(statements.values()):
                raise ValueError(f"No financial statements for {symbol}")
            return {"symbol": symbol, **statements}

        return await self._call(f"financials({symbol})", _fetch)

    async def fund_holdings(self, symbol: str) -> dict[str, Any]:
        """Top holdings and allocation for ETFs and mutual funds."""

        def _fetch() -> dict[str, Any]:
            funds = yf.Ticker(symbol).funds_data
            top = funds.top_holdings
            return {
                "symbol": symbol,
                "top_holdings": to_jsonable(top.reset_index()) if top is not None else [],
                "asset_classes": to_jsonable(funds.asset_classes or {}),
                "sector_weightings": to_jsonable(funds.sector_weightings or {}),
            }

        return await self._call(f"fund_holdings({symbol})", _fetch)

    async def shutdown(self) -> None:
        """Cleanup on server shutdown."""
        self._shutdown_event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)
