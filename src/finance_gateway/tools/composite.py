"""Composite MCP tools built from several market data sections."""

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from finance_gateway.data.fanout import fan_out_keyed
from finance_gateway.data.outcome import Ok, Outcome
from finance_gateway.data.yahoo_client import ProviderError, profile_from_quote
from finance_gateway.tools.market_data import MarketData
from finance_gateway.utils.responses import build_error_response, build_meta
from finance_gateway.utils.validators import clamp_count, normalize_symbol

SectionLoader = Callable[[], Awaitable[Outcome[Any]]]

MARKET_ACTIONS = ("trending", "screener", "search")
NEWS_ACTIONS = ("news", "search")


def _unwrap(outcome: Outcome[Any]) -> Any:
    if isinstance(outcome, Ok):
        return outcome.value
    raise ProviderError(outcome.message)


async def gather_sections(
    loaders: dict[str, SectionLoader], label: str
) -> tuple[dict[str, Any], dict[str, str]]:
    """
    Load all sections concurrently.

    Returns:
        Tuple of (data, errors): data maps every section to its value or None,
        errors maps failed sections to their message
    """

    async def _load(name: str) -> Any:
        return _unwrap(await loaders[name]())

    result = await fan_out_keyed(list(loaders), _load, label=label)

    data: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for name, outcome in result.items():
        if isinstance(outcome, Ok):
            data[name] = outcome.value
        else:
            data[name] = None
            errors[name] = outcome.message
    return data, errors


def _section_response(
    tool: str, start_time: float, symbol: str, data: dict[str, Any], errors: dict[str, str]
) -> dict[str, Any]:
    return {
        "meta": build_meta(tool, (perf_counter() - start_time) * 1000),
        "symbol": symbol,
        **data,
        "errors": errors,
    }


def _single_response(tool: str, start_time: float, outcome: Outcome[Any], **fields: Any) -> dict[str, Any]:
    if not isinstance(outcome, Ok):
        return build_error_response(
            error_type="data_unavailable",
            message=f"Failed to fetch data: {outcome.message}",
            symbol=fields.get("symbol"),
        )
    return {
        "meta": build_meta(tool, (perf_counter() - start_time) * 1000),
        **fields,
        "data": outcome.value,
    }


async def stock_overview(market: MarketData, symbol: str) -> dict[str, Any]:
    """
    Current quote plus company profile for one symbol.

    Args:
        market: Market data service
        symbol: Stock ticker symbol

    Returns:
        Dict with quote, profile and per-section errors
    """
    start_time = perf_counter()
    symbol = normalize_symbol(symbol)
    if not symbol:
        return build_error_response("invalid_parameters", "symbol is required")

    outcome = (await market.quotes([symbol]))[symbol]
    data: dict[str, Any] = {}
    errors: dict[str, str] = {}
    # Profile fields are a subset of the quote payload
    if isinstance(outcome, Ok):
        data["quote"] = outcome.value
        data["profile"] = profile_from_quote(outcome.value, symbol)
    else:
        data["quote"] = data["profile"] = None
        errors["quote"] = errors["profile"] = outcome.message
    return _section_response("get_stock_overview", start_time, symbol, data, errors)


async def stock_analysis(
    market: MarketData,
    symbol: str,
    include_news: bool = True,
    news_count: int = 5,
) -> dict[str, Any]:
    """
    Analyst recommendations, insights and (optionally) recent news.

    Args:
        market: Market data service
        symbol: Stock ticker symbol
        include_news: Include recent news articles
        news_count: Number of articles (1-20)

    Returns:
        Dict with recommendations, insights, news and per-section errors
    """
    start_time = perf_counter()
    symbol = normalize_symbol(symbol)
    if not symbol:
        return build_error_response("invalid_parameters", "symbol is required")
    news_count = clamp_count(news_count, 5, 20)

    loaders: dict[str, SectionLoader] = {
        "recommendations": lambda: market.recommendations(symbol),
        "insights": lambda: market.insights(symbol),
    }
    if include_news:
        loaders["news"] = lambda: market.news(symbol, news_count)

    data, errors = await gather_sections(loaders, label="stock_analysis")
    return _section_response("get_stock_analysis", start_time, symbol, data, errors)


async def market_intelligence(
    market: MarketData,
    action: str,
    region: str = "US",
    screener_type: str | None = None,
    search_query: str | None = None,
    count: int = 25,
) -> dict[str, Any]:
    """
    Trending symbols, screener results or symbol search.

    Args:
        market: Market data service
        action: One of trending, screener, search
        region: Region for trending symbols
        screener_type: Screener name (required for screener)
        search_query: Query text (required for search)
        count: Number of results (1-50)

    Returns:
        Dict with action and data, or an error response
    """
    start_time = perf_counter()
    count = clamp_count(count, 25, 50)

    if action == "trending":
        outcome = await market.trending(region or "US", count)
        return _single_response(
            "get_market_intelligence", start_time, outcome, action=action, region=region
        )

    if action == "screener":
        if not screener_type:
            return build_error_response(
                "invalid_parameters", "screener_type is required for the screener action"
            )
        try:
            outcome = await market.screener(screener_type, count)
        except ValueError as e:
            return build_error_response("invalid_parameters", str(e))
        return _single_response(
            "get_market_intelligence",
            start_time,
            outcome,
            action=action,
            screener_type=screener_type,
        )

    if action == "search":
        if not search_query or not search_query.strip():
            return build_error_response(
                "invalid_parameters", "search_query is required for the search action"
            )
        outcome = await market.search(search_query, count)
        return _single_response(
            "get_market_intelligence", start_time, outcome, action=action, query=search_query
        )

    return build_error_response(
        "invalid_parameters",
        f"Unknown action '{action}'. Must be one of: {', '.join(MARKET_ACTIONS)}",
    )


async def financial_deep_dive(market: MarketData, symbol: str) -> dict[str, Any]:
    """
    Quote, financial statements and fund holdings for one symbol.

    Holdings only exist for ETFs and mutual funds; for equities that section
    is reported under errors while the rest is returned.
    """
    start_time = perf_counter()
    symbol = normalize_symbol(symbol)
    if not symbol:
        return build_error_response("invalid_parameters", "symbol is required")

    async def _quote() -> Outcome[Any]:
        return (await market.quotes([symbol]))[symbol]

    data, errors = await gather_sections(
        {
            "quote": _quote,
            "financials": lambda: market.financials(symbol),
            "holdings": lambda: market.fund_holdings(symbol),
        },
        label="financial_deep_dive",
    )
    return _section_response("get_financial_deep_dive", start_time, symbol, data, errors)


async def news_and_research(
    market: MarketData,
    action: str,
    symbol: str | None = None,
    query: str | None = None,
    count: int = 10,
) -> dict[str, Any]:
    """
    News for a symbol or symbol/news search.

    Args:
        market: Market data service
        action: One of news, search
        symbol: Ticker symbol (required for news)
        query: Query text (required for search)
        count: Number of results (1-25)
    """
    start_time = perf_counter()
    count = clamp_count(count, 10, 25)

    if action == "news":
        if not symbol or not symbol.strip():
            return build_error_response(
                "invalid_parameters", "symbol is required for the news action"
            )
        symbol = normalize_symbol(symbol)
        outcome = await market.news(symbol, count)
        return _single_response(
            "get_news_and_research", start_time, outcome, action=action, symbol=symbol
        )

    if action == "search":
        if not query or not query.strip():
            return build_error_response(
                "invalid_parameters", "query is required for the search action"
            )
        outcome = await market.search(query, count)
        return _single_response(
            "get_news_and_research", start_time, outcome, action=action, query=query
        )

    return build_error_response(
        "invalid_parameters",
        f"Unknown action '{action}'. Must be one of: {', '.join(NEWS_ACTIONS)}",
    )
