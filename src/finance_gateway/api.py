"""HTTP routes for the finance gateway (FastAPI)."""

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finance_gateway import SERVER_VERSION
from finance_gateway.data.outcome import Ok, Outcome, keyed_to_json, ordered_to_json
from finance_gateway.tools.market_data import MarketData
from finance_gateway.utils.validators import parse_symbols

logger = logging.getLogger(__name__)

router = APIRouter()


def get_market(request: Request) -> MarketData:
    return request.app.state.market


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _single(outcome: Outcome[Any], what: str) -> Any:
    """Single-item routes surface a failed outcome as HTTP 500."""
    if isinstance(outcome, Ok):
        return outcome.value
    logger.error(f"{what} endpoint error: {outcome.message}")
    return _error(500, outcome.message)


# ── Health ───────────────────────────────────────────────
@router.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    """Verify server status and availability"""
    return {"status": "ok"}


# ── Multi-symbol routes ──────────────────────────────────
@router.get("/quote/{symbols}", tags=["Quotes"])
async def get_quotes(symbols: str, market: MarketData = Depends(get_market)):
    """Current quotes for comma-separated symbols, keyed by symbol"""
    try:
        symbol_list = parse_symbols(symbols)
    except ValueError as e:
        return _error(400, str(e))
    return keyed_to_json(await market.quotes(symbol_list))


@router.get("/history/{symbols}", tags=["Historical Data"])
async def get_history(
    symbols: str,
    period: str = Query(default="1y", description="1d, 5d, 1mo, 3mo, 6mo, 1y, 2y, 5y, 10y, ytd, max"),
    interval: str = Query(default="1d", description="1m ... 3mo"),
    market: MarketData = Depends(get_market),
):
    """Historical bars for comma-separated symbols, in request order"""
    try:
        symbol_list = parse_symbols(symbols)
        result = await market.history(symbol_list, period=period, interval=interval)
    except ValueError as e:
        return _error(400, str(e))
    return ordered_to_json(result)


@router.get("/info/{symbols}", tags=["Company Info"])
async def get_info(symbols: str, market: MarketData = Depends(get_market)):
    """Company profiles for comma-separated symbols, in request order"""
    try:
        symbol_list = parse_symbols(symbols)
    except ValueError as e:
        return _error(400, str(e))
    return ordered_to_json(await market.company_info(symbol_list))


# ── Single-item routes ───────────────────────────────────
@router.get("/search/{query}", tags=["Search"])
async def get_search(
    query: str,
    count: int | None = Query(default=None, description="Max results (default 10, max 50)"),
    market: MarketData = Depends(get_market),
):
    """Search for symbols and news"""
    if not query.strip():
        return _error(400, "Search query is required")
    return _single(await market.search(query, count), f'Search "{query}"')


@router.get("/trending/{region}", tags=["Trending"])
async def get_trending(
    region: str,
    count: int | None = Query(default=None, description="Max symbols (default 10, max 50)"),
    market: MarketData = Depends(get_market),
):
    """Currently trending symbols for a region (US, CA, GB, DE, ...)"""
    return _single(await market.trending(region, count), f"Trending {region}")


@router.get("/recommendations/{symbol}", tags=["Recommendations"])
async def get_recommendations(symbol: str, market: MarketData = Depends(get_market)):
    """Similar stocks recommended for a symbol"""
    return _single(await market.recommendations(symbol), f"Recommendations {symbol}")


@router.get("/insights/{symbol}", tags=["Insights"])
async def get_insights(symbol: str, market: MarketData = Depends(get_market)):
    """Research insights for a symbol"""
    return _single(await market.insights(symbol), f"Insights {symbol}")


@router.get("/screener/{screener_type}", tags=["Screener"])
async def get_screener(
    screener_type: str,
    count: int | None = Query(default=None, description="Max results (default 25, max 100)"),
    market: MarketData = Depends(get_market),
):
    """Predefined screener results (day_gainers, day_losers, most_actives, ...)"""
    try:
        outcome = await market.screener(screener_type, count)
    except ValueError as e:
        return _error(400, str(e))
    return _single(outcome, f"Screener {screener_type}")


@router.get("/news", tags=["News"])
async def get_general_news(
    count: int | None = Query(default=None, description="Max articles (default 10, max 50)"),
    market: MarketData = Depends(get_market),
):
    """General market news"""
    return _single(await market.news(None, count), "General news")


@router.get("/news/{symbol}", tags=["News"])
async def get_symbol_news(
    symbol: str,
    count: int | None = Query(default=None, description="Max articles (default 10, max 50)"),
    market: MarketData = Depends(get_market),
):
    """News articles for a symbol"""
    return _single(await market.news(symbol, count), f"News {symbol}")


@router.get("/financials/{symbol}", tags=["Financials"])
async def get_financials(symbol: str, market: MarketData = Depends(get_market)):
    """Annual income statement, balance sheet and cash flow"""
    return _single(await market.financials(symbol), f"Financials {symbol}")


@router.get("/holdings/{symbol}", tags=["Holdings"])
async def get_holdings(symbol: str, market: MarketData = Depends(get_market)):
    """Top holdings and allocation for an ETF or mutual fund"""
    return _single(await market.fund_holdings(symbol), f"Holdings {symbol}")


# ── Cache management ─────────────────────────────────────
@router.get("/cache/stats", tags=["Cache"])
async def cache_stats(market: MarketData = Depends(get_market)) -> dict[str, Any]:
    """Cache entry count and hit/miss counters"""
    resolver = market.resolver
    return {"enabled": resolver.enabled, **resolver.store.stats()}


@router.post("/cache/clear", tags=["Cache"])
async def cache_clear(market: MarketData = Depends(get_market)) -> dict[str, Any]:
    """Drop all cached responses"""
    market.resolver.store.clear()
    logger.info("Cache cleared")
    return {"cleared": True}


def create_api(market: MarketData, lifespan: Callable | None = None) -> FastAPI:
    """
    Build the FastAPI application around a market data service.

    Args:
        market: Market data service shared with the MCP tools
        lifespan: Optional lifespan context manager factory

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Finance Gateway",
        description="Yahoo Finance data over HTTP and MCP with per-symbol fan-out and caching",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.market = market

    @app.middleware("http")
    async def add_process_time(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = f"{(time.time() - start) * 1000:.1f}ms"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            field = errors[0].get("loc", ("",))[-1]
            message = f"Invalid {field}: {errors[0].get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        return _error(400, message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return _error(500, str(exc))

    app.include_router(router)
    return app
