"""Finance Gateway server: MCP tools plus the HTTP API in one process."""

import argparse
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Literal

import uvicorn
from fastapi import FastAPI
from fastmcp import FastMCP

from finance_gateway import SERVER_VERSION
from finance_gateway.api import create_api
from finance_gateway.config import GatewayConfig
from finance_gateway.data.cache import CacheStore
from finance_gateway.data.resolver import CachedResolver
from finance_gateway.data.yahoo_client import YahooFinanceClient
from finance_gateway.tools import (
    MarketData,
    financial_deep_dive,
    market_intelligence,
    news_and_research,
    stock_analysis,
    stock_overview,
)

logger = logging.getLogger(__name__)

ScreenerType = Literal[
    "day_gainers",
    "day_losers",
    "most_actives",
    "most_shorted",
    "growth_stocks",
    "undervalued_growth_stocks",
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@dataclass
class Gateway:
    """Shared components wired once per process."""

    config: GatewayConfig
    store: CacheStore
    provider: YahooFinanceClient
    market: MarketData


def build_gateway(config: GatewayConfig) -> Gateway:
    """Wire cache, resolver and provider from config."""
    store = CacheStore(default_ttl=config.cache_ttl)
    resolver = CachedResolver(
        store,
        enabled=config.cache_enabled,
        fan_out_limit=config.fan_out_limit or None,
    )
    provider = YahooFinanceClient(
        max_workers=config.max_workers,
        max_retries=config.max_retries,
        base_delay=config.base_delay,
        max_delay=config.max_delay,
        call_timeout=config.call_timeout,
    )
    logger.info(
        f"Cache {'enabled' if config.cache_enabled else 'disabled'} (TTL: {config.cache_ttl}s)"
    )
    return Gateway(config=config, store=store, provider=provider, market=MarketData(provider, resolver))


def create_mcp_server(market: MarketData) -> FastMCP:
    """Create the MCP server with the composite tools bound to market."""
    mcp = FastMCP(name="finance-gateway")

    @mcp.tool
    async def get_stock_overview(symbol: str) -> str:
        """
        Get a comprehensive stock overview: current quote and company profile.

        Args:
            symbol: Stock ticker symbol (e.g., AAPL, MSFT)

        Returns:
            JSON with quote, profile and any per-section errors
        """
        result = await stock_overview(market, symbol=symbol)
        return json.dumps(result, indent=2, default=str)

    @mcp.tool
    async def get_stock_analysis(symbol: str, include_news: bool = True, news_count: int = 5) -> str:
        """
        Get analyst recommendations, research insights and recent news for a stock.

        Args:
            symbol: Stock ticker symbol
            include_news: Include recent news articles (default: true)
            news_count: Number of news articles, 1-20 (default: 5)

        Returns:
            JSON with recommendations, insights, news and any per-section errors
        """
        result = await stock_analysis(
            market, symbol=symbol, include_news=include_news, news_count=news_count
        )
        return json.dumps(result, indent=2, default=str)

    @mcp.tool
    async def get_market_intelligence(
        action: Literal["trending", "screener", "search"],
        region: str = "US",
        screener_type: ScreenerType | None = None,
        search_query: str | None = None,
        count: int = 25,
    ) -> str:
        """
        Get market intelligence: trending symbols, screener results or symbol search.

        Args:
            action: trending, screener or search
            region: Region for trending symbols (default: US)
            screener_type: Screener to run (required for screener)
            search_query: Query text (required for search)
            count: Number of results, 1-50 (default: 25)

        Returns:
            JSON with the requested market data
        """
        result = await market_intelligence(
            market,
            action=action,
            region=region,
            screener_type=screener_type,
            search_query=search_query,
            count=count,
        )
        return json.dumps(result, indent=2, default=str)

    @mcp.tool
    async def get_financial_deep_dive(symbol: str) -> str:
        """
        Get financial statements, current quote and fund holdings (ETFs and funds).

        Args:
            symbol: Stock or fund ticker symbol

        Returns:
            JSON with quote, financials, holdings and any per-section errors
        """
        result = await financial_deep_dive(market, symbol=symbol)
        return json.dumps(result, indent=2, default=str)

    @mcp.tool
    async def get_news_and_research(
        action: Literal["news", "search"],
        symbol: str | None = None,
        query: str | None = None,
        count: int = 10,
    ) -> str:
        """
        Get news for a symbol or search symbols and news.

        Args:
            action: news or search
            symbol: Ticker symbol (required for news)
            query: Query text (required for search)
            count: Number of results, 1-25 (default: 10)

        Returns:
            JSON with news articles or search results
        """
        result = await news_and_research(
            market, action=action, symbol=symbol, query=query, count=count
        )
        return json.dumps(result, indent=2, default=str)

    return mcp


def create_app(config: GatewayConfig | None = None) -> FastAPI:
    """
    Build the combined application: REST routes plus MCP over HTTP at /mcp.

    The MCP endpoint is stateless and answers with plain JSON, so every
    request is served independently.
    """
    config = config or GatewayConfig.from_env()
    gateway = build_gateway(config)
    mcp = create_mcp_server(gateway.market)
    mcp_app = mcp.http_app(path="/mcp", stateless_http=True, json_response=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Finance Gateway v{SERVER_VERSION}")
        try:
            async with mcp_app.lifespan(app):
                yield
        finally:
            logger.info("Shutting down Finance Gateway")
            await gateway.provider.shutdown()

    app = create_api(gateway.market, lifespan=lifespan)
    app.mount("/", mcp_app)
    return app


def main() -> None:
    """Run the gateway over HTTP, or the MCP server alone over stdio."""
    parser = argparse.ArgumentParser(description="Finance Gateway")
    parser.add_argument("--stdio", action="store_true", help="Serve MCP over stdio only")
    args = parser.parse_args()

    config = GatewayConfig.from_env()
    configure_logging(config.log_level)

    if args.stdio:
        gateway = build_gateway(config)
        logger.info(f"Starting Finance Gateway MCP server v{SERVER_VERSION} (stdio)")
        create_mcp_server(gateway.market).run()
        return

    logger.info(f"Finance Gateway listening on http://{config.host}:{config.port}")
    logger.info(f"MCP endpoint: http://{config.host}:{config.port}/mcp")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
