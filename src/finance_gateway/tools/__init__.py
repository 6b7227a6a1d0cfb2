"""Market data operations and composite MCP tools."""

from finance_gateway.tools.composite import (
    financial_deep_dive,
    market_intelligence,
    news_and_research,
    stock_analysis,
    stock_overview,
)
from finance_gateway.tools.market_data import MarketData

__all__ = [
    "MarketData",
    "financial_deep_dive",
    "market_intelligence",
    "news_and_research",
    "stock_analysis",
    "stock_overview",
]
