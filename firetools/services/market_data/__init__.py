"""
Market data service - provider-agnostic current prices for the DCA helper.

Supported providers:
- Yahoo Finance (free, default)
"""

from .base_provider import MarketDataProvider, QuoteData
from .provider_factory import get_market_data_provider
from .yahoo_finance_provider import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "QuoteData",
    "YahooFinanceProvider",
    "get_market_data_provider",
]
