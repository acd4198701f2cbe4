"""
Base provider interface for market data.

The DCA helper only needs current prices; a provider maps ticker symbols to
quotes and nothing else.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class QuoteData(BaseModel):
    """Standardized quote data across providers."""

    symbol: str
    price: Decimal
    name: Optional[str] = None
    currency: str = "USD"
    exchange: Optional[str] = None
    previous_close: Optional[Decimal] = None


class MarketDataProvider(ABC):
    """Abstract base class for market data providers."""

    @abstractmethod
    async def get_quote(self, symbol: str) -> QuoteData:
        """
        Get current quote for a symbol.

        Args:
            symbol: Ticker symbol (e.g., "VWCE.DE", "BTC-USD")

        Returns:
            QuoteData with current price

        Raises:
            ValueError: If the symbol is invalid, unknown or the lookup fails
        """

    @abstractmethod
    async def get_quotes_batch(self, symbols: List[str]) -> Dict[str, QuoteData]:
        """
        Get quotes for several symbols.

        Returns:
            Dict mapping each successfully quoted symbol to its QuoteData.
            Symbols that fail are left out.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get human-readable provider name."""
