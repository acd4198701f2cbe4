"""
Provider factory for market data.

Centralizes provider selection logic.
"""

import logging
from typing import Optional

from firetools.config import settings

from .base_provider import MarketDataProvider
from .yahoo_finance_provider import YahooFinanceProvider

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("yahoo_finance",)


class MarketDataProviderFactory:
    """Factory for creating market data providers."""

    _instance: Optional[MarketDataProvider] = None

    @classmethod
    def get_provider(cls, provider_name: Optional[str] = None) -> MarketDataProvider:
        """
        Get market data provider instance.

        Args:
            provider_name: Override provider. If None, uses MARKET_DATA_PROVIDER
                and caches the instance.

        Raises:
            ValueError: If provider not supported
        """
        if provider_name is None and cls._instance is not None:
            return cls._instance

        name = (provider_name or settings.MARKET_DATA_PROVIDER).lower()
        if name == "yahoo_finance":
            provider = YahooFinanceProvider()
        else:
            raise ValueError(
                f"Unsupported market data provider: {name}. "
                f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        logger.info("market_data_provider_selected", extra={"provider": provider.get_provider_name()})

        if provider_name is None:
            cls._instance = provider
        return provider

    @classmethod
    def reset(cls) -> None:
        """Drop the cached provider."""
        cls._instance = None


def get_market_data_provider(provider_name: Optional[str] = None) -> MarketDataProvider:
    """Convenience wrapper around :meth:`MarketDataProviderFactory.get_provider`."""
    return MarketDataProviderFactory.get_provider(provider_name)
