"""
Yahoo Finance market data provider.

Free, no API key required. Covers stocks, ETFs, funds and crypto pairs,
with quotes delayed 15-20 minutes on some exchanges.
"""

import asyncio
import logging
from time import time
from typing import Dict, List, Optional

import yfinance as yf

from firetools.config import settings

from .base_provider import MarketDataProvider, QuoteData
from .security import (
    PriceValidationError,
    SymbolValidationError,
    sanitize_text,
    validate_currency,
    validate_price,
    validate_symbol,
)

logger = logging.getLogger(__name__)

PROVIDER_KEY = "yahoo_finance"


def _api_extra(operation: str, started: Optional[float] = None, **fields) -> dict:
    """Log context shared by every external call record."""
    extra = {"provider": PROVIDER_KEY, "operation": operation, **fields}
    if started is not None:
        extra["duration_ms"] = (time() - started) * 1000
    return extra


class YahooFinanceProvider(MarketDataProvider):
    """Yahoo Finance implementation backed by yfinance."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Per-call timeout in seconds, defaults to
                MARKET_DATA_TIMEOUT_SECONDS
        """
        self.provider_name = "Yahoo Finance"
        self.timeout = timeout if timeout is not None else settings.MARKET_DATA_TIMEOUT_SECONDS

    async def _fetch_price(self, ticker: "yf.Ticker", info: dict) -> Optional[float]:
        price = info.get("currentPrice") or info.get("regularMarketPrice")
        if price is not None:
            return price

        hist = await asyncio.wait_for(
            asyncio.to_thread(lambda: ticker.history(period="1d")), timeout=self.timeout
        )
        if not hist.empty:
            return float(hist["Close"].iloc[-1])
        return None

    async def get_quote(self, symbol: str) -> QuoteData:
        """Get current quote from Yahoo Finance."""
        # Validate before making the external call
        try:
            symbol = validate_symbol(symbol)
        except SymbolValidationError as e:
            logger.error("symbol_validation_failed", extra={"error": str(e)})
            raise

        logger.info("external_api_call", extra=_api_extra("get_quote", symbol=symbol))
        started = time()

        try:
            # yfinance is blocking; run it in a worker thread with a timeout
            ticker = await asyncio.wait_for(
                asyncio.to_thread(yf.Ticker, symbol), timeout=self.timeout
            )
            info = await asyncio.wait_for(
                asyncio.to_thread(lambda: ticker.info), timeout=self.timeout
            )

            raw_price = await self._fetch_price(ticker, info)
            if raw_price is None:
                raise ValueError(f"No price data available for {symbol}")

            previous_close = info.get("previousClose")
            quote = QuoteData(
                symbol=symbol,
                price=validate_price(raw_price, symbol),
                name=sanitize_text(info.get("longName") or info.get("shortName")),
                currency=validate_currency(info.get("currency")),
                exchange=sanitize_text(info.get("exchange")),
                previous_close=(
                    validate_price(previous_close, symbol) if previous_close else None
                ),
            )

            logger.info(
                "external_api_success",
                extra=_api_extra("get_quote", started, symbol=symbol, price=str(quote.price)),
            )
            return quote

        except asyncio.TimeoutError as e:
            logger.error(
                "external_api_timeout",
                extra=_api_extra(
                    "get_quote", started, symbol=symbol, timeout_seconds=self.timeout
                ),
            )
            raise ValueError(
                f"Request timeout for {symbol} - Yahoo Finance did not respond in time"
            ) from e
        except PriceValidationError:
            raise
        except Exception as e:
            logger.error(
                "external_api_failure",
                extra=_api_extra("get_quote", started, symbol=symbol, error=str(e)),
            )
            raise ValueError(f"Failed to fetch quote for {symbol}: {e}") from e

    async def get_quotes_batch(self, symbols: List[str]) -> Dict[str, QuoteData]:
        """Fetch quotes concurrently; failed symbols are logged and left out."""
        # First 10 symbols only, to keep log lines short
        logger.info(
            "external_api_call",
            extra=_api_extra("get_quotes_batch", symbol_count=len(symbols), symbols=symbols[:10]),
        )
        started = time()

        results = await asyncio.gather(
            *(self.get_quote(symbol) for symbol in symbols), return_exceptions=True
        )

        quotes: Dict[str, QuoteData] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, ValueError):
                logger.warning(
                    "quote_unavailable",
                    extra={"provider": PROVIDER_KEY, "symbol": symbol, "error": str(result)},
                )
                continue
            if isinstance(result, BaseException):
                raise result
            quotes[symbol] = result

        logger.info(
            "external_api_success",
            extra=_api_extra(
                "get_quotes_batch",
                started,
                symbol_count=len(symbols),
                successful_count=len(quotes),
            ),
        )
        return quotes

    def get_provider_name(self) -> str:
        """Get provider name."""
        return self.provider_name
