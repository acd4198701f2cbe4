"""
Validation for data crossing the market data boundary.

Symbols are checked before any external call; prices and text coming back
from unofficial APIs are checked before they reach the DCA calculation.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

logger = logging.getLogger(__name__)

# Uppercase alphanumeric, dots and hyphens (exchange suffixes like VWCE.DE, pairs like BTC-USD)
VALID_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9\.\-]{1,12}$")

MAX_SYMBOL_LENGTH = 12
MAX_PRICE = Decimal("10000000")


class SymbolValidationError(ValueError):
    """Raised when symbol validation fails."""


class PriceValidationError(ValueError):
    """Raised when price validation fails."""


def validate_symbol(symbol: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Returns:
        Upper-cased, stripped symbol

    Raises:
        SymbolValidationError: If the symbol is empty, too long or has
            characters outside the allowed set
    """
    if not symbol or not symbol.strip():
        raise SymbolValidationError("Symbol is required")

    symbol = symbol.strip().upper()

    if len(symbol) > MAX_SYMBOL_LENGTH:
        raise SymbolValidationError(
            f"Symbol too long: {len(symbol)} chars (max {MAX_SYMBOL_LENGTH})"
        )

    if not VALID_SYMBOL_PATTERN.match(symbol):
        raise SymbolValidationError(
            f"Invalid symbol format: {symbol}. "
            f"Only uppercase letters, numbers, dots, and hyphens allowed."
        )

    return symbol


def validate_price(price, symbol: str = "") -> Decimal:
    """
    Validate a price returned by a provider.

    Raises:
        PriceValidationError: If the price is not a positive, plausible number
    """
    try:
        price = Decimal(str(price))
    except (InvalidOperation, ValueError) as e:
        raise PriceValidationError(f"Invalid price format for {symbol}: {e}") from e

    if not price.is_finite() or price <= 0:
        raise PriceValidationError(f"Price must be positive for {symbol}: {price}")

    if price > MAX_PRICE:
        logger.warning(
            "suspicious_price",
            extra={"symbol": symbol, "price": str(price)},
        )
        raise PriceValidationError(f"Price suspiciously high for {symbol}: {price}")

    # At most 4 decimal places
    if price.as_tuple().exponent < -4:
        price = price.quantize(Decimal("0.0001"))

    return price


def sanitize_text(text: Optional[str], max_length: int = 255) -> Optional[str]:
    """Strip tags, control characters and odd symbols from provider text fields."""
    if not text:
        return None

    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[\x00-\x1F\x7F]", "", text)
    text = re.sub(r"[^\w\s\.\-&,\(\)]", "", text)
    text = " ".join(text.split())[:max_length].strip()

    return text or None


def validate_currency(currency: Optional[str]) -> str:
    """Three-letter upper-case code, USD when missing or malformed."""
    if not currency:
        return "USD"
    currency = currency.strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        logger.warning("invalid_currency_code", extra={"currency": currency})
        return "USD"
    return currency
