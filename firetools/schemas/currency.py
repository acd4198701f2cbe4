"""Currency schemas: supported currencies and exchange-rate tables."""

import enum
from decimal import Decimal
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict


class SupportedCurrency(str, enum.Enum):
    """Currencies amounts can be entered in."""

    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    CHF = "CHF"
    JPY = "JPY"
    AUD = "AUD"
    CAD = "CAD"


class CurrencyInfo(BaseModel):
    """Display metadata for a currency."""

    model_config = ConfigDict(frozen=True)

    code: SupportedCurrency
    symbol: str
    name: str


SUPPORTED_CURRENCIES: Tuple[CurrencyInfo, ...] = (
    CurrencyInfo(code=SupportedCurrency.EUR, symbol="€", name="Euro"),
    CurrencyInfo(code=SupportedCurrency.USD, symbol="$", name="US Dollar"),
    CurrencyInfo(code=SupportedCurrency.GBP, symbol="£", name="British Pound"),
    CurrencyInfo(code=SupportedCurrency.CHF, symbol="CHF", name="Swiss Franc"),
    CurrencyInfo(code=SupportedCurrency.JPY, symbol="¥", name="Japanese Yen"),
    CurrencyInfo(code=SupportedCurrency.AUD, symbol="A$", name="Australian Dollar"),
    CurrencyInfo(code=SupportedCurrency.CAD, symbol="C$", name="Canadian Dollar"),
)

# Value of one unit of each currency in the base currency of the table
ExchangeRates = Dict[SupportedCurrency, Decimal]

DEFAULT_FALLBACK_RATES: ExchangeRates = {
    SupportedCurrency.EUR: Decimal("1"),
    SupportedCurrency.USD: Decimal("0.85"),
    SupportedCurrency.GBP: Decimal("1.15"),
    SupportedCurrency.CHF: Decimal("1.08"),
    SupportedCurrency.JPY: Decimal("0.0054"),
    SupportedCurrency.AUD: Decimal("0.57"),
    SupportedCurrency.CAD: Decimal("0.62"),
}
