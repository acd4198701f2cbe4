"""
Currency conversion over a static exchange-rate table.

Rates give the value of one unit of a currency in the table's base currency
(EUR for ``DEFAULT_FALLBACK_RATES``). Conversions between two non-base
currencies go through the base. A currency missing from a custom table falls
back to the default rate.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Union

from firetools.schemas.currency import (
    DEFAULT_FALLBACK_RATES,
    SUPPORTED_CURRENCIES,
    ExchangeRates,
    SupportedCurrency,
)

logger = logging.getLogger(__name__)

ONE = Decimal("1")
ZERO = Decimal("0")
CENT = Decimal("0.01")

Number = Union[int, float, str, Decimal]
RateTable = Mapping[SupportedCurrency, Decimal]


def _rate(currency: SupportedCurrency, rates: Optional[RateTable]) -> Optional[Decimal]:
    rate = (rates or {}).get(currency)
    if rate is None:
        rate = DEFAULT_FALLBACK_RATES.get(currency)
    return None if rate is None else Decimal(str(rate))


def _valid_rate(currency: SupportedCurrency, rates: Optional[RateTable]) -> Optional[Decimal]:
    """The rate for ``currency``, or ``None`` (logged) when it is missing or not positive."""
    rate = _rate(currency, rates)
    if rate is None or rate <= ZERO:
        logger.warning(
            "invalid_exchange_rate",
            extra={"currency": currency.value, "rate": None if rate is None else str(rate)},
        )
        return None
    return rate


def convert_to_base(
    amount: Number,
    from_currency: SupportedCurrency,
    rates: Optional[RateTable] = None,
) -> Decimal:
    """
    Convert ``amount`` in ``from_currency`` into the base currency.

    An unusable rate converts 1:1.

    Example:
        >>> convert_to_base(100, SupportedCurrency.USD)
        Decimal('85.00')
    """
    value = Decimal(str(amount))
    rate = _valid_rate(from_currency, rates)
    if rate is None:
        return value
    return value * rate


def convert_from_base(
    amount: Number,
    to_currency: SupportedCurrency,
    rates: Optional[RateTable] = None,
) -> Decimal:
    """Convert a base-currency ``amount`` into ``to_currency``. An unusable rate converts 1:1."""
    value = Decimal(str(amount))
    rate = _valid_rate(to_currency, rates)
    if rate is None:
        return value
    return value / rate


def get_exchange_rate(
    from_currency: SupportedCurrency,
    to_currency: SupportedCurrency,
    rates: Optional[RateTable] = None,
) -> Decimal:
    """How many units of ``to_currency`` one unit of ``from_currency`` buys."""
    if from_currency == to_currency:
        return ONE

    from_rate = _valid_rate(from_currency, rates) or ONE
    to_rate = _valid_rate(to_currency, rates) or ONE
    return from_rate / to_rate


def convert_amount(
    amount: Number,
    from_currency: SupportedCurrency,
    to_currency: SupportedCurrency,
    rates: Optional[RateTable] = None,
) -> Decimal:
    value = Decimal(str(amount))
    if from_currency == to_currency:
        return value
    return value * get_exchange_rate(from_currency, to_currency, rates)


def recalculate_fallback_rates(
    current_rates: RateTable,
    from_base: SupportedCurrency,
    to_base: SupportedCurrency,
) -> ExchangeRates:
    """
    Re-express a rate table relative to a new base currency.

    Every supported currency gets an entry; the new base is exactly 1.

    Args:
        current_rates: Rates relative to ``from_base``
        from_base: The table's current base currency
        to_base: The new base currency

    Returns:
        A new table; ``current_rates`` is not modified
    """
    if from_base == to_base:
        return dict(current_rates)

    conversion_rate = get_exchange_rate(from_base, to_base, current_rates)

    new_rates: ExchangeRates = {}
    for info in SUPPORTED_CURRENCIES:
        if info.code == to_base:
            new_rates[info.code] = ONE
        else:
            old_rate = _rate(info.code, current_rates) or ONE
            new_rates[info.code] = old_rate * conversion_rate

    logger.info(
        "fallback_rates_rebased",
        extra={"from_base": from_base.value, "to_base": to_base.value},
    )
    return new_rates


def get_currency_symbol(currency: Union[SupportedCurrency, str]) -> str:
    """The display symbol, or the code itself for an unknown currency."""
    code = currency.value if isinstance(currency, SupportedCurrency) else currency
    for info in SUPPORTED_CURRENCIES:
        if info.code.value == code:
            return info.symbol
    return code


def format_currency_value(
    value: Number,
    currency: Union[SupportedCurrency, str],
    decimal_separator: str = ".",
) -> str:
    """
    Format ``value`` with two decimals, the currency symbol and a leading minus sign.

    ``decimal_separator=","`` switches to the European style (``€1.234,56``).
    """
    amount = Decimal(str(value))
    rounded = abs(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    formatted = f"{rounded:,.2f}"
    if decimal_separator == ",":
        formatted = formatted.translate(str.maketrans({",": ".", ".": ","}))

    sign = "-" if amount < ZERO and rounded != ZERO else ""
    return f"{sign}{get_currency_symbol(currency)}{formatted}"


def is_valid_currency(code: str) -> bool:
    return code in {c.value for c in SupportedCurrency}
