"""
Net worth tracker calculations over monthly snapshots.

Every amount is converted into the base currency of the rate table before it
is summed. Net worth is holdings plus cash plus pensions; taxes paid are
reported alongside but not subtracted, since they already left the cash
balances.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

from firetools.schemas.net_worth import (
    AssetPriceVariation,
    ConfidenceLevel,
    FIREProgress,
    MonthlyNetWorth,
    MonthlySnapshot,
    MonthlyVariation,
    NetWorthForecast,
    NetWorthYearData,
    OperationType,
    YTDSummary,
)
from firetools.services.currency_service import RateTable, convert_to_base

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

MAX_PROJECTION_YEARS = 100
HIGH_CONFIDENCE_MIN_MONTHS = 24
MEDIUM_CONFIDENCE_MIN_MONTHS = 6
HIGH_CONFIDENCE_MAX_VARIATION = Decimal("0.3")

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

INCOME_OPERATIONS = frozenset(
    {
        OperationType.DIVIDEND,
        OperationType.SALE,
        OperationType.EXPENSE_REIMBURSEMENT,
        OperationType.GIFT_RECEIVED,
    }
)
EXPENSE_OPERATIONS = frozenset(
    {
        OperationType.TAX_PAID,
        OperationType.GIFT_GIVEN,
        OperationType.PURCHASE,
    }
)


def format_month_label(year: int, month: int) -> str:
    """e.g. ``format_month_label(2024, 1) == "Jan 2024"``."""
    return f"{MONTH_LABELS[month - 1]} {year}"


def _chronological(snapshots: Iterable[MonthlySnapshot]) -> List[MonthlySnapshot]:
    return sorted(snapshots, key=lambda s: (s.year, s.month))


def _percent_change(change: Decimal, base: Decimal) -> Decimal:
    return change / base * HUNDRED if base > ZERO else ZERO


def calculate_monthly_net_worth(
    snapshot: MonthlySnapshot,
    include_pension: bool = True,
    rates: Optional[RateTable] = None,
) -> MonthlyNetWorth:
    """
    Total one snapshot in the base currency.

    Args:
        snapshot: The month to value
        include_pension: When False pensions count as zero
        rates: Exchange rates, defaults to the fallback table

    Returns:
        MonthlyNetWorth with the per-category totals
    """
    total_asset_value = sum(
        (
            convert_to_base(a.shares * a.price_per_share, a.currency, rates)
            for a in snapshot.assets
        ),
        ZERO,
    )
    total_cash = sum(
        (convert_to_base(c.balance, c.currency, rates) for c in snapshot.cash_entries),
        ZERO,
    )
    total_pension = (
        sum(
            (convert_to_base(p.current_value, p.currency, rates) for p in snapshot.pensions),
            ZERO,
        )
        if include_pension
        else ZERO
    )
    total_taxes_paid = sum(
        (
            convert_to_base(op.amount, op.currency, rates)
            for op in snapshot.operations
            if op.type == OperationType.TAX_PAID
        ),
        ZERO,
    )

    return MonthlyNetWorth(
        total_asset_value=total_asset_value,
        total_cash=total_cash,
        total_pension=total_pension,
        total_taxes_paid=total_taxes_paid,
        net_worth=total_asset_value + total_cash + total_pension,
    )


def calculate_ytd_summary(
    snapshots: Sequence[MonthlySnapshot],
    up_to_month: int,
    rates: Optional[RateTable] = None,
) -> YTDSummary:
    """
    Summarise one year's snapshots up to and including ``up_to_month``.

    Income and expenses come from the recorded operations: dividends, sales,
    reimbursements and gifts received count as income; taxes, gifts given and
    purchases count as expenses. Other operation types are ignored.
    """
    relevant = sorted((s for s in snapshots if s.month <= up_to_month), key=lambda s: s.month)
    if not relevant:
        return YTDSummary()

    net_worths = [calculate_monthly_net_worth(s, rates=rates).net_worth for s in relevant]
    average = sum(net_worths, ZERO) / len(net_worths)
    change = net_worths[-1] - net_worths[0]

    total_income = ZERO
    total_expenses = ZERO
    for snapshot in relevant:
        for op in snapshot.operations:
            amount = convert_to_base(op.amount, op.currency, rates)
            if op.type in INCOME_OPERATIONS:
                total_income += amount
            elif op.type in EXPENSE_OPERATIONS:
                total_expenses += amount

    total_savings = total_income - total_expenses

    return YTDSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        total_savings=total_savings,
        savings_rate=_percent_change(total_savings, total_income),
        average_monthly_net_worth=average,
        net_worth_change=change,
        net_worth_change_percent=_percent_change(change, net_worths[0]),
    )


def calculate_monthly_variations(
    snapshots: Sequence[MonthlySnapshot],
    rates: Optional[RateTable] = None,
) -> List[MonthlyVariation]:
    """Month-over-month changes in chronological order. The first month has zero change."""
    variations: List[MonthlyVariation] = []
    previous: Optional[MonthlyNetWorth] = None

    for snapshot in _chronological(snapshots):
        result = calculate_monthly_net_worth(snapshot, rates=rates)
        if previous is None:
            change = asset_change = cash_change = pension_change = ZERO
            change_percent = ZERO
        else:
            change = result.net_worth - previous.net_worth
            change_percent = _percent_change(change, previous.net_worth)
            asset_change = result.total_asset_value - previous.total_asset_value
            cash_change = result.total_cash - previous.total_cash
            pension_change = result.total_pension - previous.total_pension

        variations.append(
            MonthlyVariation(
                month=format_month_label(snapshot.year, snapshot.month),
                net_worth=result.net_worth,
                change_from_prev_month=change,
                change_percent=change_percent,
                asset_value_change=asset_change,
                cash_change=cash_change,
                pension_change=pension_change,
            )
        )
        previous = result

    return variations


def _confidence_level(changes: Sequence[Decimal], months: int) -> ConfidenceLevel:
    average = sum(changes, ZERO) / len(changes)
    variance = sum(((c - average) ** 2 for c in changes), ZERO) / len(changes)
    std_dev = variance.sqrt()
    coefficient_of_variation = abs(std_dev / average) if average != ZERO else ONE

    if coefficient_of_variation < HIGH_CONFIDENCE_MAX_VARIATION and months >= HIGH_CONFIDENCE_MIN_MONTHS:
        return ConfidenceLevel.HIGH
    if months >= MEDIUM_CONFIDENCE_MIN_MONTHS:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def calculate_net_worth_forecast(
    snapshots: Sequence[MonthlySnapshot],
    months_to_forecast: int,
    rates: Optional[RateTable] = None,
) -> List[NetWorthForecast]:
    """
    Extend the history linearly by the average monthly change.

    Needs at least two snapshots, otherwise returns an empty list. Confidence
    is HIGH for two years of steady changes (coefficient of variation under
    0.3), MEDIUM from six months of data and LOW below that. Projected values
    are rounded to whole units.
    """
    if len(snapshots) < 2:
        return []

    ordered = _chronological(snapshots)
    net_worths = [calculate_monthly_net_worth(s, rates=rates).net_worth for s in ordered]
    changes = [curr - prev for prev, curr in zip(net_worths, net_worths[1:])]
    average_change = sum(changes, ZERO) / len(changes)
    confidence = _confidence_level(changes, len(snapshots))

    year, month = ordered[-1].year, ordered[-1].month
    projected = net_worths[-1]
    forecasts: List[NetWorthForecast] = []
    for _ in range(months_to_forecast):
        month += 1
        if month > 12:
            month = 1
            year += 1
        projected += average_change
        forecasts.append(
            NetWorthForecast(
                month=format_month_label(year, month),
                projected_net_worth=projected.quantize(ONE, rounding=ROUND_HALF_UP),
                confidence_level=confidence,
                based_on_months=len(snapshots),
            )
        )

    logger.debug(
        "net_worth_forecast_computed",
        extra={
            "based_on_months": len(snapshots),
            "months_to_forecast": months_to_forecast,
            "confidence_level": confidence.value,
        },
    )
    return forecasts


def _add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return start.replace(year=start.year + years, day=28)


def calculate_fire_progress(
    current_net_worth,
    fire_target,
    annual_savings=None,
    expected_return=None,
    today: Optional[date] = None,
) -> FIREProgress:
    """
    How far the current net worth is from the FIRE target.

    With ``annual_savings`` and ``expected_return`` (a fraction, e.g. 0.05)
    the portfolio is grown year by year until it reaches the target. No date
    is projected when either is missing or the target is not reached within
    100 years.
    """
    net_worth = Decimal(str(current_net_worth))
    target = Decimal(str(fire_target))
    today = today or date.today()
    progress = FIREProgress(
        current_net_worth=net_worth,
        fire_target=target,
        percent_to_fire=net_worth / target * HUNDRED if target > ZERO else ZERO,
    )

    if annual_savings is None or expected_return is None:
        return progress

    if net_worth >= target:
        return progress.model_copy(update={"projected_fire_date": today, "years_to_fire": 0})

    savings = Decimal(str(annual_savings))
    growth = ONE + Decimal(str(expected_return))
    portfolio = net_worth
    years = 0
    while portfolio < target and years < MAX_PROJECTION_YEARS:
        portfolio = portfolio * growth + savings
        years += 1

    if years >= MAX_PROJECTION_YEARS:
        return progress

    return progress.model_copy(
        update={"projected_fire_date": _add_years(today, years), "years_to_fire": years}
    )


def get_previous_year_end_value(
    all_years: Sequence[NetWorthYearData],
    current_year: int,
    rates: Optional[RateTable] = None,
) -> Optional[Decimal]:
    """Net worth of the previous year's December, or ``None`` when it was not recorded."""
    previous_year = next((y for y in all_years if y.year == current_year - 1), None)
    if previous_year is None:
        return None

    december = next((m for m in previous_year.months if m.month == 12), None)
    if december is None:
        return None

    return calculate_monthly_net_worth(december, rates=rates).net_worth


def calculate_asset_price_variations(
    snapshots: Sequence[MonthlySnapshot],
    asset_id: str,
) -> Optional[AssetPriceVariation]:
    """
    Price-per-share change of one holding since the first snapshot and since the previous one.

    ``None`` when there are fewer than two snapshots or the holding is missing
    from the first or last of them.
    """
    if len(snapshots) < 2:
        return None

    ordered = _chronological(snapshots)

    def _find(snapshot: MonthlySnapshot):
        return next((a for a in snapshot.assets if a.id == asset_id), None)

    first = _find(ordered[0])
    last = _find(ordered[-1])
    previous = _find(ordered[-2])
    if first is None or last is None:
        return None

    last_month = (
        _percent_change(last.price_per_share - previous.price_per_share, previous.price_per_share)
        if previous is not None
        else ZERO
    )
    return AssetPriceVariation(
        ytd_variation=_percent_change(
            last.price_per_share - first.price_per_share, first.price_per_share
        ),
        last_month_variation=last_month,
    )
