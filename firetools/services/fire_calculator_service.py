"""
Year-by-year FIRE projection.

Each year the portfolio grows by the allocation-weighted expected return.
While working, a share of labor income (the savings rate) is added on top;
once FIRE is reached and ``stop_working_at_fire`` is set, the portfolio funds
FIRE expenses net of pension and other income instead.
"""

import logging
from typing import List, Optional

from firetools.core.exceptions import InvalidInputError
from firetools.schemas.calculator import CalculationResult, CalculatorInputs, YearProjection
from firetools.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

ALLOCATION_TOLERANCE = 0.01
MAX_PROJECTION_YEARS = 50

# Projection stops once the portfolio is this far below zero
DEPLETION_FLOOR = -1000


def validate_inputs(inputs: CalculatorInputs) -> List[str]:
    """Advisory checks that make the projection meaningless when they fail."""
    errors = []
    allocation_sum = inputs.stocks_percent + inputs.bonds_percent + inputs.cash_percent
    if abs(allocation_sum - 100) > ALLOCATION_TOLERANCE:
        errors.append(f"Asset allocation must sum to 100%, currently {allocation_sum:.2f}%")
    return errors


def portfolio_return(inputs: CalculatorInputs) -> float:
    """Expected annual return as a fraction, weighted by the allocation."""
    return (
        (inputs.stocks_percent / 100) * (inputs.expected_stock_return / 100)
        + (inputs.bonds_percent / 100) * (inputs.expected_bond_return / 100)
        + (inputs.cash_percent / 100) * (inputs.expected_cash_return / 100)
    )


def calculate_fire(
    inputs: CalculatorInputs,
    current_year: Optional[int] = None,
) -> CalculationResult:
    """
    Project the portfolio until ``max_age`` or for at most 50 years.

    Args:
        inputs: Calculator inputs
        current_year: First projected year, defaults to the current UTC year

    Returns:
        CalculationResult. An allocation that does not sum to 100 yields an
        empty projection with ``validation_errors`` set.

    Raises:
        InvalidInputError: If the desired withdrawal rate is not positive
    """
    year_zero = current_year if current_year is not None else utc_now().year
    current_age = year_zero - inputs.year_of_birth

    errors = validate_inputs(inputs)
    if errors:
        logger.info("fire_inputs_invalid", extra={"errors": errors})
        return CalculationResult(validation_errors=errors)

    if inputs.desired_withdrawal_rate <= 0:
        raise InvalidInputError("desired_withdrawal_rate must be greater than 0")

    fire_target = inputs.fire_annual_expenses / (inputs.desired_withdrawal_rate / 100)
    annual_return = portfolio_return(inputs)

    portfolio_value = inputs.initial_savings
    labor_income = inputs.annual_labor_income
    is_fire_achieved = False
    years_to_fire = -1
    projections: List[YearProjection] = []

    max_years = max(0, min(MAX_PROJECTION_YEARS, inputs.max_age - current_age))

    for i in range(max_years):
        age = current_age + i

        if not is_fire_achieved and portfolio_value >= fire_target:
            is_fire_achieved = True
            years_to_fire = i

        is_working = not is_fire_achieved if inputs.stop_working_at_fire else True

        investment_yield = portfolio_value * annual_return

        current_labor_income = labor_income if is_working else 0.0
        if age >= inputs.retirement_age:
            state_pension = inputs.state_pension_income
            private_pension = inputs.private_pension_income
        else:
            state_pension = private_pension = 0.0
        other_income_total = state_pension + private_pension + inputs.other_income
        total_income = current_labor_income + investment_yield + other_income_total

        expenses = (
            inputs.fire_annual_expenses if is_fire_achieved else inputs.current_annual_expenses
        )

        if is_working:
            # The savings rate already nets out expenses
            portfolio_change = labor_income * (inputs.savings_rate / 100) + investment_yield
        else:
            portfolio_change = total_income - expenses

        projections.append(
            YearProjection(
                year=year_zero + i,
                age=age,
                labor_income=current_labor_income,
                investment_yield=investment_yield,
                total_income=total_income,
                expenses=expenses,
                net_savings=portfolio_change,
                portfolio_value=portfolio_value,
                fire_target=fire_target,
                is_fire=is_fire_achieved,
                state_pension_income=state_pension,
                private_pension_income=private_pension,
                other_income=inputs.other_income,
            )
        )

        portfolio_value += portfolio_change

        if is_working:
            labor_income *= 1 + inputs.labor_income_growth_rate / 100

        if portfolio_value < DEPLETION_FLOOR:
            break

    logger.debug(
        "fire_projection_calculated",
        extra={
            "years": len(projections),
            "years_to_fire": years_to_fire,
            "fire_target": fire_target,
        },
    )

    return CalculationResult(
        projections=projections,
        years_to_fire=years_to_fire,
        fire_target=fire_target,
        final_portfolio_value=projections[-1].portfolio_value if projections else 0,
    )
