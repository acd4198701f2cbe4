"""FIRE calculator schemas."""

from typing import List

from pydantic import BaseModel, Field

# Savings rate implied by the default income and expenses
DEFAULT_SAVINGS_RATE = (60000 - 40000) / 60000 * 100

# Years of expenses equivalent to a 3% withdrawal rate
DEFAULT_YEARS_OF_EXPENSES = 100 / 3


class CalculatorInputs(BaseModel):
    """Inputs for the year-by-year FIRE projection. Percent fields are 0-100."""

    # Initial values
    initial_savings: float = 50000

    # Allocation, must sum to 100
    stocks_percent: float = 70
    bonds_percent: float = 20
    cash_percent: float = 10

    # Expenses
    current_annual_expenses: float = 40000
    fire_annual_expenses: float = 40000

    # Income
    annual_labor_income: float = 60000
    labor_income_growth_rate: float = 3
    savings_rate: float = DEFAULT_SAVINGS_RATE

    # FIRE target
    desired_withdrawal_rate: float = 3
    years_of_expenses: float = DEFAULT_YEARS_OF_EXPENSES

    # Expected returns (cash is typically negative, i.e. inflation)
    expected_stock_return: float = 7
    expected_bond_return: float = 2
    expected_cash_return: float = -2

    # Personal info
    year_of_birth: int = Field(default=1990, ge=1900, le=2100)
    retirement_age: int = Field(default=67, ge=0, le=120)

    # Other income
    state_pension_income: float = 0
    private_pension_income: float = 0
    other_income: float = 0

    # Options
    stop_working_at_fire: bool = True
    max_age: int = Field(default=100, ge=1, le=120)
    use_asset_allocation_value: bool = False


class YearProjection(BaseModel):
    """One projected year. ``portfolio_value`` is the value at the start of the year."""

    year: int
    age: int
    labor_income: float
    investment_yield: float
    total_income: float
    expenses: float
    net_savings: float
    portfolio_value: float
    fire_target: float
    is_fire: bool

    # Income breakdown for charts
    state_pension_income: float = 0
    private_pension_income: float = 0
    other_income: float = 0


class CalculationResult(BaseModel):
    """Projection plus headline numbers. ``years_to_fire`` is -1 when never reached."""

    projections: List[YearProjection] = Field(default_factory=list)
    years_to_fire: int = -1
    fire_target: float = 0
    final_portfolio_value: float = 0
    validation_errors: List[str] = Field(default_factory=list)
