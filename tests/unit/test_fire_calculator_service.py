"""Tests for the year-by-year FIRE projection."""

import pytest

from firetools.core.exceptions import InvalidInputError
from firetools.schemas.calculator import CalculatorInputs
from firetools.services.fire_calculator_service import (
    calculate_fire,
    portfolio_return,
    validate_inputs,
)

CURRENT_YEAR = 2024


class TestValidation:
    """Advisory input checks."""

    def test_defaults_are_valid(self):
        assert validate_inputs(CalculatorInputs()) == []

    def test_allocation_must_sum_to_100(self):
        inputs = CalculatorInputs(stocks_percent=60, bonds_percent=20, cash_percent=10)

        assert validate_inputs(inputs) == ["Asset allocation must sum to 100%, currently 90.00%"]

    def test_invalid_allocation_returns_empty_projection(self):
        """Should not project anything when the allocation is off."""
        inputs = CalculatorInputs(stocks_percent=80, bonds_percent=20, cash_percent=10)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.projections == []
        assert result.years_to_fire == -1
        assert result.validation_errors == [
            "Asset allocation must sum to 100%, currently 110.00%"
        ]

    @pytest.mark.parametrize("rate", [0, -1])
    def test_non_positive_withdrawal_rate_raises(self, rate):
        with pytest.raises(InvalidInputError, match="desired_withdrawal_rate"):
            calculate_fire(CalculatorInputs(desired_withdrawal_rate=rate), CURRENT_YEAR)

    def test_year_of_birth_range(self):
        with pytest.raises(ValueError):
            CalculatorInputs(year_of_birth=1800)


class TestPortfolioReturn:
    def test_weighted_return(self):
        assert portfolio_return(CalculatorInputs()) == pytest.approx(0.051)

    def test_all_cash(self):
        inputs = CalculatorInputs(stocks_percent=0, bonds_percent=0, cash_percent=100)

        assert portfolio_return(inputs) == pytest.approx(-0.02)


class TestCalculateFire:
    """Projection behaviour."""

    def test_default_projection(self):
        """Should project 50 years from a 34-year-old with default inputs."""
        result = calculate_fire(CalculatorInputs(), current_year=CURRENT_YEAR)

        assert len(result.projections) == 50
        assert result.fire_target == pytest.approx(1333333.33, abs=0.01)
        first = result.projections[0]
        assert first.year == 2024
        assert first.age == 34
        assert first.portfolio_value == 50000
        assert first.investment_yield == pytest.approx(2550)
        assert first.net_savings == pytest.approx(22550)
        assert first.labor_income == 60000
        assert result.projections[1].portfolio_value == pytest.approx(72550)

    def test_labor_income_grows_while_working(self):
        result = calculate_fire(CalculatorInputs(), current_year=CURRENT_YEAR)

        assert result.projections[1].labor_income == pytest.approx(61800)

    def test_years_to_fire_marks_first_fire_year(self):
        result = calculate_fire(CalculatorInputs(), current_year=CURRENT_YEAR)

        assert result.years_to_fire > 0
        fire_year = result.projections[result.years_to_fire]
        assert fire_year.is_fire is True
        assert fire_year.portfolio_value >= result.fire_target
        assert result.projections[result.years_to_fire - 1].is_fire is False

    def test_stop_working_at_fire(self):
        """Should drop labor income and spend FIRE expenses after FIRE."""
        result = calculate_fire(CalculatorInputs(), current_year=CURRENT_YEAR)

        fire_year = result.projections[result.years_to_fire]
        assert fire_year.labor_income == 0
        assert fire_year.expenses == 40000
        assert fire_year.net_savings == pytest.approx(
            fire_year.investment_yield - fire_year.expenses
        )

    def test_keep_working_after_fire(self):
        inputs = CalculatorInputs(stop_working_at_fire=False)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        fire_year = result.projections[result.years_to_fire]
        assert fire_year.labor_income > 0

    def test_already_fire(self):
        inputs = CalculatorInputs(initial_savings=2_000_000)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.years_to_fire == 0
        assert result.projections[0].is_fire is True

    def test_never_fire(self):
        inputs = CalculatorInputs(initial_savings=0, savings_rate=0, max_age=40)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.years_to_fire == -1

    def test_horizon_ends_at_max_age(self):
        inputs = CalculatorInputs(max_age=40)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert len(result.projections) == 6
        assert result.projections[-1].age == 39

    def test_max_age_below_current_age(self):
        inputs = CalculatorInputs(max_age=30)

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.projections == []
        assert result.final_portfolio_value == 0

    def test_pension_starts_at_retirement_age(self):
        """Should add pensions from the retirement age onwards."""
        inputs = CalculatorInputs(
            year_of_birth=1960,
            state_pension_income=12000,
            private_pension_income=6000,
            other_income=1000,
        )

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.projections[2].age == 66
        assert result.projections[2].state_pension_income == 0
        assert result.projections[3].age == 67
        assert result.projections[3].state_pension_income == 12000
        assert result.projections[3].private_pension_income == 6000
        assert all(p.other_income == 1000 for p in result.projections)

    def test_depleted_portfolio_stops_projection(self):
        """Should stop once the portfolio falls below the depletion floor."""
        inputs = CalculatorInputs(
            initial_savings=100000,
            stocks_percent=0,
            bonds_percent=0,
            cash_percent=100,
            fire_annual_expenses=3000,
            desired_withdrawal_rate=3,
        )

        result = calculate_fire(inputs, current_year=CURRENT_YEAR)

        assert result.years_to_fire == 0
        assert len(result.projections) < 50
        last = result.projections[-1]
        assert last.portfolio_value + last.net_savings < -1000

    def test_final_portfolio_value_is_last_start_value(self):
        result = calculate_fire(CalculatorInputs(), current_year=CURRENT_YEAR)

        assert result.final_portfolio_value == result.projections[-1].portfolio_value

    def test_defaults_to_current_year(self):
        result = calculate_fire(CalculatorInputs(max_age=120))

        assert result.projections[0].year >= 2024
