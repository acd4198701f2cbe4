"""Tests for the DCA helper."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

from firetools.schemas.asset_allocation import AllocationMode, AssetClass, AssetClassTarget
from firetools.services.dca_service import (
    calculate_dca_allocation,
    calculate_shares,
    fetch_asset_prices,
)
from firetools.services.market_data import QuoteData


def _amounts(calculation):
    return {a.ticker: a.investment_amount for a in calculation.allocations}


class TestCalculateDcaAllocation:
    """Splitting a lump sum by the allocation targets."""

    def test_default_portfolio(self, assets, class_targets):
        """Should split by class target, then by in-class target."""
        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        assert _amounts(calculation) == {
            "SPY": Decimal("240"),
            "VTI": Decimal("162"),
            "VXUS": Decimal("102"),
            "VWO": Decimal("60"),
            "VBR": Decimal("36"),
            "BND": Decimal("200"),
            "TIP": Decimal("120"),
            "BNDX": Decimal("80"),
        }
        assert calculation.total_amount == Decimal("1000")
        assert calculation.total_allocated == Decimal("1000")

    def test_set_assets_receive_nothing(self, assets, class_targets):
        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        assert "CASH" not in _amounts(calculation)

    def test_off_and_set_classes_receive_nothing(self, assets, class_targets):
        class_targets[AssetClass.BONDS] = AssetClassTarget(target_mode=AllocationMode.OFF)

        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        assert all(a.asset_class == AssetClass.STOCKS for a in calculation.allocations)
        assert calculation.total_allocated == Decimal("600")

    def test_zero_percent_class_is_skipped(self, make_asset, class_targets):
        btc = make_asset("btc", AssetClass.CRYPTO, value=100, percent=100)

        calculation = calculate_dca_allocation([btc], 1000, class_targets)

        assert calculation.allocations == []
        assert calculation.total_allocated == Decimal("0")

    def test_class_without_target_is_skipped(self, make_asset):
        calculation = calculate_dca_allocation(
            [make_asset("a", value=1, percent=100)], 1000, {}
        )

        assert calculation.allocations == []

    def test_zero_in_class_percents_give_zero_amounts(self, make_asset):
        assets = [make_asset("a", percent=0), make_asset("b", percent=0)]
        targets = {AssetClass.STOCKS: AssetClassTarget(target_percent=Decimal("100"))}

        calculation = calculate_dca_allocation(assets, 500, targets)

        assert [a.investment_amount for a in calculation.allocations] == [
            Decimal("0"),
            Decimal("0"),
        ]

    def test_float_amount_is_taken_literally(self, assets, class_targets):
        calculation = calculate_dca_allocation(assets, 1234.56, class_targets)

        assert calculation.total_amount == Decimal("1234.56")


class TestCalculateShares:
    """Sizing the buys from current prices."""

    def test_shares_and_price_errors(self, assets, class_targets):
        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        result = calculate_shares(
            calculation, {"SPY": Decimal("480"), "VXUS": Decimal("0"), "BND": 80}
        )

        by_ticker = {a.ticker: a for a in result.allocations}
        assert by_ticker["SPY"].shares == Decimal("0.5")
        assert by_ticker["SPY"].current_price == Decimal("480")
        assert by_ticker["SPY"].price_error is None
        assert by_ticker["BND"].shares == Decimal("2.5")
        assert by_ticker["VTI"].price_error == "Price unavailable"
        assert by_ticker["VTI"].shares is None
        assert by_ticker["VXUS"].price_error == "Invalid price"

    def test_original_calculation_is_unchanged(self, assets, class_targets):
        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        calculate_shares(calculation, {"SPY": Decimal("480")})

        assert all(a.shares is None for a in calculation.allocations)


class TestFetchAssetPrices:
    """Price lookup through a market data provider."""

    @pytest.mark.asyncio
    async def test_every_ticker_is_present(self):
        """Should map failed lookups to None."""
        provider = Mock()
        provider.get_quotes_batch = AsyncMock(
            return_value={"SPY": QuoteData(symbol="SPY", price=Decimal("480.12"))}
        )

        prices = await fetch_asset_prices(["SPY", "GONE", ""], provider=provider)

        assert prices == {"SPY": Decimal("480.12"), "GONE": None, "": None}
        provider.get_quotes_batch.assert_awaited_once_with(["SPY", "GONE"])

    @pytest.mark.asyncio
    async def test_duplicate_tickers_are_fetched_once(self):
        provider = Mock()
        provider.get_quotes_batch = AsyncMock(return_value={})

        await fetch_asset_prices(["SPY", "SPY"], provider=provider)

        provider.get_quotes_batch.assert_awaited_once_with(["SPY"])

    @pytest.mark.asyncio
    async def test_blank_tickers_skip_the_provider(self):
        provider = Mock()
        provider.get_quotes_batch = AsyncMock()

        prices = await fetch_asset_prices(["", "  "], provider=provider)

        assert prices == {"": None, "  ": None}
        provider.get_quotes_batch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prices_feed_share_calculation(self, assets, class_targets):
        provider = Mock()
        provider.get_quotes_batch = AsyncMock(
            return_value={"SPY": QuoteData(symbol="SPY", price=Decimal("240"))}
        )
        calculation = calculate_dca_allocation(assets, 1000, class_targets)

        prices = await fetch_asset_prices(
            [a.ticker for a in calculation.allocations], provider=provider
        )
        result = calculate_shares(calculation, prices)

        spy = next(a for a in result.allocations if a.ticker == "SPY")
        assert spy.shares == Decimal("1")
