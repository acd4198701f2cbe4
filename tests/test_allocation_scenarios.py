"""End-to-end allocation scenarios and properties of the redistribution rules."""

from decimal import Decimal

import pytest

from firetools.schemas.asset_allocation import (
    AllocationAction,
    AllocationMode,
    AssetClass,
    AssetClassTarget,
)
from firetools.services.allocation import (
    AllocationState,
    by_target_percent,
    compute_allocation,
    redistribute_on_add,
    redistribute_on_delete,
    redistribute_on_edit,
)

TOLERANCE = Decimal("0.01")


def _by_id(assets):
    return {a.id: a for a in assets}


# ── Concrete scenarios ───────────────────────────────────────────────────────


class TestConcreteScenarios:
    """Worked examples with known answers."""

    def test_edit_redistributes_by_current_value(self, make_asset):
        """Shrinking VBR from 45% to 25% hands 20 points to the others by value."""
        assets = [
            make_asset("spy", value=25000, percent=25),
            make_asset("vti", value=15000, percent=15),
            make_asset("vxus", value=10000, percent=10),
            make_asset("vwo", value=5000, percent=5),
            make_asset("vbr", value=45000, percent=45),
        ]

        result = _by_id(redistribute_on_edit(assets, "vbr", 25))

        assert result["vbr"].target_percent == Decimal("25")
        expected = {"spy": "34.09", "vti": "20.45", "vxus": "13.64", "vwo": "6.82"}
        for asset_id, percent in expected.items():
            assert abs(result[asset_id].target_percent - Decimal(percent)) < Decimal("0.01")

    def test_delete_one_of_three_equal_bonds(self, make_asset):
        """Deleting one of three 33.33% bonds leaves two at 50%."""
        assets = [
            make_asset(f"bond-{i}", AssetClass.BONDS, value=20000, percent="33.33")
            for i in range(3)
        ]

        result = redistribute_on_delete(assets, "bond-2")

        assert len(result) == 2
        for asset in result:
            assert abs(asset.target_percent - Decimal("50")) < Decimal("0.1")

    def test_excess_cash_is_invested_into_percentage_classes(self, make_asset):
        """5000 of excess cash flows entirely into bonds when bonds hold the whole target."""
        assets = [
            make_asset("stocks", value=35000, percent=100),
            make_asset("bonds", AssetClass.BONDS, value=35000, percent=100),
            make_asset(
                "cash", AssetClass.CASH, value=10000, mode=AllocationMode.SET, target_value=5000
            ),
        ]
        class_targets = {
            AssetClass.STOCKS: AssetClassTarget(target_percent=Decimal("0")),
            AssetClass.BONDS: AssetClassTarget(target_percent=Decimal("100")),
            AssetClass.CASH: AssetClassTarget(target_mode=AllocationMode.SET),
        }

        allocation = compute_allocation(assets, class_targets)

        assert allocation.cash_delta == Decimal("-5000")
        stocks = allocation.summary_for(AssetClass.STOCKS)
        bonds = allocation.summary_for(AssetClass.BONDS)
        cash = allocation.summary_for(AssetClass.CASH)
        assert stocks.delta == Decimal("-35000")
        assert stocks.action == AllocationAction.SELL
        assert bonds.delta == Decimal("40000")
        assert bonds.cash_adjustment == Decimal("5000")
        assert bonds.action == AllocationAction.BUY
        assert cash.delta == Decimal("-5000")
        assert cash.action == AllocationAction.INVEST

        assert allocation.delta_for("stocks").target_value == Decimal("0")
        assert allocation.delta_for("bonds").target_value == Decimal("75000")
        assert allocation.delta_for("bonds").delta == Decimal("40000")
        assert allocation.delta_for("cash").target_value == Decimal("5000")

    def test_excess_cash_split_by_class_share(self, make_asset):
        assets = [
            make_asset("stocks", value=35000, percent=100),
            make_asset("bonds", AssetClass.BONDS, value=35000, percent=100),
            make_asset(
                "cash", AssetClass.CASH, value=10000, mode=AllocationMode.SET, target_value=5000
            ),
        ]
        class_targets = {
            AssetClass.STOCKS: AssetClassTarget(target_percent=Decimal("60")),
            AssetClass.BONDS: AssetClassTarget(target_percent=Decimal("40")),
            AssetClass.CASH: AssetClassTarget(target_mode=AllocationMode.SET),
        }

        allocation = compute_allocation(assets, class_targets)

        assert allocation.summary_for(AssetClass.STOCKS).cash_adjustment == Decimal("3000")
        assert allocation.summary_for(AssetClass.BONDS).cash_adjustment == Decimal("2000")

    def test_add_shrinks_existing_by_factor(self, make_asset):
        """Adding a 10% asset scales 30/20/50 by 0.9."""
        assets = [
            make_asset("a", percent=30),
            make_asset("b", percent=20),
            make_asset("c", percent=50),
        ]

        result = _by_id(redistribute_on_add(assets, make_asset("d", percent=10)))

        assert result["a"].target_percent == Decimal("27")
        assert result["b"].target_percent == Decimal("18")
        assert result["c"].target_percent == Decimal("45")
        assert result["d"].target_percent == Decimal("10")


# ── Properties ───────────────────────────────────────────────────────────────


class TestInvariantPreservation:
    """Every redistribution keeps each PERCENTAGE scope at 100."""

    @pytest.mark.parametrize("asset_id", ["stock-1", "stock-3", "stock-5", "bond-2"])
    @pytest.mark.parametrize("new_percent", [0, "12.5", 33, "66.667", 100])
    def test_edit(self, assets, percent_sum, asset_id, new_percent):
        result = redistribute_on_edit(assets, asset_id, new_percent)

        for asset_class in (AssetClass.STOCKS, AssetClass.BONDS):
            assert abs(percent_sum(result, asset_class) - 100) <= TOLERANCE

    @pytest.mark.parametrize("new_percent", ["0.5", 10, "45.5", 99])
    def test_add(self, assets, percent_sum, make_asset, new_percent):
        new_asset = make_asset("stock-6", value=0, percent=new_percent)

        result = redistribute_on_add(assets, new_asset)

        assert abs(percent_sum(result, AssetClass.STOCKS) - 100) <= TOLERANCE

    @pytest.mark.parametrize("asset_id", ["stock-1", "stock-2", "stock-5", "bond-1", "bond-3"])
    def test_delete(self, assets, percent_sum, asset_id):
        result = redistribute_on_delete(assets, asset_id)

        for asset_class in (AssetClass.STOCKS, AssetClass.BONDS):
            assert abs(percent_sum(result, asset_class) - 100) <= TOLERANCE

    def test_long_edit_sequence(self, percent_sum):
        state = AllocationState.from_defaults()
        for asset_id, percent in [
            ("stock-1", 70),
            ("stock-4", "3.3"),
            ("stock-2", 0),
            ("stock-5", 100),
            ("stock-3", "41.7"),
        ]:
            state = state.edit_asset_target(asset_id, percent)
            assert abs(percent_sum(state.assets, AssetClass.STOCKS) - 100) <= TOLERANCE

        assert state.allocation.is_valid is True

    def test_class_edit_sequence(self):
        state = AllocationState.from_defaults()
        for asset_class, percent in [
            (AssetClass.STOCKS, 80),
            (AssetClass.CRYPTO, 5),
            (AssetClass.BONDS, "17.5"),
        ]:
            state = state.edit_class_target(asset_class, percent)
            total = sum(
                t.percent
                for t in state.class_targets.values()
                if t.target_mode == AllocationMode.PERCENTAGE
            )
            assert abs(total - 100) <= TOLERANCE


class TestAggregationIdempotence:
    """The snapshot depends on nothing but its inputs."""

    def test_compute_twice(self, assets, class_targets):
        assert compute_allocation(assets, class_targets) == compute_allocation(
            assets, class_targets
        )

    def test_state_snapshot_twice(self):
        state = AllocationState.from_defaults().edit_asset_target("stock-1", 55)

        assert state.allocation == state.allocation


class TestEditRoundTrip:
    """Reverting an edit restores siblings only when nothing happened in between."""

    @pytest.fixture
    def trio(self, make_asset):
        return [
            make_asset("x", value=100, percent=50),
            make_asset("y", value=100, percent=30),
            make_asset("z", value=100, percent=20),
        ]

    def test_single_edit_then_revert_restores(self, trio):
        edited = redistribute_on_edit(trio, "x", 20, basis_selector=by_target_percent)
        assert _by_id(edited)["y"].target_percent == Decimal("48")
        assert _by_id(edited)["z"].target_percent == Decimal("32")

        reverted = _by_id(redistribute_on_edit(edited, "x", 50, basis_selector=by_target_percent))

        assert reverted["y"].target_percent == Decimal("30")
        assert reverted["z"].target_percent == Decimal("20")

    def test_interleaved_edit_breaks_restore(self, trio):
        step1 = redistribute_on_edit(trio, "x", 20, basis_selector=by_target_percent)
        step2 = redistribute_on_edit(step1, "y", 40, basis_selector=by_target_percent)

        reverted = _by_id(redistribute_on_edit(step2, "x", 50, basis_selector=by_target_percent))

        assert reverted["y"].target_percent != Decimal("30")
        assert reverted["z"].target_percent != Decimal("20")

    def test_value_basis_revert_lands_on_value_weights(self, make_asset):
        """With the current-value basis a revert follows the holdings, not the old targets."""
        assets = [
            make_asset("x", value=500, percent=50),
            make_asset("y", value=100, percent=30),
            make_asset("z", value=400, percent=20),
        ]

        edited = redistribute_on_edit(assets, "x", 20)
        reverted = _by_id(redistribute_on_edit(edited, "x", 50))

        assert reverted["y"].target_percent == Decimal("10")
        assert reverted["z"].target_percent == Decimal("40")


class TestDeleteReAddAsymmetry:
    """Delete grows by share, add shrinks by factor: they are not inverses."""

    def test_repeating_thirds_do_not_come_back(self, make_asset):
        assets = [make_asset(i, percent="33.33") for i in ("a", "b", "c")]

        deleted = redistribute_on_delete(assets, "c")
        readded = _by_id(redistribute_on_add(deleted, make_asset("c", percent="33.33")))

        assert readded["a"].target_percent != Decimal("33.33")
        assert abs(readded["a"].target_percent - Decimal("33.335")) < Decimal("0.0001")

    def test_exact_split_round_trips(self, make_asset):
        assets = [
            make_asset("x", percent=50),
            make_asset("y", percent=30),
            make_asset("z", percent=20),
        ]

        deleted = redistribute_on_delete(assets, "z")
        readded = _by_id(redistribute_on_add(deleted, make_asset("z", percent=20)))

        assert readded["x"].target_percent == Decimal("50")
        assert readded["y"].target_percent == Decimal("30")
