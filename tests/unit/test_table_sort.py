"""Unit tests for allocation table sorting."""

from decimal import Decimal

import pytest

from firetools.schemas.asset_allocation import AssetClass
from firetools.services.allocation.delta_service import compute_deltas
from firetools.utils.table_sort import (
    SortDirection,
    SortKey,
    SortState,
    next_sort_state,
    sort_indicator,
    sort_rows,
)


@pytest.fixture
def rows(assets, class_targets):
    deltas = {d.asset_id: d for d in compute_deltas(assets, class_targets)}
    return [(a, deltas[a.id]) for a in assets]


def _tickers(rows):
    return [asset.ticker for asset, _ in rows]


class TestSortRows:
    """Sorting by column accessor."""

    def test_current_value_ascending(self, rows):
        result = sort_rows(rows, SortKey.CURRENT_VALUE, SortDirection.ASC)

        values = [asset.current_value for asset, _ in result]
        assert values == sorted(values)
        assert _tickers(result)[0] == "VBR"

    def test_delta_descending(self, rows):
        result = sort_rows(rows, SortKey.DELTA, SortDirection.DESC)

        assert _tickers(result)[0] == "SPY"
        assert _tickers(result)[-1] == "BND"

    def test_name_is_case_insensitive(self, make_asset):
        rows = [
            (make_asset("b", name="beta"), None),
            (make_asset("a", name="Alpha"), None),
            (make_asset("c", name="Gamma"), None),
        ]

        result = sort_rows(rows, SortKey.NAME, SortDirection.ASC)

        assert [asset.name for asset, _ in result] == ["Alpha", "beta", "Gamma"]

    def test_asset_class(self, rows):
        result = sort_rows(rows, SortKey.ASSET_CLASS, SortDirection.ASC)

        assert result[0][0].asset_class == AssetClass.BONDS
        assert result[-1][0].asset_class == AssetClass.STOCKS

    def test_missing_values_go_last_in_both_directions(self, rows):
        for direction in SortDirection:
            result = sort_rows(rows, SortKey.TARGET_PERCENT, direction)

            assert _tickers(result)[-1] == "CASH"

    def test_rows_without_delta_go_last(self, rows):
        asset, _ = rows[0]
        rows = [(asset, None), *rows[1:]]

        result = sort_rows(rows, SortKey.TARGET_VALUE, SortDirection.ASC)

        assert result[-1] == (asset, None)

    def test_empty_ticker_counts_as_missing(self, make_asset):
        rows = [
            (make_asset("a", ticker=""), None),
            (make_asset("b", ticker="ZZZ"), None),
            (make_asset("c", ticker="AAA"), None),
        ]

        result = sort_rows(rows, SortKey.TICKER, SortDirection.ASC)

        assert [asset.id for asset, _ in result] == ["c", "b", "a"]

    def test_sort_is_stable(self, make_asset):
        rows = [(make_asset(i, value=100), None) for i in ("x", "y", "z")]

        result = sort_rows(rows, SortKey.CURRENT_VALUE, SortDirection.DESC)

        assert [asset.id for asset, _ in result] == ["x", "y", "z"]

    def test_no_key_keeps_original_order(self, rows):
        assert sort_rows(rows, None, None) == rows
        assert sort_rows(rows, SortKey.DELTA, None) == rows

    def test_action_column(self, rows):
        result = sort_rows(rows, SortKey.ACTION, SortDirection.ASC)

        actions = [delta.action.value for _, delta in result]
        assert actions == sorted(actions)

    def test_input_is_not_reordered(self, rows):
        before = list(rows)

        sort_rows(rows, SortKey.CURRENT_PERCENT, SortDirection.DESC)

        assert rows == before

    def test_decimal_values_compare_numerically(self, make_asset):
        rows = [(make_asset(str(v), value=v), None) for v in ("9", "10", "100")]

        result = sort_rows(rows, SortKey.CURRENT_VALUE, SortDirection.ASC)

        assert [asset.current_value for asset, _ in result] == [
            Decimal("9"),
            Decimal("10"),
            Decimal("100"),
        ]


class TestSortState:
    """Header click cycling and indicators."""

    def test_new_column_starts_ascending(self):
        state = next_sort_state(SortState(), SortKey.DELTA)

        assert state == SortState(SortKey.DELTA, SortDirection.ASC)

    def test_cycle_asc_desc_none(self):
        state = SortState(SortKey.DELTA, SortDirection.ASC)

        state = next_sort_state(state, SortKey.DELTA)
        assert state.direction == SortDirection.DESC

        state = next_sort_state(state, SortKey.DELTA)
        assert state == SortState()

    def test_switching_column_resets_to_ascending(self):
        state = SortState(SortKey.DELTA, SortDirection.DESC)

        assert next_sort_state(state, SortKey.NAME) == SortState(SortKey.NAME, SortDirection.ASC)

    def test_indicator(self):
        state = SortState(SortKey.DELTA, SortDirection.DESC)

        assert sort_indicator(state, SortKey.DELTA) == "↓"
        assert sort_indicator(state, SortKey.NAME) == "⇅"
        assert sort_indicator(SortState(SortKey.NAME, SortDirection.ASC), SortKey.NAME) == "↑"
