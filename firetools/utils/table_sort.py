"""Column sorting for the allocation table.

Each sortable column is a :class:`SortKey` bound to a typed accessor over a
``(asset, delta)`` row, so there is no string-path lookup at runtime.
"""

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from firetools.schemas.asset_allocation import AllocationDelta, Asset

Row = Tuple[Asset, Optional[AllocationDelta]]


class SortKey(str, enum.Enum):
    NAME = "name"
    TICKER = "ticker"
    ASSET_CLASS = "asset_class"
    CURRENT_VALUE = "current_value"
    TARGET_PERCENT = "target_percent"
    CURRENT_PERCENT = "current_percent"
    TARGET_VALUE = "target_value"
    DELTA = "delta"
    ACTION = "action"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


def _delta_field(name: str) -> Callable[[Row], Any]:
    def accessor(row: Row) -> Any:
        _, delta = row
        return getattr(delta, name) if delta is not None else None

    return accessor


SORT_ACCESSORS: Dict[SortKey, Callable[[Row], Any]] = {
    SortKey.NAME: lambda row: row[0].name.lower(),
    SortKey.TICKER: lambda row: row[0].ticker or None,
    SortKey.ASSET_CLASS: lambda row: row[0].asset_class.value,
    SortKey.CURRENT_VALUE: lambda row: row[0].current_value,
    SortKey.TARGET_PERCENT: lambda row: row[0].target_percent,
    SortKey.CURRENT_PERCENT: _delta_field("current_percent"),
    SortKey.TARGET_VALUE: _delta_field("target_value"),
    SortKey.DELTA: _delta_field("delta"),
    SortKey.ACTION: lambda row: row[1].action.value if row[1] is not None else None,
}


@dataclass(frozen=True)
class SortState:
    """Active sort column and direction. ``key=None`` means unsorted."""

    key: Optional[SortKey] = None
    direction: Optional[SortDirection] = None


def sort_rows(
    rows: Sequence[Row],
    key: Optional[SortKey],
    direction: Optional[SortDirection],
) -> List[Row]:
    """
    Sort rows by one column. Rows without a value for the column go last in
    both directions; the sort is stable. No key or direction returns the
    rows in their original order.
    """
    if key is None or direction is None:
        return list(rows)

    accessor = SORT_ACCESSORS[key]
    present = [row for row in rows if accessor(row) is not None]
    missing = [row for row in rows if accessor(row) is None]

    present.sort(key=accessor, reverse=direction == SortDirection.DESC)
    return present + missing


def next_sort_state(current: SortState, key: SortKey) -> SortState:
    """Clicking a column cycles asc -> desc -> unsorted; a new column starts at asc."""
    if current.key != key:
        return SortState(key=key, direction=SortDirection.ASC)
    if current.direction == SortDirection.ASC:
        return SortState(key=key, direction=SortDirection.DESC)
    if current.direction == SortDirection.DESC:
        return SortState()
    return SortState(key=key, direction=SortDirection.ASC)


def sort_indicator(state: SortState, key: SortKey) -> str:
    if state.key != key or state.direction is None:
        return "⇅"
    return "↑" if state.direction == SortDirection.ASC else "↓"

