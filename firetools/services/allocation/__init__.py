"""
Asset allocation engine.

- Redistribution keeps PERCENTAGE targets summing to 100 per scope
- Delta/action computation, including cash cross-distribution
- Portfolio aggregation and validation
- Immutable reducer state for the interactive shell
"""

from .allocation_state import AllocationState
from .defaults import default_asset_class_targets, default_assets
from .delta_service import (
    calculate_cash_adjustments,
    calculate_cash_delta,
    compute_class_summaries,
    compute_deltas,
    determine_action,
)
from .portfolio_service import (
    compute_allocation,
    prepare_asset_chart_data,
    prepare_asset_class_chart_data,
    validate_allocation,
)
from .redistribution_service import (
    by_current_value,
    by_target_percent,
    redistribute_class_targets_on_edit,
    redistribute_on_add,
    redistribute_on_delete,
    redistribute_on_edit,
)

__all__ = [
    "AllocationState",
    "default_asset_class_targets",
    "default_assets",
    "calculate_cash_adjustments",
    "calculate_cash_delta",
    "compute_class_summaries",
    "compute_deltas",
    "determine_action",
    "compute_allocation",
    "prepare_asset_chart_data",
    "prepare_asset_class_chart_data",
    "validate_allocation",
    "by_current_value",
    "by_target_percent",
    "redistribute_class_targets_on_edit",
    "redistribute_on_add",
    "redistribute_on_delete",
    "redistribute_on_edit",
]
