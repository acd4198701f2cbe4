"""Portfolio aggregation: one fresh allocation snapshot from assets and class targets."""

import logging
from decimal import Decimal
from typing import List, Mapping, Sequence, Tuple

from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassSummary,
    AssetClassTarget,
    ChartSlice,
    PortfolioAllocation,
)
from firetools.services.allocation.delta_service import (
    ACTION_THRESHOLD,
    calculate_cash_delta,
    calculate_non_cash_value,
    class_current_total,
    compute_class_summaries,
    compute_deltas,
    group_assets_by_class,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Allowed drift from 100% for a PERCENTAGE scope
PERCENT_TOLERANCE = Decimal("0.01")

ASSET_CLASS_COLORS = {
    AssetClass.STOCKS: "#667eea",
    AssetClass.BONDS: "#764ba2",
    AssetClass.CASH: "#4CAF50",
    AssetClass.CRYPTO: "#FF9800",
    AssetClass.REAL_ESTATE: "#9C27B0",
}

# Golden angle spreads per-asset hues evenly around the color wheel
GOLDEN_ANGLE_DEGREES = Decimal("137.5")


def validate_allocation(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
    tolerance: Decimal = PERCENT_TOLERANCE,
) -> Tuple[bool, List[str]]:
    """
    Check the 100% invariants and value sanity. Never raises.

    - Per class, PERCENTAGE asset targets must sum to 100 (within tolerance)
    - PERCENTAGE class targets must sum to 100 (within tolerance)
    - No negative current values, target percents or SET target values

    Returns:
        Tuple of (is_valid, human-readable error messages)
    """
    errors: List[str] = []

    for asset_class, class_assets in group_assets_by_class(assets).items():
        percentage_assets = [a for a in class_assets if a.is_percentage]
        if not percentage_assets:
            continue
        total_percent = sum((a.percent for a in percentage_assets), ZERO)
        if abs(total_percent - HUNDRED) > tolerance:
            errors.append(
                f"{asset_class.value} target percentages must sum to 100% within the class "
                f"(current: {total_percent:.2f}%)"
            )

    percentage_classes = [
        t for t in class_targets.values() if t.target_mode == AllocationMode.PERCENTAGE
    ]
    if percentage_classes:
        class_total = sum((t.percent for t in percentage_classes), ZERO)
        if abs(class_total - HUNDRED) > tolerance:
            errors.append(
                f"Asset class target percentages must sum to 100% (current: {class_total:.2f}%)"
            )

    for asset in assets:
        label = asset.name or asset.id
        if asset.current_value < ZERO:
            errors.append(f"Asset {label} has negative value: {asset.current_value}")
        if asset.is_percentage and asset.percent < ZERO:
            errors.append(f"Asset {label} has negative target percentage: {asset.target_percent}")
        if asset.target_mode == AllocationMode.SET and (asset.target_value or ZERO) < ZERO:
            errors.append(f"Asset {label} has negative target value: {asset.target_value}")

    return len(errors) == 0, errors


def compute_allocation(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
    action_threshold: Decimal = ACTION_THRESHOLD,
    tolerance: Decimal = PERCENT_TOLERANCE,
) -> PortfolioAllocation:
    """
    Build the full allocation snapshot.

    Always returns a new object computed from scratch; identical input gives
    identical output. Invariant violations are reported through
    ``is_valid``/``validation_errors`` rather than raised.

    Args:
        assets: Full asset list
        class_targets: Class-level targets
        action_threshold: Absolute delta below which the action is HOLD
        tolerance: Allowed drift from 100% per PERCENTAGE scope

    Returns:
        PortfolioAllocation
    """
    is_valid, errors = validate_allocation(assets, class_targets, tolerance)
    summaries = compute_class_summaries(assets, class_targets, action_threshold)
    deltas = compute_deltas(assets, class_targets, action_threshold)

    allocation = PortfolioAllocation(
        assets=list(assets),
        asset_classes=summaries,
        total_value=class_current_total(assets),
        total_holdings=sum((a.current_value for a in assets), ZERO),
        non_cash_value=calculate_non_cash_value(assets),
        cash_delta=calculate_cash_delta(assets, class_targets),
        deltas=deltas,
        is_valid=is_valid,
        validation_errors=errors,
    )

    logger.debug(
        "allocation_computed",
        extra={
            "asset_count": len(allocation.assets),
            "class_count": len(summaries),
            "is_valid": is_valid,
            "error_count": len(errors),
        },
    )
    return allocation


def prepare_asset_class_chart_data(summaries: Sequence[AssetClassSummary]) -> List[ChartSlice]:
    """Chart slices for classes that are not OFF and hold a positive value."""
    return [
        ChartSlice(
            name=s.asset_class.value,
            value=s.current_total,
            percentage=s.current_percent,
            color=ASSET_CLASS_COLORS[s.asset_class],
        )
        for s in summaries
        if s.target_mode != AllocationMode.OFF and s.current_total > ZERO
    ]


def prepare_asset_chart_data(assets: Sequence[Asset], class_total: Decimal) -> List[ChartSlice]:
    """Chart slices for the non-OFF, positive-value assets of one class."""
    visible = [
        a for a in assets if a.target_mode != AllocationMode.OFF and a.current_value > ZERO
    ]
    slices = []
    for index, asset in enumerate(visible):
        hue = (index * GOLDEN_ANGLE_DEGREES) % 360
        slices.append(
            ChartSlice(
                name=asset.name,
                value=asset.current_value,
                percentage=(asset.current_value / class_total) * HUNDRED
                if class_total > ZERO
                else ZERO,
                color=f"hsl({hue.normalize():f}, 70%, 60%)",
                ticker=asset.ticker or None,
            )
        )
    return slices
