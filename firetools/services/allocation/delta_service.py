"""
Delta and action calculation for assets and asset classes.

Class targets are expressed against the non-cash portfolio value. Cash is
normally SET mode: its delta (target - current) is not realised inside the
CASH class but spread across the PERCENTAGE non-cash classes in proportion
to their share of the non-cash targets. A negative cash delta (INVEST) adds
to those classes, a positive one (SAVE) takes from them.

Within a class, SET assets keep their own target value; the remainder of the
(cash-adjusted) class target is split across PERCENTAGE assets by their
in-class target percent.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Sequence

from firetools.schemas.asset_allocation import (
    AllocationAction,
    AllocationDelta,
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassSummary,
    AssetClassTarget,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Absolute delta below which no action is recommended
ACTION_THRESHOLD = Decimal("0.01")

# Sign convention for the cash delta. Cash flowing out of CASH into the other
# classes is INVEST, cash accumulated by selling elsewhere is SAVE.
CASH_FLOW_ACTIONS = {
    True: AllocationAction.SAVE,  # delta > 0
    False: AllocationAction.INVEST,  # delta < 0
}
TRADE_ACTIONS = {
    True: AllocationAction.BUY,
    False: AllocationAction.SELL,
}


def determine_action(
    asset_class: AssetClass,
    delta: Decimal,
    target_mode: AllocationMode,
    threshold: Decimal = ACTION_THRESHOLD,
) -> AllocationAction:
    """
    Map a delta to the recommended action.

    OFF is always EXCLUDED; deltas within ``threshold`` are HOLD; cash gets
    SAVE/INVEST, every other class BUY/SELL.
    """
    if target_mode == AllocationMode.OFF:
        return AllocationAction.EXCLUDED

    if abs(delta) < threshold:
        return AllocationAction.HOLD

    actions = CASH_FLOW_ACTIONS if asset_class == AssetClass.CASH else TRADE_ACTIONS
    return actions[delta > ZERO]


def group_assets_by_class(assets: Sequence[Asset]) -> Dict[AssetClass, List[Asset]]:
    """Group assets by class, keeping first-seen class order and asset order."""
    grouped: Dict[AssetClass, List[Asset]] = {}
    for asset in assets:
        grouped.setdefault(asset.asset_class, []).append(asset)
    return grouped


def class_current_total(assets: Sequence[Asset]) -> Decimal:
    """Sum of current values, OFF assets excluded."""
    return sum(
        (a.current_value for a in assets if a.target_mode != AllocationMode.OFF),
        ZERO,
    )


def calculate_non_cash_value(assets: Sequence[Asset]) -> Decimal:
    """Current value of every non-OFF asset outside the CASH class."""
    return class_current_total([a for a in assets if a.asset_class != AssetClass.CASH])


def resolve_class_target(
    asset_class: AssetClass,
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
) -> AssetClassTarget:
    """
    Class target from the map, or one derived from the class's assets.

    Without an explicit entry a class is OFF when all its assets are OFF,
    SET when any asset is SET, and PERCENTAGE at 0% otherwise.
    """
    target = class_targets.get(asset_class)
    if target is not None:
        return target

    if assets and all(a.target_mode == AllocationMode.OFF for a in assets):
        return AssetClassTarget(target_mode=AllocationMode.OFF)
    if any(a.target_mode == AllocationMode.SET for a in assets):
        return AssetClassTarget(target_mode=AllocationMode.SET)
    return AssetClassTarget(target_mode=AllocationMode.PERCENTAGE, target_percent=ZERO)


def class_target_value(
    target: AssetClassTarget,
    assets: Sequence[Asset],
    non_cash_value: Decimal,
) -> Decimal:
    """Target amount for a class before any cash adjustment."""
    if target.target_mode == AllocationMode.PERCENTAGE:
        return (target.percent / HUNDRED) * non_cash_value
    if target.target_mode == AllocationMode.SET:
        return sum(
            (a.target_value or ZERO for a in assets if a.target_mode == AllocationMode.SET),
            ZERO,
        )
    return ZERO


def calculate_cash_delta(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
) -> Decimal:
    """
    Cash target minus cash holdings when CASH is SET mode, otherwise zero.

    Negative means excess cash to INVEST, positive means cash to SAVE.
    """
    cash_assets = [a for a in assets if a.asset_class == AssetClass.CASH]
    if not cash_assets:
        return ZERO

    target = resolve_class_target(AssetClass.CASH, cash_assets, class_targets)
    if target.target_mode != AllocationMode.SET:
        return ZERO

    return class_target_value(target, cash_assets, ZERO) - class_current_total(cash_assets)


def calculate_cash_adjustments(
    class_targets: Mapping[AssetClass, AssetClassTarget],
    cash_delta: Decimal,
) -> Dict[AssetClass, Decimal]:
    """
    Spread ``-cash_delta`` across non-cash PERCENTAGE classes.

    Each class with a positive percent receives
    ``-cash_delta * class_percent / non_cash_percent_total``. Classes that are
    not listed receive nothing.
    """
    if cash_delta == ZERO:
        return {}

    eligible = {
        cls: target.percent
        for cls, target in class_targets.items()
        if cls != AssetClass.CASH
        and target.target_mode == AllocationMode.PERCENTAGE
        and target.percent > ZERO
    }
    non_cash_percent_total = sum(eligible.values(), ZERO)
    if non_cash_percent_total == ZERO:
        return {}

    return {
        cls: -cash_delta * (percent / non_cash_percent_total)
        for cls, percent in eligible.items()
    }


def _percent_of(value: Decimal, base: Decimal) -> Decimal:
    return (value / base) * HUNDRED if base > ZERO else ZERO


def _ordered_classes(
    grouped: Mapping[AssetClass, Sequence[Asset]],
    class_targets: Mapping[AssetClass, AssetClassTarget],
) -> List[AssetClass]:
    present = set(grouped) | set(class_targets)
    return [cls for cls in AssetClass if cls in present]


def compute_class_summaries(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
    action_threshold: Decimal = ACTION_THRESHOLD,
) -> List[AssetClassSummary]:
    """
    Compute current/target/delta/action for every class.

    A summary is produced for each class that holds assets or has an entry
    in ``class_targets``, in :class:`AssetClass` order.

    Args:
        assets: Full asset list
        class_targets: Class-level targets
        action_threshold: Absolute delta below which the action is HOLD

    Returns:
        List of AssetClassSummary
    """
    grouped = group_assets_by_class(assets)
    non_cash_value = calculate_non_cash_value(assets)
    total_holdings = sum((a.current_value for a in assets), ZERO)
    cash_adjustments = calculate_cash_adjustments(
        class_targets, calculate_cash_delta(assets, class_targets)
    )

    summaries: List[AssetClassSummary] = []
    for asset_class in _ordered_classes(grouped, class_targets):
        class_assets = grouped.get(asset_class, [])
        target = resolve_class_target(asset_class, class_assets, class_targets)
        current_total = class_current_total(class_assets)
        target_total = class_target_value(target, class_assets, non_cash_value)
        cash_adjustment = cash_adjustments.get(asset_class, ZERO)

        if target.target_mode == AllocationMode.OFF:
            delta = ZERO
        else:
            delta = target_total - current_total + cash_adjustment

        summaries.append(
            AssetClassSummary(
                asset_class=asset_class,
                assets=list(class_assets),
                current_total=current_total,
                current_percent=_percent_of(current_total, total_holdings),
                target_mode=target.target_mode,
                target_percent=(
                    target.target_percent
                    if target.target_mode == AllocationMode.PERCENTAGE
                    else None
                ),
                target_total=None if target.target_mode == AllocationMode.OFF else target_total,
                cash_adjustment=cash_adjustment,
                delta=delta,
                action=determine_action(asset_class, delta, target.target_mode, action_threshold),
            )
        )

    return summaries


def _excluded_delta(asset: Asset) -> AllocationDelta:
    return AllocationDelta(
        asset_id=asset.id,
        current_value=asset.current_value,
        current_percent=ZERO,
        current_percent_in_class=ZERO,
        target_value=ZERO,
        target_percent=ZERO,
        delta=ZERO,
        delta_percent=ZERO,
        action=AllocationAction.EXCLUDED,
    )


def compute_deltas(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
    action_threshold: Decimal = ACTION_THRESHOLD,
) -> List[AllocationDelta]:
    """
    Compute the per-asset delta for every asset, in input order.

    PERCENTAGE assets split the class's cash-adjusted target (less the SET
    assets' fixed targets) by ``target_percent / class_total_percent``, so
    the asset deltas add up to the class delta whenever the in-class
    percents are non-zero. A SAVE larger than the class target leaves
    negative asset targets. SET assets use their own target value; OFF
    assets are EXCLUDED with a zero delta.

    Args:
        assets: Full asset list
        class_targets: Class-level targets
        action_threshold: Absolute delta below which the action is HOLD

    Returns:
        List of AllocationDelta, one per asset
    """
    grouped = group_assets_by_class(assets)
    non_cash_value = calculate_non_cash_value(assets)
    total_holdings = sum((a.current_value for a in assets), ZERO)
    cash_adjustments = calculate_cash_adjustments(
        class_targets, calculate_cash_delta(assets, class_targets)
    )

    by_id: Dict[str, AllocationDelta] = {}
    for asset_class, class_assets in grouped.items():
        target = resolve_class_target(asset_class, class_assets, class_targets)
        current_total = class_current_total(class_assets)

        set_targets = sum(
            (a.target_value or ZERO for a in class_assets if a.target_mode == AllocationMode.SET),
            ZERO,
        )
        percentage_assets = [a for a in class_assets if a.is_percentage]
        class_total_percent = sum((a.percent for a in percentage_assets), ZERO)

        if target.target_mode == AllocationMode.OFF:
            percentage_pool = ZERO
        else:
            class_target = class_target_value(target, class_assets, non_cash_value)
            class_target += cash_adjustments.get(asset_class, ZERO)
            percentage_pool = class_target - set_targets

        for asset in class_assets:
            if asset.target_mode == AllocationMode.OFF:
                by_id[asset.id] = _excluded_delta(asset)
                continue

            target_value = _asset_target_value(asset, percentage_pool, class_total_percent)
            current_percent = _percent_of(asset.current_value, total_holdings)
            target_percent = _percent_of(target_value, total_holdings)
            delta = target_value - asset.current_value

            by_id[asset.id] = AllocationDelta(
                asset_id=asset.id,
                current_value=asset.current_value,
                current_percent=current_percent,
                current_percent_in_class=_percent_of(asset.current_value, current_total),
                target_value=target_value,
                target_percent=target_percent,
                delta=delta,
                delta_percent=target_percent - current_percent,
                action=determine_action(
                    asset_class, delta, asset.target_mode, action_threshold
                ),
            )

    return [by_id[a.id] for a in assets if a.id in by_id]


def _asset_target_value(
    asset: Asset,
    percentage_pool: Decimal,
    class_total_percent: Decimal,
) -> Decimal:
    if asset.target_mode == AllocationMode.SET:
        return asset.target_value or ZERO
    if class_total_percent <= ZERO:
        return ZERO
    return (asset.percent / class_total_percent) * percentage_pool
