"""
Percentage redistribution for asset and asset-class targets.

Within one scope (the assets of a class, or the set of classes) the targets
of PERCENTAGE-mode items must sum to 100. When one item is edited, added or
removed, the other PERCENTAGE items absorb the difference:

- edit:   the remainder (100 - new value) is split across the others in
          proportion to a basis (current value for assets, current target
          percent for classes), or equally when the basis totals zero
- add:    every existing item shrinks by (100 - p) / existing_total
- delete: every remaining item grows by its share of the freed percentage

SET and OFF items are never touched. Nothing here raises for numeric edge
cases; out-of-range percents are clamped to [0, 100].
"""

import logging
from decimal import Decimal
from typing import Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Drift above which the smallest item absorbs the difference after an edit
ROUNDING_TOLERANCE = Decimal("0.001")

BasisSelector = Callable[[Asset], Decimal]


def by_current_value(asset: Asset) -> Decimal:
    """Redistribution basis tracking real money (default for asset edits)."""
    return max(asset.current_value, ZERO)


def by_target_percent(asset: Asset) -> Decimal:
    """Redistribution basis tracking the existing targets."""
    return max(asset.percent, ZERO)


def clamp_percent(value) -> Decimal:
    """Coerce ``value`` to Decimal and clamp it into [0, 100]."""
    percent = Decimal(str(value)) if not isinstance(value, Decimal) else value
    if percent < ZERO:
        return ZERO
    if percent > HUNDRED:
        return HUNDRED
    return percent


def _split_remainder(
    others: Sequence[Tuple[Hashable, Decimal, Decimal]],
    new_percent: Decimal,
    rounding_tolerance: Decimal,
) -> Dict[Hashable, Decimal]:
    """
    Split ``100 - new_percent`` across ``others``.

    Args:
        others: (key, basis, tiebreak) per sibling. ``tiebreak`` picks the item
            that absorbs rounding drift: the smallest one wins, the first in
            order on ties.
        new_percent: Percent held by the edited item
        rounding_tolerance: Drift from 100 above which the correction applies

    Returns:
        Dict mapping key to its new percent
    """
    remaining = HUNDRED - new_percent
    basis_total = sum((basis for _, basis, _ in others), ZERO)

    if basis_total == ZERO:
        equal_share = remaining / len(others)
        new_percents = {key: equal_share for key, _, _ in others}
    else:
        new_percents = {key: (basis / basis_total) * remaining for key, basis, _ in others}

    calculated_total = new_percent + sum(new_percents.values(), ZERO)
    if abs(calculated_total - HUNDRED) > rounding_tolerance:
        smallest_key = min(others, key=lambda item: item[2])[0]
        new_percents[smallest_key] += HUNDRED - calculated_total

    return {key: max(percent, ZERO) for key, percent in new_percents.items()}


def _find_asset(assets: Sequence[Asset], asset_id: str) -> Optional[Asset]:
    return next((a for a in assets if a.id == asset_id), None)


def _percentage_siblings(assets: Sequence[Asset], asset: Asset) -> List[Asset]:
    return [
        a
        for a in assets
        if a.id != asset.id and a.asset_class == asset.asset_class and a.is_percentage
    ]


def redistribute_on_edit(
    assets: Sequence[Asset],
    edited_id: str,
    new_percent,
    basis_selector: BasisSelector = by_current_value,
    rounding_tolerance: Decimal = ROUNDING_TOLERANCE,
) -> List[Asset]:
    """
    Set an asset's target percent and rebalance its class siblings.

    The other PERCENTAGE assets in the same class share ``100 - new_percent``
    in proportion to ``basis_selector`` (current value by default), equally
    when the basis totals zero. Rounding drift lands on the sibling with the
    smallest current value.

    Args:
        assets: Current asset list (not modified)
        edited_id: ID of the asset being edited
        new_percent: New target percent within the class
        basis_selector: Weight used for the proportional split
        rounding_tolerance: Drift from 100 above which correction applies

    Returns:
        New asset list in the original order. Unknown IDs return a copy of
        the input unchanged.
    """
    edited = _find_asset(assets, edited_id)
    if edited is None:
        logger.debug("redistribute_on_edit_unknown_asset", extra={"asset_id": edited_id})
        return list(assets)

    percent = clamp_percent(new_percent)
    updates: Dict[str, Decimal] = {edited.id: percent}

    if edited.is_percentage:
        siblings = _percentage_siblings(assets, edited)
        if siblings:
            updates.update(
                _split_remainder(
                    [(a.id, basis_selector(a), a.current_value) for a in siblings],
                    percent,
                    rounding_tolerance,
                )
            )

    logger.debug(
        "redistribute_on_edit",
        extra={
            "asset_id": edited_id,
            "asset_class": edited.asset_class.value,
            "new_percent": str(percent),
            "updated_count": len(updates),
        },
    )

    return [
        a.model_copy(update={"target_percent": updates[a.id]}) if a.id in updates else a
        for a in assets
    ]


def redistribute_on_add(assets: Sequence[Asset], new_asset: Asset) -> List[Asset]:
    """
    Append ``new_asset``, shrinking its PERCENTAGE siblings to make room.

    Every existing PERCENTAGE asset in the class is multiplied by
    ``(100 - p) / existing_total``. Nothing is redistributed when the new
    asset is not PERCENTAGE mode, carries no positive percent, or the class
    has no PERCENTAGE assets with a non-zero total.

    Args:
        assets: Current asset list (not modified)
        new_asset: Asset to append

    Returns:
        New asset list with ``new_asset`` last
    """
    if not new_asset.is_percentage or new_asset.target_percent is None:
        return [*assets, new_asset]

    new_percent = clamp_percent(new_asset.target_percent)
    if new_percent != new_asset.target_percent:
        new_asset = new_asset.model_copy(update={"target_percent": new_percent})
    if new_percent == ZERO:
        return [*assets, new_asset]

    siblings = _percentage_siblings(assets, new_asset)
    existing_total = sum((a.percent for a in siblings), ZERO)
    if not siblings or existing_total == ZERO:
        return [*assets, new_asset]

    reduction_factor = (HUNDRED - new_percent) / existing_total
    sibling_ids = {a.id for a in siblings}

    logger.debug(
        "redistribute_on_add",
        extra={
            "asset_id": new_asset.id,
            "asset_class": new_asset.asset_class.value,
            "reduction_factor": str(reduction_factor),
        },
    )

    updated = [
        a.model_copy(update={"target_percent": max(a.percent * reduction_factor, ZERO)})
        if a.id in sibling_ids
        else a
        for a in assets
    ]
    return [*updated, new_asset]


def redistribute_on_delete(assets: Sequence[Asset], deleted_id: str) -> List[Asset]:
    """
    Remove an asset and hand its percent to the remaining siblings.

    Each remaining PERCENTAGE asset in the class gains
    ``(its_percent / remaining_total) * deleted_percent``, or an equal share
    when the remaining total is zero. Non-PERCENTAGE deletions, and
    deletions leaving no PERCENTAGE sibling, just remove the asset.

    Args:
        assets: Current asset list (not modified)
        deleted_id: ID of the asset to remove

    Returns:
        New asset list without the deleted asset
    """
    deleted = _find_asset(assets, deleted_id)
    if deleted is None:
        return list(assets)

    remaining = [a for a in assets if a.id != deleted_id]
    siblings = _percentage_siblings(assets, deleted)
    deleted_percent = deleted.percent

    if not deleted.is_percentage or not siblings or deleted_percent == ZERO:
        return remaining

    remaining_total = sum((a.percent for a in siblings), ZERO)
    if remaining_total == ZERO:
        equal_share = deleted_percent / len(siblings)
        gains = {a.id: equal_share for a in siblings}
    else:
        gains = {a.id: (a.percent / remaining_total) * deleted_percent for a in siblings}

    logger.debug(
        "redistribute_on_delete",
        extra={
            "asset_id": deleted_id,
            "asset_class": deleted.asset_class.value,
            "deleted_percent": str(deleted_percent),
        },
    )

    return [
        a.model_copy(update={"target_percent": a.percent + gains[a.id]}) if a.id in gains else a
        for a in remaining
    ]


def redistribute_class_targets_on_edit(
    class_targets: Mapping[AssetClass, AssetClassTarget],
    asset_class: AssetClass,
    new_percent,
    class_values: Optional[Mapping[AssetClass, Decimal]] = None,
    rounding_tolerance: Decimal = ROUNDING_TOLERANCE,
) -> Dict[AssetClass, AssetClassTarget]:
    """
    Set a class's target percent and rebalance the other PERCENTAGE classes.

    Same algorithm as :func:`redistribute_on_edit`, over the class-target
    map. The basis is each other class's current target percent; as with
    assets, the class with the smallest current value (``class_values``,
    zero when absent) absorbs rounding drift. SET and OFF classes are never
    altered, editing one included. A class missing from the map is added in
    PERCENTAGE mode.

    Returns:
        New class-target map (input is not modified)
    """
    percent = clamp_percent(new_percent)
    updated: Dict[AssetClass, AssetClassTarget] = dict(class_targets)

    current = updated.get(asset_class) or AssetClassTarget(target_mode=AllocationMode.PERCENTAGE)
    if current.target_mode != AllocationMode.PERCENTAGE:
        logger.debug(
            "redistribute_class_targets_on_edit_skipped",
            extra={"asset_class": asset_class.value, "target_mode": current.target_mode.value},
        )
        return updated

    updated[asset_class] = current.model_copy(update={"target_percent": percent})
    values = class_values or {}

    others = [
        (cls, target.percent, values.get(cls, ZERO))
        for cls, target in updated.items()
        if cls != asset_class and target.target_mode == AllocationMode.PERCENTAGE
    ]
    if not others:
        return updated

    for cls, cls_percent in _split_remainder(others, percent, rounding_tolerance).items():
        updated[cls] = updated[cls].model_copy(update={"target_percent": cls_percent})

    logger.debug(
        "redistribute_class_targets_on_edit",
        extra={"asset_class": asset_class.value, "new_percent": str(percent)},
    )
    return updated
