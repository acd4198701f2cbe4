"""
Immutable allocation state with reducer-style actions.

Every action takes the current state plus raw input and returns a new state.
The asset tuple is always replaced in one piece, so a redistribution that
touches several assets is never observable half-applied.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from firetools.config import settings
from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
    PortfolioAllocation,
)
from firetools.services.allocation.defaults import default_asset_class_targets, default_assets
from firetools.services.allocation.delta_service import class_current_total, group_assets_by_class
from firetools.services.allocation.portfolio_service import compute_allocation
from firetools.services.allocation.redistribution_service import (
    BasisSelector,
    by_current_value,
    clamp_percent,
    redistribute_class_targets_on_edit,
    redistribute_on_add,
    redistribute_on_delete,
    redistribute_on_edit,
)

logger = logging.getLogger(__name__)


class AllocationState(BaseModel):
    """Assets plus class targets. Never mutated; actions return a new state."""

    model_config = ConfigDict(frozen=True)

    assets: Tuple[Asset, ...] = ()
    class_targets: Dict[AssetClass, AssetClassTarget] = Field(default_factory=dict)

    @classmethod
    def from_defaults(cls) -> "AllocationState":
        return cls(assets=tuple(default_assets()), class_targets=default_asset_class_targets())

    @property
    def allocation(self) -> PortfolioAllocation:
        """Snapshot derived from the current assets and targets."""
        return compute_allocation(
            self.assets,
            self.class_targets,
            action_threshold=settings.ACTION_THRESHOLD,
            tolerance=settings.PERCENT_TOLERANCE,
        )

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return next((a for a in self.assets if a.id == asset_id), None)

    def _replace(self, **update: Any) -> "AllocationState":
        if "assets" in update:
            update["assets"] = tuple(update["assets"])
        return self.model_copy(update=update)

    # --- Asset actions ---

    def edit_asset_target(
        self,
        asset_id: str,
        new_percent,
        basis_selector: BasisSelector = by_current_value,
    ) -> "AllocationState":
        """Set one asset's target percent and redistribute its class siblings."""
        assets = redistribute_on_edit(
            self.assets,
            asset_id,
            new_percent,
            basis_selector=basis_selector,
            rounding_tolerance=settings.ROUNDING_TOLERANCE,
        )
        logger.info(
            "asset_target_edited",
            extra={"asset_id": asset_id, "new_percent": str(new_percent)},
        )
        return self._replace(assets=assets)

    def add_asset(self, asset: Asset) -> "AllocationState":
        """Append an asset, shrinking its PERCENTAGE siblings to make room."""
        if self.get_asset(asset.id) is not None:
            raise ValueError(f"Asset with id '{asset.id}' already exists")

        logger.info(
            "asset_added",
            extra={"asset_id": asset.id, "asset_class": asset.asset_class.value},
        )
        return self._replace(assets=redistribute_on_add(self.assets, asset))

    def delete_asset(self, asset_id: str) -> "AllocationState":
        """Remove an asset, handing its percent to the remaining siblings."""
        logger.info("asset_deleted", extra={"asset_id": asset_id})
        return self._replace(assets=redistribute_on_delete(self.assets, asset_id))

    def update_asset(self, asset_id: str, **updates: Any) -> "AllocationState":
        """
        Apply raw field updates to one asset without redistribution.

        Values are validated through the Asset model, so a bad field raises
        pydantic's ValidationError and leaves the state untouched.
        """
        asset = self.get_asset(asset_id)
        if asset is None:
            return self

        updated = Asset.model_validate({**asset.model_dump(), **updates, "id": asset.id})
        logger.info(
            "asset_updated",
            extra={"asset_id": asset_id, "fields": sorted(updates)},
        )
        return self._replace(assets=[updated if a.id == asset_id else a for a in self.assets])

    def mass_edit_asset_percents(self, percents: Mapping[str, Any]) -> "AllocationState":
        """Overwrite several asset target percents at once. No redistribution."""
        assets = [
            a.model_copy(update={"target_percent": clamp_percent(percents[a.id])})
            if a.id in percents
            else a
            for a in self.assets
        ]
        logger.info("asset_percents_mass_edited", extra={"count": len(percents)})
        return self._replace(assets=assets)

    # --- Class target actions ---

    def edit_class_target(
        self,
        asset_class: AssetClass,
        target_percent=None,
        target_mode: Optional[AllocationMode] = None,
    ) -> "AllocationState":
        """
        Change a class's mode and/or percent.

        A percent on a PERCENTAGE class redistributes the other PERCENTAGE
        classes. A mode change is also applied to every asset of the class.
        """
        existing = self.class_targets.get(asset_class)
        mode = target_mode or (existing.target_mode if existing else AllocationMode.PERCENTAGE)

        if mode == AllocationMode.PERCENTAGE and target_percent is not None:
            base = dict(self.class_targets)
            base[asset_class] = AssetClassTarget(
                target_mode=mode,
                target_percent=existing.target_percent if existing else None,
            )
            class_targets = redistribute_class_targets_on_edit(
                base,
                asset_class,
                target_percent,
                class_values={
                    cls: class_current_total(group)
                    for cls, group in group_assets_by_class(self.assets).items()
                },
                rounding_tolerance=settings.ROUNDING_TOLERANCE,
            )
        else:
            class_targets = dict(self.class_targets)
            keep_percent = mode == AllocationMode.PERCENTAGE and existing is not None
            class_targets[asset_class] = AssetClassTarget(
                target_mode=mode,
                target_percent=existing.target_percent if keep_percent else None,
            )

        assets = self.assets
        if target_mode is not None:
            assets = tuple(
                a.model_copy(update={"target_mode": target_mode})
                if a.asset_class == asset_class
                else a
                for a in self.assets
            )

        logger.info(
            "class_target_edited",
            extra={
                "asset_class": asset_class.value,
                "target_mode": mode.value,
                "target_percent": None if target_percent is None else str(target_percent),
            },
        )
        return self._replace(assets=assets, class_targets=class_targets)

    def mass_edit_class_percents(self, percents: Mapping[AssetClass, Any]) -> "AllocationState":
        """Overwrite several class target percents at once. No redistribution."""
        class_targets = dict(self.class_targets)
        for asset_class, percent in percents.items():
            current = class_targets.get(asset_class) or AssetClassTarget()
            class_targets[asset_class] = current.model_copy(
                update={"target_percent": clamp_percent(percent)}
            )
        logger.info("class_percents_mass_edited", extra={"count": len(percents)})
        return self._replace(class_targets=class_targets)

    # --- Whole-state actions ---

    def reset(self) -> "AllocationState":
        """Back to the demo portfolio."""
        logger.info("allocation_reset")
        return AllocationState.from_defaults()

    def clear(self) -> "AllocationState":
        """Drop every asset, keeping the class targets."""
        logger.info("allocation_cleared", extra={"asset_count": len(self.assets)})
        return self._replace(assets=())
