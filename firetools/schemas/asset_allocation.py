"""Asset allocation schemas: holdings, class targets and computed deltas."""

import enum
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AllocationMode(str, enum.Enum):
    """How a target is expressed."""

    PERCENTAGE = "PERCENTAGE"  # Relative share, participates in redistribution
    SET = "SET"  # Fixed absolute amount
    OFF = "OFF"  # Excluded from targets


class AssetClass(str, enum.Enum):
    """Closed set of asset classes. Declaration order is the display order."""

    STOCKS = "STOCKS"
    BONDS = "BONDS"
    CASH = "CASH"
    CRYPTO = "CRYPTO"
    REAL_ESTATE = "REAL_ESTATE"


class SubAssetType(str, enum.Enum):
    """Finer classification. Informational only, never read by the allocation math."""

    ETF = "ETF"
    SINGLE_STOCK = "SINGLE_STOCK"
    SINGLE_BOND = "SINGLE_BOND"
    SAVINGS_ACCOUNT = "SAVINGS_ACCOUNT"
    CHECKING_ACCOUNT = "CHECKING_ACCOUNT"
    BROKERAGE_ACCOUNT = "BROKERAGE_ACCOUNT"
    MONEY_ETF = "MONEY_ETF"
    COIN = "COIN"
    PROPERTY = "PROPERTY"
    REIT = "REIT"
    NONE = "NONE"


class AllocationAction(str, enum.Enum):
    """
    Recommended action for an asset or class.

    Cash deltas use SAVE/INVEST: a negative cash delta (INVEST) means money
    flows out of cash into the other classes, a positive one (SAVE) means
    money has to be raised elsewhere and parked in cash.
    """

    BUY = "BUY"
    SELL = "SELL"
    SAVE = "SAVE"
    INVEST = "INVEST"
    HOLD = "HOLD"
    EXCLUDED = "EXCLUDED"


class Asset(BaseModel):
    """A single holding in the portfolio."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    ticker: str = ""
    asset_class: AssetClass
    sub_asset_type: SubAssetType = SubAssetType.NONE
    current_value: Decimal = Decimal("0")
    target_mode: AllocationMode = AllocationMode.PERCENTAGE
    target_percent: Optional[Decimal] = None  # Relative to the asset's class
    target_value: Optional[Decimal] = None  # Only meaningful in SET mode

    # Metadata carried through unchanged
    isin: Optional[str] = None
    shares: Optional[Decimal] = None
    price_per_share: Optional[Decimal] = None
    original_currency: Optional[str] = None
    institution: Optional[str] = None

    @property
    def percent(self) -> Decimal:
        """Target percent, treating a missing value as zero."""
        return self.target_percent if self.target_percent is not None else Decimal("0")

    @property
    def is_percentage(self) -> bool:
        return self.target_mode == AllocationMode.PERCENTAGE


class AssetClassTarget(BaseModel):
    """Class-level target, relative to the non-cash portfolio value."""

    model_config = ConfigDict(frozen=True)

    target_mode: AllocationMode = AllocationMode.PERCENTAGE
    target_percent: Optional[Decimal] = None

    @property
    def percent(self) -> Decimal:
        return self.target_percent if self.target_percent is not None else Decimal("0")


ClassTargets = Dict[AssetClass, AssetClassTarget]


class AllocationDelta(BaseModel):
    """Computed per-asset position against its target. Never persisted."""

    asset_id: str
    current_value: Decimal
    current_percent: Decimal  # Of total holdings
    current_percent_in_class: Decimal
    target_value: Decimal
    target_percent: Decimal  # Of total holdings
    delta: Decimal  # target_value - current_value
    delta_percent: Decimal
    action: AllocationAction


class AssetClassSummary(BaseModel):
    """Computed per-class totals, target and action."""

    asset_class: AssetClass
    assets: List[Asset]
    current_total: Decimal
    current_percent: Decimal  # Of total holdings
    target_mode: AllocationMode
    target_percent: Optional[Decimal] = None
    target_total: Optional[Decimal] = None
    cash_adjustment: Decimal = Decimal("0")
    delta: Decimal
    action: AllocationAction


class PortfolioAllocation(BaseModel):
    """Full allocation snapshot. Rebuilt from scratch on every change."""

    assets: List[Asset]
    asset_classes: List[AssetClassSummary]
    total_value: Decimal  # All non-OFF holdings
    total_holdings: Decimal  # All holdings, OFF included
    non_cash_value: Decimal  # Denominator for class percentage targets
    cash_delta: Decimal
    deltas: List[AllocationDelta]
    is_valid: bool
    validation_errors: List[str] = Field(default_factory=list)

    def delta_for(self, asset_id: str) -> Optional[AllocationDelta]:
        """Look up the delta computed for ``asset_id``."""
        return next((d for d in self.deltas if d.asset_id == asset_id), None)

    def summary_for(self, asset_class: AssetClass) -> Optional[AssetClassSummary]:
        """Look up the summary computed for ``asset_class``."""
        return next((s for s in self.asset_classes if s.asset_class == asset_class), None)


class ChartSlice(BaseModel):
    """One slice of a pie/donut chart."""

    name: str
    value: Decimal
    percentage: Decimal
    color: str
    ticker: Optional[str] = None
