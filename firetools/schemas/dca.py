"""DCA (dollar cost averaging) helper schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from firetools.schemas.asset_allocation import AssetClass


class DCAAssetAllocation(BaseModel):
    """How much of a lump sum goes into one asset."""

    asset_id: str
    asset_name: str
    ticker: str
    asset_class: AssetClass
    allocation_percent: Decimal  # Within the asset's class
    investment_amount: Decimal
    current_price: Optional[Decimal] = None
    shares: Optional[Decimal] = None  # Fractional shares allowed
    price_error: Optional[str] = None


class DCACalculation(BaseModel):
    """A lump sum split across assets by the allocation targets."""

    total_amount: Decimal
    allocations: List[DCAAssetAllocation] = Field(default_factory=list)
    total_allocated: Decimal  # Equals total_amount when class targets sum to 100
    timestamp: datetime
