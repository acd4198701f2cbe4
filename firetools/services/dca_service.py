"""
DCA helper: split a lump sum by the allocation targets and size the buys.

The amount is first split across PERCENTAGE classes by their class target,
then across each class's PERCENTAGE assets by their in-class target. SET and
OFF assets and classes receive nothing.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
)
from firetools.schemas.dca import DCAAssetAllocation, DCACalculation
from firetools.services.allocation.delta_service import group_assets_by_class
from firetools.services.market_data import MarketDataProvider, get_market_data_provider
from firetools.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

PRICE_UNAVAILABLE = "Price unavailable"
INVALID_PRICE = "Invalid price"


def calculate_dca_allocation(
    assets: Sequence[Asset],
    investment_amount,
    class_targets: Mapping[AssetClass, AssetClassTarget],
) -> DCACalculation:
    """
    Split ``investment_amount`` across assets.

    Args:
        assets: Full asset list
        investment_amount: Lump sum to invest
        class_targets: Class-level targets

    Returns:
        DCACalculation with one entry per PERCENTAGE asset in a PERCENTAGE
        class with a positive target
    """
    amount = Decimal(str(investment_amount))
    percentage_assets = [a for a in assets if a.is_percentage]

    allocations: List[DCAAssetAllocation] = []
    for asset_class, class_assets in group_assets_by_class(percentage_assets).items():
        target = class_targets.get(asset_class)
        if target is None or target.target_mode != AllocationMode.PERCENTAGE:
            continue
        if target.percent <= ZERO:
            continue

        class_amount = (target.percent / HUNDRED) * amount
        class_total_percent = sum((a.percent for a in class_assets), ZERO)

        for asset in class_assets:
            asset_amount = (
                (asset.percent / class_total_percent) * class_amount
                if class_total_percent > ZERO
                else ZERO
            )
            allocations.append(
                DCAAssetAllocation(
                    asset_id=asset.id,
                    asset_name=asset.name,
                    ticker=asset.ticker,
                    asset_class=asset.asset_class,
                    allocation_percent=asset.percent,
                    investment_amount=asset_amount,
                )
            )

    total_allocated = sum((a.investment_amount for a in allocations), ZERO)
    logger.debug(
        "dca_allocation_calculated",
        extra={
            "total_amount": str(amount),
            "total_allocated": str(total_allocated),
            "asset_count": len(allocations),
        },
    )
    return DCACalculation(
        total_amount=amount,
        allocations=allocations,
        total_allocated=total_allocated,
        timestamp=utc_now(),
    )


def calculate_shares(
    calculation: DCACalculation,
    prices: Mapping[str, Optional[Decimal]],
) -> DCACalculation:
    """
    Annotate each allocation with its price and share count.

    Tickers without a price get ``price_error = "Price unavailable"``,
    non-positive prices get ``"Invalid price"``.
    """
    updated = []
    for allocation in calculation.allocations:
        price = prices.get(allocation.ticker)
        if price is None:
            updated.append(allocation.model_copy(update={"price_error": PRICE_UNAVAILABLE}))
            continue

        price = Decimal(str(price))
        if price <= ZERO:
            updated.append(allocation.model_copy(update={"price_error": INVALID_PRICE}))
            continue

        updated.append(
            allocation.model_copy(
                update={
                    "current_price": price,
                    "shares": allocation.investment_amount / price,
                    "price_error": None,
                }
            )
        )

    return calculation.model_copy(update={"allocations": updated})


async def fetch_asset_prices(
    tickers: Sequence[str],
    provider: Optional[MarketDataProvider] = None,
) -> Dict[str, Optional[Decimal]]:
    """
    Look up current prices. Every ticker is present in the result; failed
    or blank ones map to None.
    """
    prices: Dict[str, Optional[Decimal]] = {ticker: None for ticker in tickers}
    valid = [t for t in dict.fromkeys(tickers) if t and t.strip()]
    if not valid:
        return prices

    provider = provider or get_market_data_provider()
    quotes = await provider.get_quotes_batch(valid)
    for ticker, quote in quotes.items():
        if ticker in prices:
            prices[ticker] = quote.price

    logger.info(
        "asset_prices_fetched",
        extra={"requested": len(valid), "resolved": len(quotes)},
    )
    return prices
