"""Demo portfolio used on first start and after a reset.

Holdings total 70k: 35k stocks, 30k bonds, 5k cash. Class targets apply to
the 65k non-cash value (60% stocks = 39k, 40% bonds = 26k); cash is SET to
5k so it carries no delta.
"""

from decimal import Decimal

from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
    ClassTargets,
    SubAssetType,
)


# Preset holdings: id -> asset fields
DEFAULT_ASSET_PRESETS: dict[str, dict] = {
    # --- Stocks ---
    "stock-1": {
        "name": "S&P 500 Index ETF",
        "ticker": "SPY",
        "isin": "US78462F1030",
        "asset_class": AssetClass.STOCKS,
        "current_value": Decimal("14000"),
        "target_percent": Decimal("40"),
    },
    "stock-2": {
        "name": "Vanguard Total Stock Market",
        "ticker": "VTI",
        "isin": "US9229087690",
        "asset_class": AssetClass.STOCKS,
        "current_value": Decimal("9450"),
        "target_percent": Decimal("27"),
    },
    "stock-3": {
        "name": "International Developed Markets",
        "ticker": "VXUS",
        "isin": "US9219097683",
        "asset_class": AssetClass.STOCKS,
        "current_value": Decimal("5950"),
        "target_percent": Decimal("17"),
    },
    "stock-4": {
        "name": "Emerging Markets ETF",
        "ticker": "VWO",
        "isin": "US9220428588",
        "asset_class": AssetClass.STOCKS,
        "current_value": Decimal("3500"),
        "target_percent": Decimal("10"),
    },
    "stock-5": {
        "name": "Small Cap Value",
        "ticker": "VBR",
        "isin": "US9219097766",
        "asset_class": AssetClass.STOCKS,
        "current_value": Decimal("2100"),
        "target_percent": Decimal("6"),
    },
    # --- Bonds ---
    "bond-1": {
        "name": "Total Bond Market",
        "ticker": "BND",
        "isin": "US9219378356",
        "asset_class": AssetClass.BONDS,
        "current_value": Decimal("15000"),
        "target_percent": Decimal("50"),
    },
    "bond-2": {
        "name": "Treasury Inflation-Protected",
        "ticker": "TIP",
        "isin": "US4642874659",
        "asset_class": AssetClass.BONDS,
        "current_value": Decimal("9000"),
        "target_percent": Decimal("30"),
    },
    "bond-3": {
        "name": "International Bond",
        "ticker": "BNDX",
        "isin": "US9219378273",
        "asset_class": AssetClass.BONDS,
        "current_value": Decimal("6000"),
        "target_percent": Decimal("20"),
    },
    # --- Cash ---
    "cash-1": {
        "name": "Primary bank cash",
        "ticker": "CASH",
        "asset_class": AssetClass.CASH,
        "sub_asset_type": SubAssetType.SAVINGS_ACCOUNT,
        "current_value": Decimal("5000"),
        "target_mode": AllocationMode.SET,
        "target_value": Decimal("5000"),
    },
}

DEFAULT_CLASS_TARGET_PRESETS: dict[AssetClass, dict] = {
    AssetClass.STOCKS: {"target_mode": AllocationMode.PERCENTAGE, "target_percent": Decimal("60")},
    AssetClass.BONDS: {"target_mode": AllocationMode.PERCENTAGE, "target_percent": Decimal("40")},
    AssetClass.CASH: {"target_mode": AllocationMode.SET},
    AssetClass.CRYPTO: {"target_mode": AllocationMode.PERCENTAGE, "target_percent": Decimal("0")},
    AssetClass.REAL_ESTATE: {
        "target_mode": AllocationMode.PERCENTAGE,
        "target_percent": Decimal("0"),
    },
}


def default_assets() -> list[Asset]:
    """Build a fresh copy of the demo holdings, ETFs unless stated otherwise."""
    return [
        Asset(id=asset_id, **{"sub_asset_type": SubAssetType.ETF, **preset})
        for asset_id, preset in DEFAULT_ASSET_PRESETS.items()
    ]


def default_asset_class_targets() -> ClassTargets:
    """Build a fresh copy of the demo class targets."""
    return {
        asset_class: AssetClassTarget(**preset)
        for asset_class, preset in DEFAULT_CLASS_TARGET_PRESETS.items()
    }
