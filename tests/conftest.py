"""Pytest configuration and shared fixtures."""

# Environment must be in place before firetools.config builds its settings
import os

from cryptography.fernet import Fernet

os.environ.setdefault("STORAGE_ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "text")

from decimal import Decimal

import pytest

from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
)
from firetools.services.allocation.defaults import default_asset_class_targets, default_assets


@pytest.fixture
def assets() -> list[Asset]:
    """Demo portfolio: 35k stocks, 30k bonds, 5k cash."""
    return default_assets()


@pytest.fixture
def class_targets() -> dict[AssetClass, AssetClassTarget]:
    """STOCKS 60 / BONDS 40 / CASH SET / CRYPTO 0 / REAL_ESTATE 0."""
    return default_asset_class_targets()


@pytest.fixture
def make_asset():
    """Factory for compact asset construction in tests."""

    def _make(
        asset_id: str,
        asset_class: AssetClass = AssetClass.STOCKS,
        value="0",
        percent=None,
        mode: AllocationMode = AllocationMode.PERCENTAGE,
        target_value=None,
        **kwargs,
    ) -> Asset:
        return Asset(
            id=asset_id,
            name=kwargs.pop("name", asset_id),
            ticker=kwargs.pop("ticker", asset_id.upper()),
            asset_class=asset_class,
            current_value=Decimal(str(value)),
            target_mode=mode,
            target_percent=None if percent is None else Decimal(str(percent)),
            target_value=None if target_value is None else Decimal(str(target_value)),
            **kwargs,
        )

    return _make


@pytest.fixture
def percent_sum():
    """Sum of PERCENTAGE targets inside one class."""

    def _sum(assets, asset_class: AssetClass) -> Decimal:
        return sum(
            (a.percent for a in assets if a.asset_class == asset_class and a.is_percentage),
            Decimal("0"),
        )

    return _sum
