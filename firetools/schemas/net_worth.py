"""Net worth tracker schemas: monthly snapshots and the summaries derived from them."""

import enum
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from firetools.schemas.currency import SupportedCurrency


class HoldingClass(str, enum.Enum):
    """Classification of a tracked holding (wider than the allocation classes)."""

    STOCKS = "STOCKS"
    BONDS = "BONDS"
    ETF = "ETF"
    CRYPTO = "CRYPTO"
    REAL_ESTATE = "REAL_ESTATE"
    OTHER = "OTHER"


class CashAccountType(str, enum.Enum):
    SAVINGS = "SAVINGS"
    CHECKING = "CHECKING"
    BROKERAGE = "BROKERAGE"
    CREDIT_CARD = "CREDIT_CARD"
    OTHER = "OTHER"


class PensionType(str, enum.Enum):
    STATE = "STATE"
    PRIVATE = "PRIVATE"
    EMPLOYER = "EMPLOYER"
    OTHER = "OTHER"


class OperationType(str, enum.Enum):
    """Kinds of recorded financial operations."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"
    DIVIDEND = "DIVIDEND"
    EXPENSE_REIMBURSEMENT = "EXPENSE_REIMBURSEMENT"
    GIFT_RECEIVED = "GIFT_RECEIVED"
    GIFT_GIVEN = "GIFT_GIVEN"
    TAX_PAID = "TAX_PAID"
    CASH_TRANSFER = "CASH_TRANSFER"
    PENSION_CONTRIBUTION = "PENSION_CONTRIBUTION"
    PENSION_ADJUSTMENT = "PENSION_ADJUSTMENT"
    PRICE_UPDATE = "PRICE_UPDATE"
    OTHER = "OTHER"


class ConfidenceLevel(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AssetHolding(BaseModel):
    """A position valued as shares times price per share."""

    id: str
    ticker: str = ""
    name: str = ""
    shares: Decimal = Decimal("0")
    price_per_share: Decimal = Decimal("0")
    currency: SupportedCurrency = SupportedCurrency.EUR
    asset_class: HoldingClass = HoldingClass.STOCKS
    note: Optional[str] = None


class CashEntry(BaseModel):
    id: str
    account_name: str
    account_type: CashAccountType = CashAccountType.SAVINGS
    balance: Decimal = Decimal("0")
    currency: SupportedCurrency = SupportedCurrency.EUR
    note: Optional[str] = None


class PensionEntry(BaseModel):
    id: str
    name: str
    current_value: Decimal = Decimal("0")
    currency: SupportedCurrency = SupportedCurrency.EUR
    pension_type: PensionType = PensionType.STATE
    note: Optional[str] = None


class FinancialOperation(BaseModel):
    id: str
    operation_date: date
    type: OperationType
    description: str = ""
    amount: Decimal
    currency: SupportedCurrency = SupportedCurrency.EUR
    related_asset_id: Optional[str] = None
    related_account_id: Optional[str] = None
    note: Optional[str] = None


class MonthlySnapshot(BaseModel):
    """Everything recorded for one calendar month."""

    year: int
    month: int = Field(ge=1, le=12)
    assets: List[AssetHolding] = Field(default_factory=list)
    cash_entries: List[CashEntry] = Field(default_factory=list)
    pensions: List[PensionEntry] = Field(default_factory=list)
    operations: List[FinancialOperation] = Field(default_factory=list)
    is_frozen: bool = False  # Month has ended and values are final
    frozen_date: Optional[date] = None
    month_note: Optional[str] = None


class NetWorthYearData(BaseModel):
    year: int
    months: List[MonthlySnapshot] = Field(default_factory=list)
    is_archived: bool = False


class MonthlyNetWorth(BaseModel):
    """Totals of one snapshot in the base currency."""

    total_asset_value: Decimal
    total_cash: Decimal
    total_pension: Decimal
    total_taxes_paid: Decimal  # Reported only, not subtracted from net worth
    net_worth: Decimal


class YTDSummary(BaseModel):
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_savings: Decimal = Decimal("0")
    savings_rate: Decimal = Decimal("0")
    average_monthly_net_worth: Decimal = Decimal("0")
    net_worth_change: Decimal = Decimal("0")
    net_worth_change_percent: Decimal = Decimal("0")


class MonthlyVariation(BaseModel):
    month: str  # e.g. "Jan 2024"
    net_worth: Decimal
    change_from_prev_month: Decimal
    change_percent: Decimal
    asset_value_change: Decimal
    cash_change: Decimal
    pension_change: Decimal


class NetWorthForecast(BaseModel):
    month: str
    projected_net_worth: Decimal
    confidence_level: ConfidenceLevel
    based_on_months: int


class FIREProgress(BaseModel):
    current_net_worth: Decimal
    fire_target: Decimal
    percent_to_fire: Decimal
    projected_fire_date: Optional[date] = None
    years_to_fire: Optional[int] = None


class AssetPriceVariation(BaseModel):
    """Price change of one holding, in percent."""

    ytd_variation: Decimal
    last_month_variation: Decimal
