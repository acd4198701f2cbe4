"""FIRE persona questionnaire schemas."""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FIREPersona(str, enum.Enum):
    """Retirement styles the questionnaire can recommend. Declaration order breaks score ties."""

    LEAN_FIRE = "LEAN_FIRE"  # Frugal living, minimal expenses
    REGULAR_FIRE = "REGULAR_FIRE"  # Comfortable traditional retirement
    FAT_FIRE = "FAT_FIRE"  # Abundant lifestyle, largest nest egg
    COAST_FIRE = "COAST_FIRE"  # Save early, let growth finish the job
    BARISTA_FIRE = "BARISTA_FIRE"  # Part-time work in retirement


class RiskTolerance(str, enum.Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class QuestionCategory(str, enum.Enum):
    RISK = "risk"
    LIFESTYLE = "lifestyle"
    TIMELINE = "timeline"
    INCOME = "income"
    PERSONAL = "personal"
    FINANCIAL = "financial"


class QuestionOption(BaseModel):
    """One answer and how strongly it points at each persona."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    # Score per persona, in FIREPersona declaration order
    weights: Tuple[int, int, int, int, int]


class QuestionnaireQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    description: Optional[str] = None
    category: QuestionCategory
    options: Tuple[QuestionOption, ...]

    def option(self, option_id: str) -> Optional[QuestionOption]:
        return next((o for o in self.options if o.id == option_id), None)


class QuestionnaireResponse(BaseModel):
    question_id: str
    selected_option_id: str


class AssetAllocationTarget(BaseModel):
    """Suggested class split in percent."""

    stocks: Decimal
    bonds: Decimal
    cash: Decimal
    crypto: Optional[Decimal] = None
    real_estate: Optional[Decimal] = None


class QuestionnaireResults(BaseModel):
    persona: FIREPersona
    persona_explanation: str
    scores: Dict[FIREPersona, int] = Field(default_factory=dict)
    safe_withdrawal_rate: Decimal  # e.g. 3.5 for 3.5%
    suggested_savings_rate: Decimal  # e.g. 50 for 50%
    asset_allocation: AssetAllocationTarget
    suitable_assets: List[str]
    risk_tolerance: RiskTolerance
    responses: List[QuestionnaireResponse]
    completed_at: datetime


class PersonaInfo(BaseModel):
    """Display metadata for a persona."""

    model_config = ConfigDict(frozen=True)

    name: str
    icon: str
    color: str
    tagline: str
