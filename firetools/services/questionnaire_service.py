"""
FIRE persona questionnaire: questions, scoring and recommendations.

Each answer adds a weight (positive or negative) to every persona; the persona
with the highest total wins, earlier personas winning ties. The winner's
profile is then adjusted for the retirement timeline and legacy wishes (safe
withdrawal rate) and for age (stock/bond split).
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Sequence, Tuple

from firetools.schemas.questionnaire import (
    AssetAllocationTarget,
    FIREPersona,
    PersonaInfo,
    QuestionCategory,
    QuestionnaireQuestion,
    QuestionnaireResponse,
    QuestionnaireResults,
    QuestionOption,
    RiskTolerance,
)
from firetools.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def _option(option_id: str, label: str, *weights: int) -> QuestionOption:
    """Weights in persona order: lean, regular, fat, coast, barista."""
    return QuestionOption(id=option_id, label=label, weights=weights)


QUESTIONNAIRE_QUESTIONS: Tuple[QuestionnaireQuestion, ...] = (
    QuestionnaireQuestion(
        id="q1_risk_tolerance",
        text="How would you describe your investment risk tolerance?",
        description="Your comfort level with market volatility",
        category=QuestionCategory.RISK,
        options=(
            _option("conservative", "Conservative", 3, 3, -2, 1, 2),
            _option("moderate", "Moderate", 1, 3, 2, 1, 2),
            _option("aggressive", "Aggressive", -1, 1, 4, 3, -1),
        ),
    ),
    QuestionnaireQuestion(
        id="q2_current_age",
        text="What is your current age range?",
        description="Your age affects optimal asset allocation and time horizon",
        category=QuestionCategory.PERSONAL,
        options=(
            _option("age_20_30", "20-30 years old", 3, 1, 2, 4, 1),
            _option("age_30_40", "30-40 years old", 2, 3, 2, 2, 2),
            _option("age_40_50", "40-50 years old", 1, 3, 3, -1, 3),
            _option("age_50_plus", "50+ years old", -1, 2, 3, -3, 4),
        ),
    ),
    QuestionnaireQuestion(
        id="q3_retirement_timeline",
        text="When do you plan to achieve FIRE?",
        description="Your target retirement age or timeframe",
        category=QuestionCategory.TIMELINE,
        options=(
            _option("very_early", "Very Early (Before 40)", 4, -1, -2, 3, 1),
            _option("early", "Early (40-50)", 2, 3, 1, 1, 2),
            _option("standard", "Standard (50-60)", -1, 3, 3, -1, 1),
            _option("flexible", "Flexible/No Rush", -2, 1, 1, 4, 3),
        ),
    ),
    QuestionnaireQuestion(
        id="q4_lifestyle_expectations",
        text="What lifestyle do you envision in retirement?",
        description="Your expected spending and quality of life",
        category=QuestionCategory.LIFESTYLE,
        options=(
            _option("frugal", "Frugal & Minimalist", 5, -1, -4, 3, 1),
            _option("comfortable", "Comfortable & Modest", 1, 4, -1, 1, 2),
            _option("abundant", "Abundant & Flexible", -3, 2, 4, -1, 1),
            _option("luxurious", "Luxurious & Indulgent", -5, -1, 5, -3, -2),
        ),
    ),
    QuestionnaireQuestion(
        id="q5_income_stability",
        text="How stable and predictable is your current income?",
        description="Job security and income consistency",
        category=QuestionCategory.INCOME,
        options=(
            _option("very_stable", "Very Stable (Public Sector)", 2, 3, 2, 1, -1),
            _option("stable", "Stable (Corporate)", 1, 2, 1, 1, 1),
            _option("variable", "Variable (Entrepreneurial)", -1, -1, 1, 2, 2),
            _option("unpredictable", "Unpredictable (Freelance)", -2, -2, -1, 1, 3),
        ),
    ),
    QuestionnaireQuestion(
        id="q6_income_growth",
        text="What are your income growth prospects?",
        description="Expected salary increases over time",
        category=QuestionCategory.INCOME,
        options=(
            _option("high_growth", "High Growth Potential", -1, 1, 4, 3, -1),
            _option("moderate_growth", "Moderate Growth", 1, 3, 1, 1, 1),
            _option("limited_growth", "Limited Growth", 2, 1, -2, -1, 2),
            _option("peak_earnings", "Already at Peak", 2, 2, 1, -2, 2),
        ),
    ),
    QuestionnaireQuestion(
        id="q7_work_preference",
        text="How do you feel about working in retirement?",
        description="Willingness to work part-time after FIRE",
        category=QuestionCategory.PERSONAL,
        options=(
            _option("never_work", "Never Want to Work", 3, 3, 3, -3, -3),
            _option("maybe_hobby", "Maybe Hobby/Passion Projects", 1, 2, 2, 1, 1),
            _option("part_time", "Open to Part-Time", -1, -1, -2, 2, 4),
            _option("continue_working", "Plan to Keep Working", -3, -2, -2, 4, 3),
        ),
    ),
    QuestionnaireQuestion(
        id="q8_family_plans",
        text="Do you have or plan to have dependents?",
        description="Children or family financial responsibilities",
        category=QuestionCategory.PERSONAL,
        options=(
            _option("no_dependents", "No Dependents", 4, 1, -1, 3, 1),
            _option("future_kids", "Planning for Children", -2, 2, 2, -1, 1),
            _option("young_kids", "Young Children", -3, 2, 3, -2, 2),
            _option("older_dependents", "Older Dependents/Parents", -2, 1, 3, -1, 2),
        ),
    ),
    QuestionnaireQuestion(
        id="q9_housing",
        text="What is your housing situation and preference?",
        description="Current and future housing plans",
        category=QuestionCategory.LIFESTYLE,
        options=(
            _option("own_paid", "Own (Mortgage-Free)", 3, 3, 1, 2, 2),
            _option("own_mortgage", "Own (With Mortgage)", -1, 2, 2, -1, 1),
            _option("rent_flexible", "Rent (Happy to Continue)", 2, -1, -2, 2, 1),
            _option("want_to_buy", "Rent (Want to Buy)", -2, 1, 3, -2, 1),
        ),
    ),
    QuestionnaireQuestion(
        id="q10_state_pension",
        text="How reliable do you consider your state/government pension?",
        description="Trust in public pension systems",
        category=QuestionCategory.FINANCIAL,
        options=(
            _option("very_reliable", "Very Reliable", 1, 1, -1, 4, 3),
            _option("somewhat_reliable", "Somewhat Reliable", 1, 2, 1, 2, 2),
            _option("unreliable", "Unreliable", 2, 2, 2, -1, -1),
            _option("no_pension", "No State Pension", 2, 1, 3, -3, -2),
        ),
    ),
    QuestionnaireQuestion(
        id="q11_emergency_fund",
        text="How large should your emergency fund be?",
        description="Months of expenses in cash reserves",
        category=QuestionCategory.FINANCIAL,
        options=(
            _option("minimal_3m", "Minimal (3 months)", -1, -1, -2, 2, 2),
            _option("standard_6m", "Standard (6 months)", 1, 3, 1, 1, 1),
            _option("conservative_12m", "Conservative (12 months)", 3, 2, 2, -1, 1),
            _option("very_large_24m", "Very Large (24+ months)", 2, 1, 3, -2, -1),
        ),
    ),
    QuestionnaireQuestion(
        id="q12_market_volatility",
        text="How would you react to a 30% market drop?",
        description="Your emotional response to losses",
        category=QuestionCategory.RISK,
        options=(
            _option("panic_sell", "Panic and Sell", 2, 1, -3, -2, 2),
            _option("worry_hold", "Worry but Hold", 2, 2, -1, 1, 2),
            _option("stay_calm", "Stay Calm", 1, 3, 2, 2, 1),
            _option("buy_more", "Buy More (Opportunity!)", -1, 1, 4, 3, -1),
        ),
    ),
    QuestionnaireQuestion(
        id="q13_health_concerns",
        text="How do you rate your health and healthcare costs?",
        description="Expected medical expenses in retirement",
        category=QuestionCategory.PERSONAL,
        options=(
            _option("excellent_low", "Excellent Health, Low Costs", 3, 2, -1, 2, 1),
            _option("good_average", "Good Health, Average Costs", 1, 2, 1, 1, 1),
            _option("fair_higher", "Fair Health, Higher Costs", -2, 1, 3, -1, 2),
            _option("concerns_high", "Health Concerns, High Costs", -3, -1, 4, -2, 3),
        ),
    ),
    QuestionnaireQuestion(
        id="q14_legacy",
        text="What is your philosophy on wealth at end of life?",
        description="Whether to spend it all or leave an inheritance",
        category=QuestionCategory.FINANCIAL,
        options=(
            _option("die_with_zero", "Die with Zero", 4, 2, -2, 3, 2),
            _option("minimal_legacy", "Minimal Legacy (Cover Funeral)", 2, 3, 1, 2, 2),
            _option("moderate_legacy", "Leave Some Inheritance", -1, 2, 3, -1, 1),
            _option("large_legacy", "Preserve Wealth for Heirs", -3, -1, 4, -3, -2),
        ),
    ),
)

_QUESTIONS_BY_ID = {q.id: q for q in QUESTIONNAIRE_QUESTIONS}

RISK_QUESTION = "q1_risk_tolerance"
AGE_QUESTION = "q2_current_age"
TIMELINE_QUESTION = "q3_retirement_timeline"
LEGACY_QUESTION = "q14_legacy"


def _allocation(stocks, bonds, cash, real_estate=None, crypto=None) -> AssetAllocationTarget:
    return AssetAllocationTarget(
        stocks=stocks, bonds=bonds, cash=cash, real_estate=real_estate, crypto=crypto
    )


PERSONA_PROFILES = {
    FIREPersona.LEAN_FIRE: {
        "explanation": (
            "You align with Lean FIRE, focusing on minimalist living and frugal retirement. "
            "This path requires the smallest nest egg but demands disciplined spending. "
            "You prioritize freedom and simplicity over luxury."
        ),
        "base_swr": Decimal("3.0"),
        "savings_rate": Decimal("60"),
        "allocation": {
            RiskTolerance.CONSERVATIVE: _allocation(50, 40, 10),
            RiskTolerance.MODERATE: _allocation(60, 30, 10),
            RiskTolerance.AGGRESSIVE: _allocation(70, 20, 10),
        },
        "suitable_assets": [
            "Low-cost broad market index funds",
            "Total market exchange-traded funds",
            "Government bonds",
            "High-yield savings accounts",
            "Inflation-protected securities",
        ],
    },
    FIREPersona.REGULAR_FIRE: {
        "explanation": (
            "You align with Regular FIRE, seeking a comfortable traditional retirement "
            "lifestyle. This balanced approach allows for a modest but stable retirement "
            "without extreme frugality or luxury."
        ),
        "base_swr": Decimal("3.5"),
        "savings_rate": Decimal("50"),
        "allocation": {
            RiskTolerance.CONSERVATIVE: _allocation(60, 30, 10),
            RiskTolerance.MODERATE: _allocation(70, 20, 10),
            RiskTolerance.AGGRESSIVE: _allocation(80, 15, 5),
        },
        "suitable_assets": [
            "Diversified index funds",
            "Total stock market ETFs",
            "Aggregate bond funds",
            "International equity ETFs",
            "Target-date retirement funds",
        ],
    },
    FIREPersona.FAT_FIRE: {
        "explanation": (
            "You align with Fat FIRE, pursuing an abundant lifestyle with significant "
            "financial cushion. This requires the largest nest egg but provides maximum "
            "flexibility and luxury in retirement."
        ),
        "base_swr": Decimal("3.0"),
        "savings_rate": Decimal("40"),
        "allocation": {
            RiskTolerance.CONSERVATIVE: _allocation(60, 25, 10, real_estate=5),
            RiskTolerance.MODERATE: _allocation(70, 15, 10, real_estate=5),
            RiskTolerance.AGGRESSIVE: _allocation(75, 10, 5, real_estate=5, crypto=5),
        },
        "suitable_assets": [
            "Growth-oriented index funds",
            "International equity funds",
            "Alternative investments",
            "Real estate properties",
            "Large-cap equities",
            "Municipal bonds",
        ],
    },
    FIREPersona.COAST_FIRE: {
        "explanation": (
            "You align with Coast FIRE, where you save aggressively early then let compound "
            "interest work its magic. You can switch to a lower-stress job or reduce work "
            "hours while your investments grow to FIRE."
        ),
        "base_swr": Decimal("3.5"),
        "savings_rate": Decimal("70"),
        "allocation": {
            RiskTolerance.CONSERVATIVE: _allocation(70, 20, 10),
            RiskTolerance.MODERATE: _allocation(80, 15, 5),
            RiskTolerance.AGGRESSIVE: _allocation(85, 10, 5),
        },
        "suitable_assets": [
            "Growth-focused index funds",
            "Aggressive diversified portfolios",
            "Tax-advantaged retirement accounts",
            "Long-term growth equities",
            "Small and mid-cap funds",
        ],
    },
    FIREPersona.BARISTA_FIRE: {
        "explanation": (
            "You align with Barista FIRE, planning to supplement your investment income with "
            "part-time work. This provides flexibility and social engagement, and reduces the "
            "required nest egg while maintaining healthcare benefits."
        ),
        "base_swr": Decimal("3.5"),
        "savings_rate": Decimal("45"),
        "allocation": {
            RiskTolerance.CONSERVATIVE: _allocation(55, 35, 10),
            RiskTolerance.MODERATE: _allocation(65, 25, 10),
            RiskTolerance.AGGRESSIVE: _allocation(75, 20, 5),
        },
        "suitable_assets": [
            "Balanced index funds",
            "Total market index ETFs",
            "Bond ladders for stability",
            "Tax-efficient growth funds",
            "Low-cost accumulating ETFs",
        ],
    },
}

# Upper bound on the safe withdrawal rate per retirement timeline
TIMELINE_SWR_CAPS = {
    "very_early": Decimal("3.0"),
    "early": Decimal("3.25"),
}

LEGACY_SWR_ADJUSTMENTS = {
    "die_with_zero": Decimal("0.5"),
    "minimal_legacy": Decimal("0.25"),
    "moderate_legacy": Decimal("0"),
    "large_legacy": Decimal("-0.25"),
}

PERSONA_INFO = {
    FIREPersona.LEAN_FIRE: PersonaInfo(
        name="Lean FIRE", icon="eco", color="#22C55E", tagline="Minimalist & Frugal"
    ),
    FIREPersona.REGULAR_FIRE: PersonaInfo(
        name="Regular FIRE", icon="home", color="#3B82F6", tagline="Comfortable & Balanced"
    ),
    FIREPersona.FAT_FIRE: PersonaInfo(
        name="Fat FIRE", icon="diamond", color="#A855F7", tagline="Luxurious & Abundant"
    ),
    FIREPersona.COAST_FIRE: PersonaInfo(
        name="Coast FIRE", icon="sailing", color="#06B6D4", tagline="Save Early, Coast Later"
    ),
    FIREPersona.BARISTA_FIRE: PersonaInfo(
        name="Barista FIRE", icon="coffee", color="#F59E0B", tagline="Semi-Retired Lifestyle"
    ),
}


def _answers(responses: Sequence[QuestionnaireResponse]) -> Dict[str, QuestionOption]:
    """Map question id to the chosen option, ignoring unknown questions and options."""
    answers: Dict[str, QuestionOption] = {}
    for response in responses:
        if response.question_id in answers:
            continue
        question = _QUESTIONS_BY_ID.get(response.question_id)
        option = question.option(response.selected_option_id) if question else None
        if option is not None:
            answers[response.question_id] = option
    return answers


def score_personas(responses: Sequence[QuestionnaireResponse]) -> Dict[FIREPersona, int]:
    """Total weight per persona, in persona declaration order."""
    scores = {persona: 0 for persona in FIREPersona}
    for option in _answers(responses).values():
        for persona, weight in zip(FIREPersona, option.weights):
            scores[persona] += weight
    return scores


def _adjust_allocation_for_age(
    allocation: AssetAllocationTarget, current_age: Optional[str]
) -> AssetAllocationTarget:
    stocks, bonds = allocation.stocks, allocation.bonds
    if current_age == "age_20_30":
        stocks, bonds = min(Decimal("95"), stocks + 10), max(Decimal("5"), bonds - 10)
    elif current_age == "age_30_40":
        stocks, bonds = min(Decimal("90"), stocks + 5), max(Decimal("5"), bonds - 5)
    elif current_age == "age_50_plus":
        stocks, bonds = max(Decimal("40"), stocks - 10), bonds + 10
    return allocation.model_copy(update={"stocks": stocks, "bonds": bonds})


def _safe_withdrawal_rate(
    base_swr: Decimal, timeline: Optional[str], legacy: Optional[str]
) -> Decimal:
    rate = base_swr
    cap = TIMELINE_SWR_CAPS.get(timeline)
    if cap is not None:
        rate = min(rate, cap)
    return rate + LEGACY_SWR_ADJUSTMENTS.get(legacy, Decimal("0"))


def calculate_fire_persona(
    responses: Sequence[QuestionnaireResponse],
    completed_at: Optional[datetime] = None,
) -> QuestionnaireResults:
    """
    Score the responses and build the recommendation for the winning persona.

    Unanswered questions contribute nothing. Without a risk answer the
    moderate allocation is used.

    Args:
        responses: One response per answered question; the first answer to a
            question counts
        completed_at: Completion timestamp, defaults to now (UTC)

    Returns:
        QuestionnaireResults with the persona, its scores and recommendations
    """
    answers = _answers(responses)
    scores = score_personas(responses)
    persona = max(scores, key=scores.get)

    def _answer(question_id: str) -> Optional[str]:
        option = answers.get(question_id)
        return option.id if option else None

    risk_answer = _answer(RISK_QUESTION)
    risk_tolerance = RiskTolerance(risk_answer) if risk_answer else RiskTolerance.MODERATE

    profile = PERSONA_PROFILES[persona]
    allocation = _adjust_allocation_for_age(
        profile["allocation"][risk_tolerance], _answer(AGE_QUESTION)
    )
    swr = _safe_withdrawal_rate(
        profile["base_swr"], _answer(TIMELINE_QUESTION), _answer(LEGACY_QUESTION)
    )

    logger.info(
        "questionnaire_scored",
        extra={
            "persona": persona.value,
            "answered": len(answers),
            "risk_tolerance": risk_tolerance.value,
        },
    )

    return QuestionnaireResults(
        persona=persona,
        persona_explanation=profile["explanation"],
        scores=scores,
        safe_withdrawal_rate=swr,
        suggested_savings_rate=profile["savings_rate"],
        asset_allocation=allocation,
        suitable_assets=list(profile["suitable_assets"]),
        risk_tolerance=risk_tolerance,
        responses=list(responses),
        completed_at=completed_at or utc_now(),
    )


def get_persona_info(persona: FIREPersona) -> PersonaInfo:
    return PERSONA_INFO[persona]
