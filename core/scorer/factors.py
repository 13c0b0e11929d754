#!/usr/bin/env python3
"""
Factor Calculations - One function per scoring factor.

Each factor returns (points, notes). An unset preference earns a third of the
factor's maximum so that a property scored against empty preferences lands on
a neutral baseline instead of zero.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

from core.scorer.models import (
    HousingPreferences,
    MAX_BATHROOMS_SCORE,
    MAX_BEDROOMS_SCORE,
    MAX_BUDGET_SCORE,
    MAX_CITY_SCORE,
    MAX_FEATURES_SCORE,
    to_decimal,
)

# Partial budget points are given up to this fraction over budget
BUDGET_TOLERANCE = Decimal("0.20")

TARGET_CITIES = frozenset({"union", "roselle park"})
NEARBY_CITIES = frozenset({"roselle", "kenilworth", "hillside", "elizabeth", "clark"})

FactorResult = Tuple[int, Optional[str]]


def _money(amount: Decimal) -> str:
    return f"${amount:,.0f}"


def _number(value: Decimal) -> str:
    """2.50 -> '2.5', 2.0 -> '2'."""
    return format(value.normalize(), 'f')


def budget_score(price: Any, preferences: HousingPreferences) -> FactorResult:
    if preferences.budget is None:
        return MAX_BUDGET_SCORE // 3, "No budget specified"

    budget = preferences.budget
    price = to_decimal(price, "Price")

    if price <= budget:
        return MAX_BUDGET_SCORE, f"Within budget ({_money(price)} <= {_money(budget)})"

    over = (price - budget) / budget
    if over <= BUDGET_TOLERANCE:
        # Linear from full points at budget to zero at the tolerance
        score = int(MAX_BUDGET_SCORE * (1 - over / BUDGET_TOLERANCE))
        return score, f"{over:.0%} over budget ({_money(price)} vs {_money(budget)})"

    return 0, f"Significantly over budget ({over:.0%} over)"


def bedrooms_score(bedrooms: int, preferences: HousingPreferences) -> FactorResult:
    if preferences.min_bedrooms is None:
        return MAX_BEDROOMS_SCORE // 3, "No bedroom preference specified"

    required = preferences.min_bedrooms
    if bedrooms >= required:
        return MAX_BEDROOMS_SCORE, f"Meets requirement ({bedrooms} >= {required})"
    if bedrooms == required - 1:
        return MAX_BEDROOMS_SCORE // 2, f"1 bedroom short ({bedrooms} vs {required} needed)"
    return 0, f"Not enough bedrooms ({bedrooms} vs {required} needed)"


def bathrooms_score(bathrooms: Any, preferences: HousingPreferences) -> FactorResult:
    if preferences.min_bathrooms is None:
        return MAX_BATHROOMS_SCORE // 3, "No bathroom preference specified"

    required = preferences.min_bathrooms
    bathrooms = to_decimal(bathrooms, "Bathrooms")
    if bathrooms >= required:
        return MAX_BATHROOMS_SCORE, f"Meets requirement ({_number(bathrooms)} >= {_number(required)})"
    return 0, f"Not enough bathrooms ({_number(bathrooms)} vs {_number(required)} needed)"


def city_score(city: str) -> FactorResult:
    """Location is scored against the fixed Union County target area."""
    display = (city or "").strip()
    key = display.lower()

    if key in TARGET_CITIES:
        return MAX_CITY_SCORE, f"In target area ({display})"
    if key in NEARBY_CITIES:
        return MAX_CITY_SCORE // 2, f"Near target area ({display})"
    return 0, f"Outside target area ({display})"


def features_score(features: Optional[Iterable[str]], preferences: HousingPreferences) -> FactorResult:
    if not preferences.required_features:
        return MAX_FEATURES_SCORE // 3, "No feature preferences specified"

    required = [f.lower() for f in preferences.required_features]
    available = [f.strip().lower() for f in (features or []) if f and f.strip()]

    matched = sum(
        1 for want in required
        if any(want in have or have in want for have in available)
    )
    score = int(MAX_FEATURES_SCORE * Decimal(matched) / Decimal(len(required)))

    if matched == len(required):
        return score, f"All {matched} required features present"
    return score, f"{matched}/{len(required)} required features present"
