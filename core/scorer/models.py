#!/usr/bin/env python3
"""
Scoring Models - Value objects consumed and produced by the match scorer.

- HousingPreferences / ShulProximityPreference: what a family is looking for.
  Every field is optional; an unset field means "no preference", not zero.
- MatchScoreBreakdown: per-factor points, maximums and rationale for a score.
  Stored as compact camelCase JSON on PropertyMatch.match_details.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.enums import MoveTimeline, parse_enum
from core.exceptions import ValidationException

MAX_BUDGET_SCORE = 30
MAX_BEDROOMS_SCORE = 20
MAX_BATHROOMS_SCORE = 15
MAX_CITY_SCORE = 20
MAX_FEATURES_SCORE = 15
MAX_TOTAL_SCORE = 100


def to_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    """Coerce a money/measure value to Decimal, or raise a validation error."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationException(f"{field_name} must be a number, got {value!r}")
    if not amount.is_finite():
        raise ValidationException(f"{field_name} must be a finite number, got {value!r}")
    return amount


@dataclass(frozen=True)
class ShulProximityPreference:
    """Walking-distance preference to a set of shuls (venues)."""
    preferred_shul_ids: Tuple[uuid.UUID, ...] = ()
    max_walking_distance_miles: Optional[float] = None
    max_walking_time_minutes: Optional[int] = None
    any_shul_acceptable: bool = True

    def __post_init__(self):
        try:
            ids = tuple(
                shul_id if isinstance(shul_id, uuid.UUID) else uuid.UUID(str(shul_id))
                for shul_id in (self.preferred_shul_ids or ())
            )
        except ValueError:
            raise ValidationException(f"Invalid shul id in {self.preferred_shul_ids!r}")
        object.__setattr__(self, 'preferred_shul_ids', ids)

        # Without specific shuls any shul is acceptable
        if not ids:
            object.__setattr__(self, 'any_shul_acceptable', True)

        if self.max_walking_distance_miles is not None and self.max_walking_distance_miles < 0:
            raise ValidationException("Max walking distance cannot be negative")
        if self.max_walking_time_minutes is not None and self.max_walking_time_minutes < 0:
            raise ValidationException("Max walking time cannot be negative")

    @classmethod
    def no_preference(cls) -> "ShulProximityPreference":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'preferred_shul_ids': [str(shul_id) for shul_id in self.preferred_shul_ids],
            'max_walking_distance_miles': self.max_walking_distance_miles,
            'max_walking_time_minutes': self.max_walking_time_minutes,
            'any_shul_acceptable': self.any_shul_acceptable,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ShulProximityPreference"]:
        if not data:
            return None
        return cls(
            preferred_shul_ids=tuple(data.get('preferred_shul_ids') or ()),
            max_walking_distance_miles=data.get('max_walking_distance_miles'),
            max_walking_time_minutes=data.get('max_walking_time_minutes'),
            any_shul_acceptable=data.get('any_shul_acceptable', True),
        )

    def __str__(self) -> str:
        if self.any_shul_acceptable and self.max_walking_distance_miles is None:
            return "No preference"

        parts = []
        if self.preferred_shul_ids:
            parts.append(f"{len(self.preferred_shul_ids)} preferred shul(s)")
        if self.max_walking_distance_miles is not None:
            parts.append(f"max {self.max_walking_distance_miles:.1f} mi")
        if self.max_walking_time_minutes is not None:
            parts.append(f"max {self.max_walking_time_minutes} min")
        return ", ".join(parts)


@dataclass(frozen=True)
class HousingPreferences:
    """
    A family's housing requirements.

    Immutable; construct a new instance to change preferences. Input is
    normalised on construction (Decimals for money and bathrooms, stripped
    feature tags, parsed move timeline) and invalid values raise
    ValidationException.
    """
    budget: Optional[Decimal] = None
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[Decimal] = None
    required_features: Tuple[str, ...] = field(default_factory=tuple)
    move_timeline: Optional[MoveTimeline] = None
    shul_proximity: Optional[ShulProximityPreference] = None

    def __post_init__(self):
        errors = []

        budget = to_decimal(self.budget, "Budget")
        if budget is not None and budget <= 0:
            errors.append("Budget must be greater than zero")
        object.__setattr__(self, 'budget', budget)

        if self.min_bedrooms is not None:
            try:
                bedrooms = int(self.min_bedrooms)
            except (TypeError, ValueError):
                raise ValidationException(f"Minimum bedrooms must be a whole number, got {self.min_bedrooms!r}")
            if bedrooms < 0:
                errors.append("Minimum bedrooms cannot be negative")
            object.__setattr__(self, 'min_bedrooms', bedrooms)

        bathrooms = to_decimal(self.min_bathrooms, "Minimum bathrooms")
        if bathrooms is not None and bathrooms < 0:
            errors.append("Minimum bathrooms cannot be negative")
        object.__setattr__(self, 'min_bathrooms', bathrooms)

        features = tuple(
            f.strip() for f in (self.required_features or ())
            if f is not None and f.strip()
        )
        object.__setattr__(self, 'required_features', features)

        if self.move_timeline is not None:
            timeline = parse_enum(MoveTimeline, self.move_timeline)
            if timeline is None:
                errors.append(f"Invalid move timeline: {self.move_timeline}")
            object.__setattr__(self, 'move_timeline', timeline)

        if isinstance(self.shul_proximity, dict):
            object.__setattr__(self, 'shul_proximity', ShulProximityPreference.from_dict(self.shul_proximity))

        if errors:
            raise ValidationException.from_errors(errors)

    @property
    def has_preferences(self) -> bool:
        return (
            self.budget is not None
            or self.min_bedrooms is not None
            or self.min_bathrooms is not None
            or len(self.required_features) > 0
            or (self.shul_proximity is not None and not self.shul_proximity.any_shul_acceptable)
            or self.move_timeline is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible representation for the housing_search.preferences column."""
        return {
            'budget': str(self.budget) if self.budget is not None else None,
            'min_bedrooms': self.min_bedrooms,
            'min_bathrooms': str(self.min_bathrooms) if self.min_bathrooms is not None else None,
            'required_features': list(self.required_features),
            'move_timeline': self.move_timeline.value if self.move_timeline else None,
            'shul_proximity': self.shul_proximity.to_dict() if self.shul_proximity else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "HousingPreferences":
        if not data:
            return cls()
        return cls(
            budget=data.get('budget'),
            min_bedrooms=data.get('min_bedrooms'),
            min_bathrooms=data.get('min_bathrooms'),
            required_features=tuple(data.get('required_features') or ()),
            move_timeline=data.get('move_timeline'),
            shul_proximity=ShulProximityPreference.from_dict(data.get('shul_proximity')),
        )

    def __str__(self) -> str:
        parts = []
        if self.budget is not None:
            parts.append(f"Budget: ${self.budget:,.0f}")
        if self.min_bedrooms is not None:
            parts.append(f"{self.min_bedrooms}+ BR")
        if self.min_bathrooms is not None:
            parts.append(f"{self.min_bathrooms}+ BA")
        if self.required_features:
            parts.append(f"{len(self.required_features)} features")
        if self.move_timeline is not None:
            parts.append(f"Timeline: {self.move_timeline.value}")
        return ", ".join(parts) if parts else "No preferences"


@dataclass(frozen=True)
class FactorScore:
    """One row of a score explanation."""
    name: str
    score: int
    max_score: int
    notes: Optional[str]


class MatchScoreBreakdown(BaseModel):
    """Explainable breakdown of a property match score."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    budget_score: int
    max_budget_score: int = MAX_BUDGET_SCORE
    budget_notes: Optional[str] = None

    bedrooms_score: int
    max_bedrooms_score: int = MAX_BEDROOMS_SCORE
    bedrooms_notes: Optional[str] = None

    bathrooms_score: int
    max_bathrooms_score: int = MAX_BATHROOMS_SCORE
    bathrooms_notes: Optional[str] = None

    city_score: int
    max_city_score: int = MAX_CITY_SCORE
    city_notes: Optional[str] = None

    features_score: int
    max_features_score: int = MAX_FEATURES_SCORE
    features_notes: Optional[str] = None

    total_score: int
    max_total_score: int = MAX_TOTAL_SCORE

    def factors(self) -> List[FactorScore]:
        return [
            FactorScore('budget', self.budget_score, self.max_budget_score, self.budget_notes),
            FactorScore('bedrooms', self.bedrooms_score, self.max_bedrooms_score, self.bedrooms_notes),
            FactorScore('bathrooms', self.bathrooms_score, self.max_bathrooms_score, self.bathrooms_notes),
            FactorScore('city', self.city_score, self.max_city_score, self.city_notes),
            FactorScore('features', self.features_score, self.max_features_score, self.features_notes),
        ]
