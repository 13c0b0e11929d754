#!/usr/bin/env python3
"""
Response models for API endpoints.

Entity views are built with model_validate(entity) (from_attributes), so
field names follow the ORM attribute names.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.enums import (
    ApplicationStatus,
    BoardDecision,
    HousingSearchStage,
    ListingStatus,
    PropertyMatchStatus,
)
from core.scorer.models import MatchScoreBreakdown
from core.scorer.service import deserialize_match_details
from core.stages.machine import allowed_targets


class HousingSearchView(BaseModel):
    """A housing search and its current contract."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    applicant_id: uuid.UUID
    search_number: str
    stage: HousingSearchStage
    stage_changed_at: datetime
    allowed_stages: List[HousingSearchStage] = Field(default_factory=list)
    preferences: Optional[Dict[str, Any]] = None

    contract_property_id: Optional[uuid.UUID] = None
    contract_price: Optional[float] = None
    contract_date: Optional[datetime] = None
    expected_closing_date: Optional[datetime] = None
    actual_closing_date: Optional[datetime] = None
    moved_in_date: Optional[datetime] = None

    failed_contract_count: int = 0
    failed_contracts: List[Dict[str, Any]] = Field(default_factory=list)

    broker_agreement_signed: bool = False
    community_rules_signed: bool = False
    broker_agreement_url: Optional[str] = None
    community_rules_url: Optional[str] = None

    notes: Optional[str] = None
    is_active: bool
    version: Optional[int] = None

    @classmethod
    def from_entity(cls, search) -> "HousingSearchView":
        view = cls.model_validate(search)
        return view.model_copy(update={
            'allowed_stages': allowed_targets(search.stage)
        })


class ApplicantView(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "family_name": "Cohen",
                "husband_first_name": "Moshe",
                "husband_last_name": "Cohen",
                "husband_email": "moshe.cohen@example.com",
                "status": "Submitted",
                "board_decision": "Pending"
            }
        }
    )

    id: uuid.UUID
    family_name: str
    husband_first_name: str
    husband_last_name: str
    husband_email: str
    husband_phone: Optional[str] = None
    wife_first_name: Optional[str] = None
    wife_maiden_name: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    children: List[Dict[str, Any]] = Field(default_factory=list)
    current_community: Optional[str] = None
    notes: Optional[str] = None

    status: ApplicationStatus
    board_decision: BoardDecision
    board_decision_notes: Optional[str] = None
    board_review_date: Optional[datetime] = None

    housing_searches: List[HousingSearchView] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, applicant) -> "ApplicantView":
        view = cls.model_validate(applicant)
        return view.model_copy(update={
            'housing_searches': [HousingSearchView.from_entity(s) for s in applicant.housing_searches]
        })


class PhotoView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    url: str
    description: Optional[str] = None
    display_order: int
    is_primary: bool


class PropertyView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    street: str
    city: str
    state: str
    zip_code: Optional[str] = None
    price: float
    bedrooms: int
    bathrooms: float
    square_feet: Optional[int] = None
    lot_size: Optional[float] = None
    year_built: Optional[int] = None
    annual_taxes: Optional[float] = None
    features: List[str] = Field(default_factory=list)
    mls_number: Optional[str] = None
    notes: Optional[str] = None
    status: ListingStatus
    photos: List[PhotoView] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class MatchView(BaseModel):
    """A property match with its score explanation."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    housing_search_id: uuid.UUID
    property_id: uuid.UUID
    match_score: int = Field(ge=0, le=100)
    status: PropertyMatchStatus
    is_auto_matched: bool
    offer_amount: Optional[float] = None
    notes: Optional[str] = None
    property_address: Optional[str] = None
    family_name: Optional[str] = None
    breakdown: Optional[MatchScoreBreakdown] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, match) -> "MatchView":
        view = cls.model_validate(match)
        search = match.housing_search
        applicant = search.applicant if search is not None else None
        return view.model_copy(update={
            'property_address': match.property.address_line if match.property is not None else None,
            'family_name': applicant.family_name if applicant is not None else None,
            'breakdown': deserialize_match_details(match.match_details),
        })


class ApplicantResponse(BaseModel):
    success: bool
    applicant: ApplicantView


class ApplicantsResponse(BaseModel):
    success: bool
    count: int
    applicants: List[ApplicantView]


class BoardDecisionResponse(BaseModel):
    success: bool
    applicant: ApplicantView
    housing_search: Optional[HousingSearchView] = None


class HousingSearchResponse(BaseModel):
    success: bool
    housing_search: HousingSearchView


class HousingSearchesResponse(BaseModel):
    success: bool
    count: int
    housing_searches: List[HousingSearchView]


class StageChangeResponse(BaseModel):
    success: bool
    from_stage: HousingSearchStage
    to_stage: HousingSearchStage
    housing_search: HousingSearchView


class PropertyResponse(BaseModel):
    success: bool
    property: PropertyView


class PropertiesResponse(BaseModel):
    success: bool
    count: int
    properties: List[PropertyView]


class PhotoResponse(BaseModel):
    success: bool
    photo: PhotoView


class MonthlyPaymentResponse(BaseModel):
    success: bool
    property_id: uuid.UUID
    monthly_payment: float


class MatchResponse(BaseModel):
    success: bool
    match: MatchView


class MatchesResponse(BaseModel):
    success: bool
    count: int
    matches: List[MatchView]


class DeleteResponse(BaseModel):
    success: bool
    id: uuid.UUID
