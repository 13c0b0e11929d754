#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChildInfo(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    school: Optional[str] = None


class ApplicantRequest(BaseModel):
    """Create or replace an applicant's contact details."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "husband_first_name": "Moshe",
                "husband_last_name": "Cohen",
                "husband_email": "moshe.cohen@example.com",
                "husband_phone": "201-555-0100",
                "wife_first_name": "Sarah",
                "wife_maiden_name": "Levy",
                "address": {"street": "12 Main St", "city": "Brooklyn", "state": "NY", "zip": "11219"},
                "children": [{"name": "Yosef", "age": 7, "gender": "Male", "school": "Yeshiva"}],
                "current_community": "Flatbush"
            }
        }
    )

    husband_first_name: str
    husband_last_name: str
    husband_email: str
    husband_phone: Optional[str] = None
    wife_first_name: Optional[str] = None
    wife_maiden_name: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    children: List[ChildInfo] = Field(default_factory=list)
    current_community: Optional[str] = None

    def to_service_data(self) -> Dict[str, Any]:
        data = self.model_dump()
        data['children'] = [c.model_dump(exclude_none=True) for c in self.children]
        return data


class BoardDecisionRequest(BaseModel):
    decision: str = Field(..., description="Board decision: Pending, Approved, Rejected, Deferred")
    notes: Optional[str] = None
    review_date: Optional[datetime] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class AgreementRequest(BaseModel):
    """Record a signed agreement document."""
    agreement_type: str = Field(..., description="BrokerAgreement or CommunityRules")
    document_url: str = Field(..., min_length=1)


class ShulProximityRequest(BaseModel):
    preferred_shul_ids: List[uuid.UUID] = Field(default_factory=list)
    max_walking_distance_miles: Optional[float] = Field(None, ge=0)
    max_walking_time_minutes: Optional[int] = Field(None, ge=0)
    any_shul_acceptable: bool = True


class PreferencesRequest(BaseModel):
    """Replace a housing search's preferences. Omitted fields mean no preference."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "budget": 500000,
                "min_bedrooms": 4,
                "min_bathrooms": 2,
                "required_features": ["garage", "basement"],
                "move_timeline": "ShortTerm"
            }
        }
    )

    budget: Optional[Decimal] = None
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[Decimal] = None
    required_features: List[str] = Field(default_factory=list)
    move_timeline: Optional[str] = None
    shul_proximity: Optional[ShulProximityRequest] = None

    def to_service_data(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={'shul_proximity'})
        if self.shul_proximity is not None:
            data['shul_proximity'] = self.shul_proximity.model_dump()
        return data


class ContractRequest(BaseModel):
    price: Decimal
    property_id: Optional[uuid.UUID] = None
    expected_closing_date: Optional[datetime] = None


class StageChangeRequest(BaseModel):
    """Request to move a housing search to another stage."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "new_stage": "UnderContract",
                "contract": {"price": 485000, "expected_closing_date": "2026-12-01T00:00:00Z"}
            }
        }
    )

    new_stage: str = Field(..., description="Target stage (case-insensitive)")
    reason: Optional[str] = None
    contract: Optional[ContractRequest] = None
    closing_date: Optional[datetime] = None
    moved_in_date: Optional[datetime] = None


class NotesRequest(BaseModel):
    notes: Optional[str] = None


class PropertyRequest(BaseModel):
    """Create or replace a property listing."""
    street: str
    city: str
    price: Decimal
    bedrooms: int
    bathrooms: Decimal
    state: str = "NJ"
    zip_code: Optional[str] = None
    square_feet: Optional[int] = None
    lot_size: Optional[Decimal] = None
    year_built: Optional[int] = None
    annual_taxes: Optional[Decimal] = None
    features: List[str] = Field(default_factory=list)
    mls_number: Optional[str] = None
    notes: Optional[str] = None


class PropertyStatusRequest(BaseModel):
    status: str = Field(..., description="Active, UnderContract, Sold or OffMarket")


class PhotoRequest(BaseModel):
    url: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_primary: bool = False


class MatchCreateRequest(BaseModel):
    housing_search_id: uuid.UUID
    property_id: uuid.UUID
    notes: Optional[str] = None


class MatchStatusRequest(BaseModel):
    status: str = Field(..., description="Target match status")
    notes: Optional[str] = None
    offer_amount: Optional[Decimal] = None
