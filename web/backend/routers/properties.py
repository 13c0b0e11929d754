#!/usr/bin/env python3
"""
Property endpoints - listings and photos.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_current_user_id, get_match_service, get_property_service
from ..models.requests import PhotoRequest, PropertyRequest, PropertyStatusRequest
from ..models.responses import (
    DeleteResponse,
    MatchesResponse,
    MatchView,
    MonthlyPaymentResponse,
    PhotoResponse,
    PhotoView,
    PropertiesResponse,
    PropertyResponse,
    PropertyView,
)
from ..services import MatchService, PropertyService
from ..utils import validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.post("", response_model=PropertyResponse, status_code=201)
def create_property(
    request: PropertyRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    """
    Create a listing.

    New Active listings are auto-matched against every housing search in
    Searching once the listing is saved.
    """
    prop = service.create_property(request.model_dump(), user_id)
    return PropertyResponse(success=True, property=PropertyView.model_validate(prop))


@router.get("", response_model=PropertiesResponse)
def list_properties(
    status: Optional[str] = Query(default=None, description="Listing status filter"),
    city: Optional[str] = Query(default=None, description="City filter (case-insensitive)"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    service: PropertyService = Depends(get_property_service)
):
    props = service.list_properties(status=status, city=city, limit=limit, offset=offset)
    return PropertiesResponse(
        success=True,
        count=len(props),
        properties=[PropertyView.model_validate(p) for p in props]
    )


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service)
):
    prop = service.get_property(validate_uuid(property_id, "property_id"))
    return PropertyResponse(success=True, property=PropertyView.model_validate(prop))


@router.put("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: str,
    request: PropertyRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    prop = service.update_property(validate_uuid(property_id, "property_id"), request.model_dump(), user_id)
    return PropertyResponse(success=True, property=PropertyView.model_validate(prop))


@router.put("/{property_id}/status", response_model=PropertyResponse)
def update_status(
    property_id: str,
    request: PropertyStatusRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    prop = service.update_status(validate_uuid(property_id, "property_id"), request.status, user_id)
    return PropertyResponse(success=True, property=PropertyView.model_validate(prop))


@router.delete("/{property_id}", response_model=DeleteResponse)
def delete_property(
    property_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    parsed = validate_uuid(property_id, "property_id")
    service.delete_property(parsed, user_id)
    return DeleteResponse(success=True, id=parsed)


@router.post("/{property_id}/photos", response_model=PhotoResponse, status_code=201)
def add_photo(
    property_id: str,
    request: PhotoRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    photo = service.add_photo(
        validate_uuid(property_id, "property_id"),
        request.url,
        user_id,
        description=request.description,
        is_primary=request.is_primary
    )
    return PhotoResponse(success=True, photo=PhotoView.model_validate(photo))


@router.put("/{property_id}/photos/{photo_id}/primary", response_model=PropertyResponse)
def set_primary_photo(
    property_id: str,
    photo_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    prop = service.set_primary_photo(
        validate_uuid(property_id, "property_id"), validate_uuid(photo_id, "photo_id"), user_id
    )
    return PropertyResponse(success=True, property=PropertyView.model_validate(prop))


@router.delete("/{property_id}/photos/{photo_id}", response_model=DeleteResponse)
def remove_photo(
    property_id: str,
    photo_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: PropertyService = Depends(get_property_service)
):
    parsed = validate_uuid(photo_id, "photo_id")
    service.remove_photo(validate_uuid(property_id, "property_id"), parsed, user_id)
    return DeleteResponse(success=True, id=parsed)


@router.get("/{property_id}/monthly-payment", response_model=MonthlyPaymentResponse)
def estimate_monthly_payment(
    property_id: str,
    down_payment: Decimal = Query(..., ge=0),
    interest_rate: Decimal = Query(..., ge=0, description="Annual rate in percent, e.g. 6.5"),
    loan_term_years: int = Query(default=30, ge=1, le=50),
    service: PropertyService = Depends(get_property_service)
):
    parsed = validate_uuid(property_id, "property_id")
    payment = service.estimate_monthly_payment(parsed, down_payment, interest_rate, loan_term_years)
    return MonthlyPaymentResponse(success=True, property_id=parsed, monthly_payment=payment)


@router.get("/{property_id}/matches", response_model=MatchesResponse)
def list_matches(
    property_id: str,
    service: MatchService = Depends(get_match_service)
):
    matches = service.list_for_property(validate_uuid(property_id, "property_id"))
    return MatchesResponse(success=True, count=len(matches), matches=[MatchView.from_entity(m) for m in matches])
