#!/usr/bin/env python3
"""
Applicant endpoints - intake, board review, agreements.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_applicant_service, get_current_user_id, get_housing_search_service
from ..models.requests import (
    AgreementRequest,
    ApplicantRequest,
    BoardDecisionRequest,
    PreferencesRequest,
    RejectRequest,
)
from ..models.responses import (
    ApplicantResponse,
    ApplicantsResponse,
    BoardDecisionResponse,
    DeleteResponse,
    HousingSearchResponse,
    HousingSearchesResponse,
    HousingSearchView,
    ApplicantView,
)
from ..services import ApplicantService, HousingSearchService
from ..utils import validate_uuid
from core.exceptions import ValidationException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applicants", tags=["applicants"])


@router.post("", response_model=ApplicantResponse, status_code=201)
def create_applicant(
    request: ApplicantRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    """Create an applicant in Submitted status."""
    applicant = service.create_applicant(request.to_service_data(), user_id)
    return ApplicantResponse(success=True, applicant=ApplicantView.from_entity(applicant))


@router.get("", response_model=ApplicantsResponse)
def list_applicants(
    status: Optional[str] = Query(default=None, description="Submitted, Approved or Rejected"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    service: ApplicantService = Depends(get_applicant_service)
):
    applicants = service.list_applicants(status=status, limit=limit, offset=offset)
    return ApplicantsResponse(
        success=True,
        count=len(applicants),
        applicants=[ApplicantView.from_entity(a) for a in applicants]
    )


@router.get("/{applicant_id}", response_model=ApplicantResponse)
def get_applicant(
    applicant_id: str,
    service: ApplicantService = Depends(get_applicant_service)
):
    """Get an applicant with their housing searches."""
    applicant = service.get_applicant(validate_uuid(applicant_id, "applicant_id"))
    return ApplicantResponse(success=True, applicant=ApplicantView.from_entity(applicant))


@router.put("/{applicant_id}", response_model=ApplicantResponse)
def update_applicant(
    applicant_id: str,
    request: ApplicantRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    applicant = service.update_applicant(
        validate_uuid(applicant_id, "applicant_id"), request.to_service_data(), user_id
    )
    return ApplicantResponse(success=True, applicant=ApplicantView.from_entity(applicant))


@router.delete("/{applicant_id}", response_model=DeleteResponse)
def delete_applicant(
    applicant_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    parsed = validate_uuid(applicant_id, "applicant_id")
    service.delete_applicant(parsed, user_id)
    return DeleteResponse(success=True, id=parsed)


@router.post("/{applicant_id}/board-decision", response_model=BoardDecisionResponse)
def set_board_decision(
    applicant_id: str,
    request: BoardDecisionRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    """
    Record the board decision.

    An Approved decision also opens the applicant's first housing search,
    returned as housing_search.
    """
    result = service.set_board_decision(
        validate_uuid(applicant_id, "applicant_id"),
        request.decision,
        request.notes,
        user_id,
        review_date=request.review_date
    )
    search = HousingSearchView.from_entity(result.housing_search) if result.housing_search else None
    return BoardDecisionResponse(
        success=True,
        applicant=ApplicantView.from_entity(result.applicant),
        housing_search=search
    )


@router.post("/{applicant_id}/reject", response_model=ApplicantResponse)
def reject_applicant(
    applicant_id: str,
    request: RejectRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    applicant = service.reject_applicant(validate_uuid(applicant_id, "applicant_id"), request.reason, user_id)
    return ApplicantResponse(success=True, applicant=ApplicantView.from_entity(applicant))


@router.post("/{applicant_id}/agreements", response_model=HousingSearchResponse)
def record_agreement(
    applicant_id: str,
    request: AgreementRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: ApplicantService = Depends(get_applicant_service)
):
    """Record a signed agreement on the applicant's active housing search."""
    search = service.record_agreement(
        validate_uuid(applicant_id, "applicant_id"),
        request.agreement_type,
        request.document_url,
        user_id
    )
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.get("/{applicant_id}/housing-searches", response_model=HousingSearchesResponse)
def list_housing_searches(
    applicant_id: str,
    service: HousingSearchService = Depends(get_housing_search_service)
):
    searches = service.list_for_applicant(validate_uuid(applicant_id, "applicant_id"))
    return HousingSearchesResponse(
        success=True,
        count=len(searches),
        housing_searches=[HousingSearchView.from_entity(s) for s in searches]
    )


@router.post("/{applicant_id}/housing-searches", response_model=HousingSearchResponse, status_code=201)
def open_housing_search(
    applicant_id: str,
    request: Optional[PreferencesRequest] = None,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    """Open a new housing search once the previous one is deactivated."""
    preferences = request.to_service_data() if request is not None else None
    search = service.open_new_search(validate_uuid(applicant_id, "applicant_id"), user_id, preferences)
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.put("/{applicant_id}/preferences", response_model=HousingSearchResponse)
def update_preferences(
    applicant_id: str,
    request: PreferencesRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    applicants: ApplicantService = Depends(get_applicant_service),
    searches: HousingSearchService = Depends(get_housing_search_service)
):
    """Update the preferences of the applicant's active housing search."""
    applicant = applicants.get_applicant(validate_uuid(applicant_id, "applicant_id"))
    active = applicant.active_housing_search
    if active is None:
        raise ValidationException("Applicant has no active housing search.")
    search = searches.update_preferences(active.id, request.to_service_data(), user_id)
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))
