#!/usr/bin/env python3
"""
Housing search endpoints - stage changes, preferences, agreements.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user_id, get_housing_search_service, get_match_service
from ..models.requests import AgreementRequest, NotesRequest, PreferencesRequest, StageChangeRequest
from ..models.responses import (
    HousingSearchResponse,
    HousingSearchView,
    MatchesResponse,
    MatchView,
    StageChangeResponse,
)
from ..services import HousingSearchService, MatchService
from ..utils import validate_uuid
from core.stages.machine import ContractDetails, StageTransitionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/housing-searches", tags=["housing-searches"])


@router.get("/{housing_search_id}", response_model=HousingSearchResponse)
def get_housing_search(
    housing_search_id: str,
    service: HousingSearchService = Depends(get_housing_search_service)
):
    search = service.get_housing_search(validate_uuid(housing_search_id, "housing_search_id"))
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.put("/{housing_search_id}/stage", response_model=StageChangeResponse)
def change_stage(
    housing_search_id: str,
    request: StageChangeRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    """
    Move a housing search to another stage.

    UnderContract needs a contract, Closed a closing_date and MovedIn a
    moved_in_date. Illegal moves return 400 and change nothing.
    """
    search_id = validate_uuid(housing_search_id, "housing_search_id")
    contract = None
    if request.contract is not None:
        contract = ContractDetails(
            price=request.contract.price,
            property_id=request.contract.property_id,
            expected_closing_date=request.contract.expected_closing_date
        )

    plan = service.change_stage(
        search_id,
        StageTransitionRequest(
            new_stage=request.new_stage,
            reason=request.reason,
            contract=contract,
            closing_date=request.closing_date,
            moved_in_date=request.moved_in_date
        ),
        user_id
    )
    search = service.get_housing_search(search_id)
    return StageChangeResponse(
        success=True,
        from_stage=plan.from_stage,
        to_stage=plan.to_stage,
        housing_search=HousingSearchView.from_entity(search)
    )


@router.put("/{housing_search_id}/preferences", response_model=HousingSearchResponse)
def update_preferences(
    housing_search_id: str,
    request: PreferencesRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    """Replace preferences; re-matching runs once the change is committed."""
    search = service.update_preferences(
        validate_uuid(housing_search_id, "housing_search_id"), request.to_service_data(), user_id
    )
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.post("/{housing_search_id}/agreements", response_model=HousingSearchResponse)
def record_agreement(
    housing_search_id: str,
    request: AgreementRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    search = service.record_agreement(
        validate_uuid(housing_search_id, "housing_search_id"),
        request.agreement_type,
        request.document_url,
        user_id
    )
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.put("/{housing_search_id}/notes", response_model=HousingSearchResponse)
def update_notes(
    housing_search_id: str,
    request: NotesRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    search = service.update_notes(validate_uuid(housing_search_id, "housing_search_id"), request.notes, user_id)
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.post("/{housing_search_id}/deactivate", response_model=HousingSearchResponse)
def deactivate(
    housing_search_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: HousingSearchService = Depends(get_housing_search_service)
):
    search = service.deactivate(validate_uuid(housing_search_id, "housing_search_id"), user_id)
    return HousingSearchResponse(success=True, housing_search=HousingSearchView.from_entity(search))


@router.get("/{housing_search_id}/matches", response_model=MatchesResponse)
def list_matches(
    housing_search_id: str,
    service: MatchService = Depends(get_match_service)
):
    """Matches for a search, highest score first."""
    matches = service.list_for_search(validate_uuid(housing_search_id, "housing_search_id"))
    return MatchesResponse(success=True, count=len(matches), matches=[MatchView.from_entity(m) for m in matches])
