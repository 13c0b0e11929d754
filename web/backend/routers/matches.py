#!/usr/bin/env python3
"""
Match endpoints - manual matches and match progress.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user_id, get_match_service
from ..models.requests import MatchCreateRequest, MatchStatusRequest, NotesRequest
from ..models.responses import DeleteResponse, MatchResponse, MatchView
from ..services import MatchService
from ..utils import validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.post("", response_model=MatchResponse, status_code=201)
def create_match(
    request: MatchCreateRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """
    Manually match a housing search with a property.

    The score is computed the same way as for automatic matches. Returns
    409 when the pair is already matched.
    """
    match = service.create_match(request.housing_search_id, request.property_id, user_id, notes=request.notes)
    return MatchResponse(success=True, match=MatchView.from_entity(match))


@router.get("/{match_id}", response_model=MatchResponse)
def get_match_details(
    match_id: str,
    service: MatchService = Depends(get_match_service)
):
    """
    Get a match with its score breakdown.

    The breakdown lists points, maximum and rationale for each factor.
    """
    match = service.get_match(validate_uuid(match_id, "match_id"))
    return MatchResponse(success=True, match=MatchView.from_entity(match))


@router.put("/{match_id}/status", response_model=MatchResponse)
def update_match_status(
    match_id: str,
    request: MatchStatusRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """OfferMade requires offer_amount; ShowingRequested only from MatchIdentified."""
    match = service.update_status(
        validate_uuid(match_id, "match_id"),
        request.status,
        user_id,
        notes=request.notes,
        offer_amount=request.offer_amount
    )
    return MatchResponse(success=True, match=MatchView.from_entity(match))


@router.put("/{match_id}/notes", response_model=MatchResponse)
def update_match_notes(
    match_id: str,
    request: NotesRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    match = service.update_notes(validate_uuid(match_id, "match_id"), request.notes, user_id)
    return MatchResponse(success=True, match=MatchView.from_entity(match))


@router.delete("/{match_id}", response_model=DeleteResponse)
def delete_match(
    match_id: str,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    parsed = validate_uuid(match_id, "match_id")
    service.delete_match(parsed, user_id)
    return DeleteResponse(success=True, id=parsed)
