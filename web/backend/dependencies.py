#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.

Routers never open sessions themselves: they get an application service
built from the shared AppContext, and each service call runs its own unit
of work. Tests replace get_app_context via app.dependency_overrides.
"""

import uuid
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from core.app_context import AppContext
from .config import get_config
from .services import ApplicantService, HousingSearchService, MatchService, PropertyService


@lru_cache()
def _default_context() -> AppContext:
    return AppContext.build(get_config())


def get_app_context() -> AppContext:
    """
    FastAPI dependency that returns the wired application context.

    Usage:
        @app.get("/endpoint")
        def my_endpoint(ctx: AppContext = Depends(get_app_context)):
            ...
    """
    return _default_context()


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[uuid.UUID]:
    """
    Acting user from the X-User-Id header.

    Missing header yields None; the service decides whether the operation
    needs a user.
    """
    if x_user_id is None or not x_user_id.strip():
        return None
    try:
        return uuid.UUID(x_user_id.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid X-User-Id header: {x_user_id}. Must be a valid UUID.")


def get_applicant_service(ctx: AppContext = Depends(get_app_context)) -> ApplicantService:
    return ApplicantService(ctx.session_factory, ctx.dispatcher)


def get_housing_search_service(ctx: AppContext = Depends(get_app_context)) -> HousingSearchService:
    return HousingSearchService(ctx.session_factory, ctx.dispatcher)


def get_property_service(ctx: AppContext = Depends(get_app_context)) -> PropertyService:
    return PropertyService(ctx.session_factory, ctx.dispatcher)


def get_match_service(ctx: AppContext = Depends(get_app_context)) -> MatchService:
    return MatchService(ctx.session_factory, ctx.dispatcher, scorer=ctx.scorer)
