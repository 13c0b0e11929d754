#!/usr/bin/env python3
"""
Test suite configuration and utilities.

DB-backed tests run against an in-memory SQLite database built from the
ORM metadata, so no server is needed:

    # Run all tests
    python -m pytest tests/ -v

    # Skip DB-backed tests
    python -m pytest tests/ -v -m "not db"

Helpers here create the schema and the common entities (an approved
applicant with a search in Searching, an Active listing) in one call.
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.enums import HousingSearchStage
from core.scorer.models import HousingPreferences
from database.models import Applicant, Base, HousingSearch, Property
from database.uow import relocation_uow

STAFF_USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")

PERFECT_PREFERENCES = dict(
    budget=Decimal("500000"),
    min_bedrooms=4,
    min_bathrooms=Decimal("2"),
    required_features=("garage", "basement"),
)


def create_test_session_factory():
    """
    Fresh in-memory SQLite database with all tables.

    StaticPool keeps a single connection so every session (and the
    TestClient's worker threads) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def build_property(**overrides: Any) -> Property:
    data: Dict[str, Any] = dict(
        street="123 Main St",
        city="Union",
        price=Decimal("450000"),
        bedrooms=4,
        bathrooms=Decimal("2.5"),
        features=["Garage", "Finished Basement", "Central Air"],
        created_by=STAFF_USER_ID,
    )
    data.update(overrides)
    return Property.create(**data)


def add_property(session_factory, **overrides: Any) -> Property:
    """Persist a listing without publishing its PropertyCreated event."""
    with relocation_uow(session_factory) as repo:
        prop = build_property(**overrides)
        prop.pull_domain_events()
        repo.add(prop)
    return prop


def add_search(
    session_factory,
    stage: HousingSearchStage = HousingSearchStage.SEARCHING,
    preferences: Optional[Dict[str, Any]] = None,
    last_name: str = "Cohen",
    email: Optional[str] = None,
) -> Tuple[Applicant, HousingSearch]:
    """
    Persist an approved applicant with one active search in `stage`.

    The stage is set directly; use change_stage() in tests that exercise
    transitions.
    """
    with relocation_uow(session_factory) as repo:
        applicant = Applicant.create(
            husband_first_name="Moshe",
            husband_last_name=last_name,
            husband_email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            created_by=STAFF_USER_ID,
        )
        applicant.pull_domain_events()
        repo.add(applicant)

        number = repo.housing_searches.next_search_number(2026)
        search = HousingSearch.start(applicant.id, number, STAFF_USER_ID)
        search.pull_domain_events()
        search.stage = stage
        if preferences is not None:
            search.preferences = HousingPreferences(**preferences).to_dict()
        repo.add(search)
        repo.flush()
    return applicant, search
