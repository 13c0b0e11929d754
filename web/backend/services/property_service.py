#!/usr/bin/env python3
"""
Property service - listing CRUD and photos.

Creating a listing publishes PropertyCreated, which auto-matches it against
every housing search in Searching.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.enums import ListingStatus
from core.exceptions import NotFoundException, require_user
from database.models import Property, PropertyPhoto

from .base import ApplicationService

logger = logging.getLogger(__name__)


def _load_photos(prop: Property) -> Property:
    # Detached entities cannot lazy-load
    list(prop.photos)
    return prop


class PropertyService(ApplicationService):
    """Service for managing property listings."""

    def create_property(self, data: Dict[str, Any], user_id: Optional[uuid.UUID]) -> Property:
        require_user(user_id, "create a property")

        with self._uow() as repo:
            prop = Property.create(created_by=user_id, **data)
            repo.add(prop)
            _load_photos(prop)
            events = self._collect(prop)

        logger.info(f"Created property {prop.id} at {prop.address_line}")
        self._publish(events)
        return prop

    def get_property(self, property_id: uuid.UUID) -> Property:
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            return _load_photos(prop)

    def list_properties(
        self,
        status: Optional[str] = None,
        city: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Property]:
        parsed = self._parse(ListingStatus, status, "listing status") if status else None
        with self._uow() as repo:
            props = repo.properties.list_properties(status=parsed, city=city, limit=limit, offset=offset)
            return [_load_photos(p) for p in props]

    def update_property(
        self,
        property_id: uuid.UUID,
        data: Dict[str, Any],
        user_id: Optional[uuid.UUID]
    ) -> Property:
        require_user(user_id, "update a property")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            prop.update(modified_by=user_id, **data)
            _load_photos(prop)
        return prop

    def update_status(
        self,
        property_id: uuid.UUID,
        status: Any,
        user_id: Optional[uuid.UUID]
    ) -> Property:
        require_user(user_id, "change a listing status")
        status = self._parse(ListingStatus, status, "listing status")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            prop.update_status(status, user_id)
            _load_photos(prop)
        logger.info(f"Property {property_id} status set to {status.value}")
        return prop

    def delete_property(self, property_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> None:
        require_user(user_id, "delete a property")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            prop.soft_delete(user_id)
        logger.info(f"Soft-deleted property {property_id}")

    def add_photo(
        self,
        property_id: uuid.UUID,
        url: str,
        user_id: Optional[uuid.UUID],
        description: Optional[str] = None,
        is_primary: bool = False
    ) -> PropertyPhoto:
        require_user(user_id, "add a photo")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            photo = prop.add_photo(url, user_id, description=description, is_primary=is_primary)
        return photo

    def set_primary_photo(
        self,
        property_id: uuid.UUID,
        photo_id: uuid.UUID,
        user_id: Optional[uuid.UUID]
    ) -> Property:
        require_user(user_id, "change the primary photo")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            prop.set_primary_photo(photo_id, user_id)
            _load_photos(prop)
        return prop

    def remove_photo(
        self,
        property_id: uuid.UUID,
        photo_id: uuid.UUID,
        user_id: Optional[uuid.UUID]
    ) -> None:
        require_user(user_id, "remove a photo")
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            if not prop.remove_photo(photo_id, user_id):
                raise NotFoundException("PropertyPhoto", photo_id)

    def estimate_monthly_payment(
        self,
        property_id: uuid.UUID,
        down_payment: Any,
        annual_interest_rate: Any,
        loan_term_years: int = 30
    ) -> Decimal:
        with self._uow() as repo:
            prop = self._require(repo.properties.get_by_id, "Property", property_id)
            return prop.estimate_monthly_payment(down_payment, annual_interest_rate, loan_term_years)
