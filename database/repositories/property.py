import logging
from typing import Any, List, Optional

from sqlalchemy import select, func

from core.enums import ListingStatus
from database.models import Property
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class PropertyRepository(BaseRepository):
    """Every read excludes soft-deleted properties unless asked otherwise."""

    def get_by_id(self, property_id: Any, include_deleted: bool = False) -> Optional[Property]:
        stmt = select(Property).where(Property.id == property_id)
        if not include_deleted:
            stmt = stmt.where(Property.is_deleted.is_(False))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_active_listings(self) -> List[Property]:
        """Listings eligible for matching: Active and not deleted."""
        stmt = select(Property).where(
            Property.status == ListingStatus.ACTIVE,
            Property.is_deleted.is_(False)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_properties(
        self,
        status: Optional[ListingStatus] = None,
        city: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Property]:
        stmt = select(Property).where(Property.is_deleted.is_(False))
        if status is not None:
            stmt = stmt.where(Property.status == status)
        if city:
            stmt = stmt.where(func.lower(Property.city) == city.strip().lower())
        stmt = stmt.order_by(Property.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())
