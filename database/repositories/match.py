import logging
from typing import Any, List, Optional, Set

from sqlalchemy import select

from database.models import PropertyMatch
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository):
    def get_by_id(self, match_id: Any) -> Optional[PropertyMatch]:
        stmt = select(PropertyMatch).where(PropertyMatch.id == match_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_existing_match(self, housing_search_id: Any, property_id: Any) -> Optional[PropertyMatch]:
        stmt = select(PropertyMatch).where(
            PropertyMatch.housing_search_id == housing_search_id,
            PropertyMatch.property_id == property_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def exists(self, housing_search_id: Any, property_id: Any) -> bool:
        return self.get_existing_match(housing_search_id, property_id) is not None

    def get_matches_for_search(self, housing_search_id: Any) -> List[PropertyMatch]:
        stmt = (
            select(PropertyMatch)
            .where(PropertyMatch.housing_search_id == housing_search_id)
            .order_by(PropertyMatch.match_score.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_matches_for_property(self, property_id: Any) -> List[PropertyMatch]:
        stmt = (
            select(PropertyMatch)
            .where(PropertyMatch.property_id == property_id)
            .order_by(PropertyMatch.match_score.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def matched_property_ids(self, housing_search_id: Any) -> Set[Any]:
        stmt = select(PropertyMatch.property_id).where(
            PropertyMatch.housing_search_id == housing_search_id
        )
        return set(self.db.execute(stmt).scalars().all())

    def matched_search_ids(self, property_id: Any) -> Set[Any]:
        stmt = select(PropertyMatch.housing_search_id).where(
            PropertyMatch.property_id == property_id
        )
        return set(self.db.execute(stmt).scalars().all())

    def remove(self, match: PropertyMatch) -> None:
        self.db.delete(match)
