import logging
from typing import Any, List, Optional

from sqlalchemy import select, func

from core.enums import HousingSearchStage
from core.utils import format_search_number
from database.models import HousingSearch
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class HousingSearchRepository(BaseRepository):
    def get_by_id(self, housing_search_id: Any) -> Optional[HousingSearch]:
        stmt = select(HousingSearch).where(HousingSearch.id == housing_search_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_active_for_applicant(self, applicant_id: Any) -> Optional[HousingSearch]:
        stmt = select(HousingSearch).where(
            HousingSearch.applicant_id == applicant_id,
            HousingSearch.is_active.is_(True)
        )
        return self.db.execute(stmt).scalars().first()

    def get_for_applicant(self, applicant_id: Any) -> List[HousingSearch]:
        stmt = (
            select(HousingSearch)
            .where(HousingSearch.applicant_id == applicant_id)
            .order_by(HousingSearch.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_active_in_stage(self, stage: HousingSearchStage) -> List[HousingSearch]:
        stmt = select(HousingSearch).where(
            HousingSearch.stage == stage,
            HousingSearch.is_active.is_(True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def next_search_number(self, year: int) -> str:
        """Next HS-<year>-<seq> number; sequence restarts every year."""
        prefix = f"HS-{year}-"
        stmt = select(func.count()).select_from(HousingSearch).where(
            HousingSearch.search_number.like(f"{prefix}%")
        )
        count = self.db.execute(stmt).scalar_one()
        return format_search_number(year, count + 1)
