import logging
from typing import Any, List, Optional

from sqlalchemy import select, func

from core.enums import ApplicationStatus
from database.models import Applicant
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ApplicantRepository(BaseRepository):
    def get_by_id(self, applicant_id: Any) -> Optional[Applicant]:
        stmt = select(Applicant).where(
            Applicant.id == applicant_id,
            Applicant.is_deleted.is_(False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str, exclude_id: Any = None) -> Optional[Applicant]:
        """Case-insensitive lookup among non-deleted applicants."""
        stmt = select(Applicant).where(
            func.lower(Applicant.husband_email) == email.strip().lower(),
            Applicant.is_deleted.is_(False)
        )
        if exclude_id is not None:
            stmt = stmt.where(Applicant.id != exclude_id)
        return self.db.execute(stmt).scalars().first()

    def list_applicants(
        self,
        status: Optional[ApplicationStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Applicant]:
        stmt = select(Applicant).where(Applicant.is_deleted.is_(False))
        if status is not None:
            stmt = stmt.where(Applicant.status == status)
        stmt = stmt.order_by(Applicant.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())
