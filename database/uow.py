import contextlib
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import ConcurrencyException, ConflictException
from database.database import SessionLocal, get_engine
from database.repository import RelocationRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def relocation_uow(session_factory=None):
    """Per-unit-of-work transaction scope.

    Yields a RelocationRepository bound to a fresh Session. Commits on
    success, rolls back on exception, always closes. A stale versioned row
    surfaces as ConcurrencyException and a unique-key violation as
    ConflictException.

    Usage:
        with relocation_uow() as repo:
            search = repo.housing_searches.get_by_id(search_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    if session_factory is None:
        get_engine()
        session_factory = SessionLocal
    session = session_factory()
    try:
        repo = RelocationRepository(session)
        yield repo
        session.commit()
    except StaleDataError as e:
        session.rollback()
        logger.warning(f"Concurrent modification detected: {e}")
        raise ConcurrencyException(
            "The record was modified by another user. Reload and try again."
        ) from e
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error on commit: {e.orig}")
        raise ConflictException("The change conflicts with existing data.") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
