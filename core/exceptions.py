#!/usr/bin/env python3
"""
Service layer exceptions.

Guard violations in the stage machine, the scorer inputs and the application
services raise one of these before any state is mutated. The web layer maps
them to HTTP status codes in web/backend/exceptions.py.
"""

from typing import Any, Iterable, List, Optional


class ServiceException(Exception):
    """Base exception for service layer errors."""
    pass


class ValidationException(ServiceException):
    """Raised when a caller supplies invalid input or breaks a domain guard."""

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        self.errors: List[str] = list(errors) if errors else []
        super().__init__(message)

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> "ValidationException":
        errors = list(errors)
        return cls("; ".join(errors), errors)


class StageTransitionException(ValidationException):
    """Raised when a housing search cannot move between two stages."""

    def __init__(self, message: str, from_stage: Any = None, to_stage: Any = None):
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(message)


class AuthenticationRequiredException(ValidationException):
    """Raised when a mutating operation is attempted without an acting user."""
    pass


class ConflictException(ValidationException):
    """Raised when an operation would violate a uniqueness rule."""
    pass


class DuplicateEmailException(ConflictException):
    """Raised when another applicant already uses the e-mail address."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An applicant with email '{email}' already exists.")


class DuplicateMatchException(ConflictException):
    """Raised when a match already exists for a housing search and property."""

    def __init__(self, housing_search_id: Any, property_id: Any):
        self.housing_search_id = housing_search_id
        self.property_id = property_id
        super().__init__("A match already exists between this housing search and property.")


class ConcurrencyException(ConflictException):
    """Raised when a row was modified by someone else since it was read."""
    pass


class NotFoundException(ServiceException):
    """Raised when a referenced entity does not exist (or is soft-deleted)."""

    def __init__(self, entity_name: str, entity_id: Any):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(f"{entity_name} with ID '{entity_id}' was not found.")


def require_user(user_id: Any, action: str) -> Any:
    """Return user_id, or raise if the caller is anonymous."""
    if user_id is None:
        raise AuthenticationRequiredException(f"User must be authenticated to {action}.")
    return user_id
