#!/usr/bin/env python3
"""
Utility functions for the web application.
"""

import uuid

from fastapi import HTTPException


def validate_uuid(value: str, field_name: str = "id") -> uuid.UUID:
    """
    Parse a path parameter as a UUID.

    Raises:
        HTTPException: 400 when the value is not a valid UUID.
    """
    try:
        return uuid.UUID(value)
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {field_name} format: {value}. Must be a valid UUID."
        )
