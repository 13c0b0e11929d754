"""API route handlers."""

from .applicants import router as applicants_router
from .housing_searches import router as housing_searches_router
from .properties import router as properties_router
from .matches import router as matches_router
