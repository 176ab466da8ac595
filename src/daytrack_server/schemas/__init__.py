"""Pydantic schemas for validation and API responses."""

from daytrack_server.schemas.activity import ActivityCreate, ActivityUpdate, validate_payload
from daytrack_server.schemas.analytics import (
    ActivityAnalytics,
    CategoryShare,
    DayProgress,
    DaySummary,
    TrendPoint,
)

__all__ = [
    "ActivityAnalytics",
    "ActivityCreate",
    "ActivityUpdate",
    "CategoryShare",
    "DayProgress",
    "DaySummary",
    "TrendPoint",
    "validate_payload",
]
