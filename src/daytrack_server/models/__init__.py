"""Database models."""

from daytrack_server.models.activity import (
    MINUTES_PER_DAY,
    SUGGESTED_CATEGORIES,
    Activity,
)
from daytrack_server.models.api_key import APIKey
from daytrack_server.models.base import Base

__all__ = [
    "Base",
    "Activity",
    "APIKey",
    "MINUTES_PER_DAY",
    "SUGGESTED_CATEGORIES",
]
