"""Logged activity model."""

from datetime import date
from typing import Any

from sqlalchemy import CheckConstraint, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from daytrack_server.models.base import Base, TimestampMixin, UserScopedMixin, generate_uuid

# Minutes in one calendar day - the hard cap per (owner, day)
MINUTES_PER_DAY = 1440

NAME_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 50

# Offered to clients as defaults; any category string within length is accepted
SUGGESTED_CATEGORIES = (
    "Work",
    "Exercise",
    "Learning",
    "Sleep",
    "Meals",
    "Commute",
    "Entertainment",
    "Social",
    "Chores",
    "Other",
)


class Activity(Base, UserScopedMixin, TimestampMixin):
    """A single activity logged by an owner against a calendar day.

    user_id and day are fixed at creation. Only name, category and minutes
    change afterwards, and minute changes are gated by the daily cap.
    """

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_day", "user_id", "activity_date"),
        CheckConstraint(
            f"minutes >= 1 AND minutes <= {MINUTES_PER_DAY}",
            name="ck_activities_minutes_range",
        ),
        {"comment": "Activities logged per owner and calendar day"},
    )

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    day: Mapped[date] = mapped_column("activity_date", Date, nullable=False)

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    category: Mapped[str] = mapped_column(String(CATEGORY_MAX_LENGTH), nullable=False)
    minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Activity(id={self.id}, user_id={self.user_id}, day={self.day}, "
            f"category={self.category}, minutes={self.minutes})>"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.day.isoformat(),
            "name": self.name,
            "category": self.category,
            "minutes": self.minutes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
