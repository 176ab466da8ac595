"""Pydantic schemas for derived, read-only activity aggregates."""

import datetime as dt

from pydantic import BaseModel, Field


class DaySummary(BaseModel):
    """Minutes logged on one day, optionally split by category."""

    date: dt.date = Field(description="Calendar day")
    category: str | None = Field(default=None, description="Category (when grouped by category)")
    total_minutes: int = Field(description="Sum of minutes logged")
    activity_count: int = Field(description="Number of activities summed")


class DayProgress(BaseModel):
    """How much of a day has been tracked so far."""

    date: dt.date = Field(description="Calendar day")
    total_minutes: int = Field(description="Minutes logged on the day")
    remaining_minutes: int = Field(description="Minutes still available before the daily cap")
    percent_of_day: float = Field(description="Share of 24 hours tracked, one decimal")
    tracked: str = Field(description="Tracked time formatted as 'Xh Ym'")
    remaining: str = Field(description="Remaining time formatted as 'Xh Ym'")


class CategoryShare(BaseModel):
    """Minutes spent in one category across the summarized days."""

    category: str
    minutes: int
    percent: float = Field(description="Share of all summarized minutes, one decimal")


class TrendPoint(BaseModel):
    """Minutes logged on one day of the trend window."""

    date: dt.date
    minutes: int


class ActivityAnalytics(BaseModel):
    """Category breakdown plus daily trend for an owner."""

    total_minutes: int = Field(description="Minutes across all summarized days")
    days_tracked: int = Field(description="Distinct days with at least one activity")
    categories: list[CategoryShare] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)
