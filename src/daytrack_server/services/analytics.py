"""Read-only shaping of activity summaries for display.

Nothing here enforces the daily cap. These numbers are derived from rows
already persisted and are never written back.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from daytrack_server.models.activity import MINUTES_PER_DAY
from daytrack_server.schemas.analytics import (
    ActivityAnalytics,
    CategoryShare,
    DayProgress,
    DaySummary,
    TrendPoint,
)

# Days shown in the daily trend
TREND_DAYS = 14


def format_duration(minutes: int) -> str:
    """Format minutes as 'Xh Ym'.

    Example:
        >>> format_duration(95)
        '1h 35m'
    """
    hours, mins = divmod(max(0, minutes), 60)
    return f"{hours}h {mins}m"


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def day_progress(day: date, total_minutes: int) -> DayProgress:
    """How much of a day is tracked and how much remains.

    Args:
        day: Calendar day
        total_minutes: Minutes logged on that day

    Returns:
        DayProgress with percentage of 24h used and remaining time
    """
    remaining = max(0, MINUTES_PER_DAY - total_minutes)
    return DayProgress(
        date=day,
        total_minutes=total_minutes,
        remaining_minutes=remaining,
        percent_of_day=_percent(total_minutes, MINUTES_PER_DAY),
        tracked=format_duration(total_minutes),
        remaining=format_duration(remaining),
    )


def category_breakdown(summaries: Iterable[DaySummary]) -> list[CategoryShare]:
    """Sum minutes per category across day x category summaries.

    Summaries without a category are counted under "Other".

    Returns:
        Category shares, largest first (ties by name)
    """
    totals: dict[str, int] = defaultdict(int)
    for summary in summaries:
        totals[summary.category or "Other"] += summary.total_minutes

    grand_total = sum(totals.values())
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))

    return [
        CategoryShare(category=category, minutes=minutes, percent=_percent(minutes, grand_total))
        for category, minutes in ordered
    ]


def daily_trend(summaries: Iterable[DaySummary], days: int = TREND_DAYS) -> list[TrendPoint]:
    """Per-day minute sums for the most recent days, oldest first.

    Args:
        summaries: Day or day x category summaries
        days: Number of most recent days to keep

    Returns:
        Up to `days` trend points in ascending date order
    """
    totals: dict[date, int] = defaultdict(int)
    for summary in summaries:
        totals[summary.date] += summary.total_minutes

    recent = sorted(totals)[-days:] if days > 0 else []
    return [TrendPoint(date=day, minutes=totals[day]) for day in recent]


def build_analytics(summaries: list[DaySummary], days: int = TREND_DAYS) -> ActivityAnalytics:
    """Combine category breakdown and daily trend for one owner."""
    return ActivityAnalytics(
        total_minutes=sum(s.total_minutes for s in summaries),
        days_tracked=len({s.date for s in summaries}),
        categories=category_breakdown(summaries),
        trend=daily_trend(summaries, days=days),
    )
