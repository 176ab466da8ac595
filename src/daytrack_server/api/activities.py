"""Activity API endpoints.

All routes are scoped to the owner resolved from the request credentials.
"""

from typing import Annotated, Any

from litestar import Router, delete, get, post, put
from litestar.di import Provide
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.core.auth import provide_owner
from daytrack_server.models.activity import SUGGESTED_CATEGORIES
from daytrack_server.services.activity import ActivityService, coerce_day
from daytrack_server.services.analytics import TREND_DAYS, build_analytics, day_progress

# Row cap of the day x category stats view
STATS_ROW_LIMIT = 30


@get("/activities", status_code=HTTP_200_OK)
async def list_activities(
    owner: str,
    session: AsyncSession,
    target_date: Annotated[str | None, Parameter(query="date")] = None,
) -> list[dict[str, Any]]:
    """List activities.

    With ?date=YYYY-MM-DD returns that day's activities, newest first.
    Without it returns every activity, most recent day first.
    """
    service = ActivityService(session)

    if target_date is None:
        activities = await service.list_all(owner)
    else:
        activities = await service.list_for_day(owner, target_date)

    return [a.to_dict() for a in activities]


@get("/activities/summary", status_code=HTTP_200_OK)
async def get_summary(
    owner: str,
    session: AsyncSession,
    by_category: Annotated[bool, Parameter(query="by_category")] = False,
    limit: Annotated[int | None, Parameter(query="limit", ge=1, le=1000)] = None,
) -> list[dict[str, Any]]:
    """Total minutes and activity count per day, most recent day first.

    Pass by_category=true to split each day by category.
    """
    service = ActivityService(session)
    summaries = await service.summarize(owner, by_category=by_category, limit=limit)
    return [s.model_dump(mode="json") for s in summaries]


@get("/activities/stats", status_code=HTTP_200_OK)
async def get_stats(owner: str, session: AsyncSession) -> list[dict[str, Any]]:
    """Day x category totals for the most recent rows (30 at most)."""
    service = ActivityService(session)
    summaries = await service.summarize(owner, by_category=True, limit=STATS_ROW_LIMIT)
    return [s.model_dump(mode="json") for s in summaries]


@get("/activities/progress", status_code=HTTP_200_OK)
async def get_day_progress(
    owner: str,
    session: AsyncSession,
    target_date: Annotated[str, Parameter(query="date")],
) -> dict[str, Any]:
    """How much of one day is tracked and how much remains.

    Example response:
    ```json
    {
      "date": "2024-01-01",
      "total_minutes": 500,
      "remaining_minutes": 940,
      "percent_of_day": 34.7,
      "tracked": "8h 20m",
      "remaining": "15h 40m"
    }
    ```
    """
    day = coerce_day(target_date)
    service = ActivityService(session)
    total = await service.day_total(owner, day)
    return day_progress(day, total).model_dump(mode="json")


@get("/activities/analytics", status_code=HTTP_200_OK)
async def get_analytics(
    owner: str,
    session: AsyncSession,
    days: Annotated[int, Parameter(query="days", ge=1, le=365)] = TREND_DAYS,
) -> dict[str, Any]:
    """Category breakdown across all days plus the recent daily trend."""
    service = ActivityService(session)
    summaries = await service.summarize(owner, by_category=True)
    return build_analytics(summaries, days=days).model_dump(mode="json")


@get("/activities/categories", status_code=HTTP_200_OK)
async def list_categories(owner: str) -> list[str]:
    """Suggested categories. Any 1-50 character category is accepted."""
    return list(SUGGESTED_CATEGORIES)


@post("/activities", status_code=HTTP_201_CREATED)
async def create_activity(
    owner: str,
    session: AsyncSession,
    data: Any,
) -> dict[str, Any]:
    """Log an activity.

    Body: {"date": "YYYY-MM-DD", "name": str, "category": str, "minutes": int}
    ("day" is accepted in place of "date").

    Rejected with 400 when fields are invalid or when the day's total would
    exceed 1440 minutes; the latter response carries current_total and
    remaining.
    """
    service = ActivityService(session)
    activity = await service.create_from_payload(owner, data)
    return activity.to_dict()


@put("/activities/{activity_id:str}", status_code=HTTP_200_OK)
async def update_activity(
    owner: str,
    session: AsyncSession,
    activity_id: str,
    data: Any,
) -> dict[str, Any]:
    """Update name, category and/or minutes of an activity.

    The day and owner never change. Returns 404 for activities that don't
    exist or belong to someone else.
    """
    service = ActivityService(session)
    activity = await service.update_activity(owner, activity_id, data)
    return activity.to_dict()


@delete("/activities/{activity_id:str}", status_code=HTTP_200_OK)
async def delete_activity(
    owner: str,
    session: AsyncSession,
    activity_id: str,
) -> dict[str, bool]:
    """Delete an activity."""
    service = ActivityService(session)
    await service.delete_activity(owner, activity_id)
    return {"success": True}


activities_router = Router(
    path="/",
    dependencies={"owner": Provide(provide_owner)},
    route_handlers=[
        list_activities,
        get_summary,
        get_stats,
        get_day_progress,
        get_analytics,
        list_categories,
        create_activity,
        update_activity,
        delete_activity,
    ],
    tags=["Activities"],
)
