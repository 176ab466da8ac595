"""Activity store service: owner-scoped CRUD gated by the daily capacity cap."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.core.exceptions import (
    CapacityExceededError,
    NotFoundError,
    ValidationError,
)
from daytrack_server.models.activity import MINUTES_PER_DAY, Activity
from daytrack_server.models.base import utc_now
from daytrack_server.schemas.activity import (
    ActivityCreate,
    ActivityUpdate,
    parse_day,
    validate_payload,
)
from daytrack_server.schemas.analytics import DaySummary
from daytrack_server.services.locks import DayLockRegistry, day_locks

logger = structlog.get_logger()


class ActivityService:
    """Service for reading and mutating an owner's activities.

    Every method takes the owner explicitly and filters on it; there is no
    ambient identity. Writes that change a day's minutes run inside a
    per-(owner, day) critical section spanning the total query, the write and
    the commit, so the day total never exceeds MINUTES_PER_DAY.
    """

    def __init__(self, session: AsyncSession, locks: DayLockRegistry = day_locks) -> None:
        """Initialize activity service.

        Args:
            session: Database session
            locks: Registry used to serialize writes per (owner, day)
        """
        self.session = session
        self.locks = locks
        self.logger = logger.bind(service="activity")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_for_day(self, owner: str, day: date | str) -> list[Activity]:
        """List an owner's activities on one day, newest first.

        Args:
            owner: Owner identifier
            day: Calendar day (date or YYYY-MM-DD string)

        Returns:
            Activities ordered by creation time descending (empty if none)

        Raises:
            ValidationError: If day is not a valid YYYY-MM-DD date
        """
        target = coerce_day(day)
        stmt = (
            select(Activity)
            .where(Activity.user_id == owner, Activity.day == target)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self, owner: str) -> list[Activity]:
        """List every activity of an owner, most recent day first."""
        stmt = (
            select(Activity)
            .where(Activity.user_id == owner)
            .order_by(Activity.day.desc(), Activity.created_at.desc(), Activity.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def summarize(
        self,
        owner: str,
        by_category: bool = False,
        limit: int | None = None,
    ) -> list[DaySummary]:
        """Total minutes and activity counts per day (or per day and category).

        Args:
            owner: Owner identifier
            by_category: Split each day's totals by category
            limit: Maximum number of rows to return

        Returns:
            Summaries ordered by day descending (then category)
        """
        group_columns: list[Any] = [Activity.day]
        order_by: list[Any] = [Activity.day.desc()]
        if by_category:
            group_columns.append(Activity.category)
            order_by.append(Activity.category)

        stmt = (
            select(
                *group_columns,
                func.sum(Activity.minutes).label("total_minutes"),
                func.count(Activity.id).label("activity_count"),
            )
            .where(Activity.user_id == owner)
            .group_by(*group_columns)
            .order_by(*order_by)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)

        return [
            DaySummary(
                date=row[0],
                category=row[1] if by_category else None,
                total_minutes=int(row.total_minutes),
                activity_count=int(row.activity_count),
            )
            for row in result.all()
        ]

    async def day_total(self, owner: str, day: date, exclude_id: str | None = None) -> int:
        """Sum of minutes currently persisted for an owner's day.

        Args:
            owner: Owner identifier
            day: Calendar day
            exclude_id: Activity to leave out of the sum (the one being updated)

        Returns:
            Total minutes, 0 when the day is empty
        """
        stmt = select(func.coalesce(func.sum(Activity.minutes), 0)).where(
            Activity.user_id == owner,
            Activity.day == day,
        )
        if exclude_id is not None:
            stmt = stmt.where(Activity.id != exclude_id)

        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_activity(self, owner: str, activity_id: str) -> Activity:
        """Fetch one activity owned by the caller.

        Raises:
            NotFoundError: If it doesn't exist or belongs to another owner
        """
        stmt = (
            select(Activity)
            .where(Activity.id == activity_id, Activity.user_id == owner)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        activity = result.scalar_one_or_none()

        if activity is None:
            raise NotFoundError()
        return activity

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_activity(
        self,
        owner: str,
        day: date | str,
        name: str,
        category: str,
        minutes: int,
    ) -> Activity:
        """Log a new activity if the day has room for it.

        Args:
            owner: Owner identifier
            day: Calendar day (date or YYYY-MM-DD string)
            name: Activity name (1-100 chars)
            category: Category (1-50 chars)
            minutes: Duration, integer in [1, 1440]

        Returns:
            The stored activity, including its generated id

        Raises:
            ValidationError: If any field is malformed
            CapacityExceededError: If the day total would exceed 1440
        """
        if isinstance(day, date):
            day = day.isoformat()
        return await self.create_from_payload(
            owner,
            {"date": day, "name": name, "category": category, "minutes": minutes},
        )

    async def create_from_payload(self, owner: str, data: Any) -> Activity:
        """Validate a raw create body and log the activity.

        Accepts the day under either the "date" or "day" key.
        """
        payload = validate_payload(ActivityCreate, data)

        async with self._day_transaction(owner, payload.day):
            existing_total = await self.day_total(owner, payload.day)
            self._check_capacity(owner, payload.day, existing_total, payload.minutes, "add")

            activity = Activity(
                user_id=owner,
                day=payload.day,
                name=payload.name,
                category=payload.category,
                minutes=payload.minutes,
            )
            self.session.add(activity)
            await self.session.flush()

        self.logger.info(
            "Activity created",
            user_id=owner,
            activity_id=activity.id,
            date=payload.day.isoformat(),
            minutes=payload.minutes,
            day_total=existing_total + payload.minutes,
        )
        return activity

    async def update_activity(self, owner: str, activity_id: str, patch: Any) -> Activity:
        """Apply a partial update to an owned activity.

        Only name, category and minutes can change. The capacity check runs
        only when minutes is part of the patch, against the day total
        excluding this activity.

        Args:
            owner: Owner identifier
            activity_id: Activity to update
            patch: Any subset of {"name", "category", "minutes"}

        Returns:
            The updated activity

        Raises:
            ValidationError: If the patch is empty or a field is malformed
            NotFoundError: If the activity isn't owned by the caller
            CapacityExceededError: If new minutes would push the day past 1440
        """
        changes = validate_payload(ActivityUpdate, patch).changes()
        activity = await self.get_activity(owner, activity_id)

        if "minutes" not in changes:
            self._apply(activity, changes)
            await self._commit()
        else:
            day = activity.day
            async with self._day_transaction(owner, day):
                # Re-read under the lock, the row may have changed or vanished
                activity = await self.get_activity(owner, activity_id)
                others_total = await self.day_total(owner, day, exclude_id=activity.id)
                self._check_capacity(owner, day, others_total, changes["minutes"], "update")
                self._apply(activity, changes)

        self.logger.info(
            "Activity updated",
            user_id=owner,
            activity_id=activity.id,
            fields=sorted(changes),
        )
        return activity

    async def delete_activity(self, owner: str, activity_id: str) -> None:
        """Delete an owned activity.

        Raises:
            NotFoundError: If the activity isn't owned by the caller
        """
        result = await self.session.execute(
            delete(Activity).where(Activity.id == activity_id, Activity.user_id == owner)
        )
        # Cast to CursorResult which has rowcount attribute
        cursor_result: CursorResult[tuple[()]] = result  # type: ignore[assignment]

        if not cursor_result.rowcount:
            await self.session.rollback()
            raise NotFoundError()

        await self._commit()
        self.logger.info("Activity deleted", user_id=owner, activity_id=activity_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _day_transaction(self, owner: str, day: date) -> AsyncIterator[None]:
        """Run a read-decide-write block serialized per (owner, day).

        Commits on success, rolls back on any error.
        """
        async with self.locks.hold(owner, day):
            try:
                await self._lock_day_in_database(owner, day)
                yield
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

    async def _lock_day_in_database(self, owner: str, day: date) -> None:
        """Take a transaction-scoped advisory lock on PostgreSQL.

        Extends the in-process lock across service instances. Released
        automatically at commit or rollback.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(f"{owner}:{day.isoformat()}")))
        )

    def _check_capacity(
        self,
        owner: str,
        day: date,
        current_total: int,
        minutes: int,
        action: str,
    ) -> None:
        if current_total + minutes <= MINUTES_PER_DAY:
            return

        self.logger.warning(
            "Daily capacity exceeded",
            user_id=owner,
            date=day.isoformat(),
            current_total=current_total,
            requested=minutes,
        )
        raise CapacityExceededError(
            current_total=current_total,
            remaining=MINUTES_PER_DAY - current_total,
            action=action,
        )

    @staticmethod
    def _apply(activity: Activity, changes: dict[str, Any]) -> None:
        for field, value in changes.items():
            setattr(activity, field, value)
        activity.updated_at = utc_now()

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


def coerce_day(day: date | str) -> date:
    """Accept a date or a strict YYYY-MM-DD string."""
    try:
        return parse_day(day)
    except ValueError as exc:
        raise ValidationError([{"field": "date", "message": str(exc)}]) from None
