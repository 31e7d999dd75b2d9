"""Pay period lock gates for time entry edits and deletes."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.database import run_query
from pool_payroll.errors import StateConflictError
from pool_payroll.models import PayPeriod
from pool_payroll.services.state_machine import PayPeriodStateMachine

logger = logging.getLogger(__name__)


class PeriodLockService:
    """Service answering whether a calendar day is frozen by a pay period.

    A time entry is frozen for edit while any pay period covering its date
    is locked, and frozen for delete while any such period is locked or
    processed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def overlapping_periods(
        self, day: date, statuses: Iterable[str] | None = None
    ) -> list[PayPeriod]:
        """Pay periods whose range covers ``day``, optionally by status."""
        query = select(PayPeriod).where(
            PayPeriod.start_date <= day,
            PayPeriod.end_date >= day,
        )
        if statuses is not None:
            query = query.where(PayPeriod.status.in_([str(s) for s in statuses]))
        result = await run_query(self.session, query)
        return list(result.scalars().all())

    async def ensure_editable(self, *days: date) -> None:
        """Raise StateConflictError if any day lies in a locked period."""
        statuses = [s.value for s in PayPeriodStateMachine.EDIT_BLOCKED]
        for day in days:
            periods = await self.overlapping_periods(day, statuses)
            if periods:
                self._reject("edited", day, periods)

    async def ensure_deletable(self, day: date) -> None:
        """Raise StateConflictError if the day lies in a locked or processed period."""
        statuses = [s.value for s in PayPeriodStateMachine.DELETE_BLOCKED]
        periods = await self.overlapping_periods(day, statuses)
        if periods:
            self._reject("deleted", day, periods)

    def _reject(self, action: str, day: date, periods: list[PayPeriod]) -> None:
        period = periods[0]
        logger.info(
            "Rejected time entry change on %s: pay period %s is %s",
            day,
            period.pay_period_id,
            period.status,
        )
        raise StateConflictError(
            f"Time entries on {day.isoformat()} cannot be {action}: "
            f"pay period '{period.name}' is {period.status}",
            {"pay_period_id": str(period.pay_period_id), "status": period.status},
        )
