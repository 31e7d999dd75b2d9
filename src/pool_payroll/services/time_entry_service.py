"""Time entry ledger service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.hours import compute_hours_worked, derive_overtime
from pool_payroll.calculators.types import TimeEntryType, local_calendar_date, to_decimal
from pool_payroll.config import CompanySettings
from pool_payroll.database import flush, run_query
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import Employee, TimeEntry, TimeEntryJob
from pool_payroll.models.base import utcnow
from pool_payroll.services.locking_service import PeriodLockService

logger = logging.getLogger(__name__)


@dataclass
class JobLink:
    """Job a time entry was worked on."""

    job_id: UUID | None = None
    job_name: str | None = None


@dataclass
class TimeEntryData:
    """Time entry as submitted for create or update."""

    employee_id: UUID
    work_date: date | datetime | None
    start_time: time | None = None
    end_time: time | None = None
    break_minutes: int | None = None
    hours_worked: Decimal | None = None
    overtime_hours: Decimal | None = None
    entry_type: str = TimeEntryType.REGULAR.value
    flat_rate: Decimal | None = None
    gas_money: Decimal | None = None
    notes: str | None = None
    jobs: list[JobLink] = field(default_factory=list)


class TimeEntryService:
    """Service for recording, editing and approving time entries.

    Hours are derived from start/end times when both are given; overtime is
    derived for regular entries past the daily threshold. A timestamp given as
    the work date is reduced to its day in the business timezone. Edits and
    deletes are gated by the status of the pay periods covering the entry's
    date.
    """

    def __init__(self, session: AsyncSession, company: CompanySettings | None = None):
        self.session = session
        self.company = company or CompanySettings()
        self.lock_service = PeriodLockService(session)

    async def get_time_entry(self, time_entry_id: UUID) -> TimeEntry:
        """Load a time entry or raise NotFoundError."""
        result = await run_query(
            self.session,
            select(TimeEntry).where(TimeEntry.time_entry_id == time_entry_id),
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Time entry", time_entry_id)
        return entry

    async def list_time_entries(
        self,
        employee_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        entry_type: str | None = None,
        approved: bool | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[TimeEntry], int]:
        """List time entries newest first, returning (page, total)."""
        query = select(TimeEntry)
        if employee_id is not None:
            query = query.where(TimeEntry.employee_id == employee_id)
        if date_from is not None:
            query = query.where(TimeEntry.work_date >= date_from)
        if date_to is not None:
            query = query.where(TimeEntry.work_date <= date_to)
        if entry_type:
            query = query.where(TimeEntry.entry_type == entry_type)
        if approved is not None:
            query = query.where(TimeEntry.approved.is_(approved))

        count_result = await run_query(
            self.session, select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar_one()

        offset = (max(page, 1) - 1) * limit
        result = await run_query(
            self.session,
            query.order_by(TimeEntry.work_date.desc(), TimeEntry.created_at.desc())
            .offset(offset)
            .limit(limit),
        )
        return list(result.scalars().all()), total

    async def approved_entries_between(
        self,
        date_from: date | None,
        date_to: date | None,
        employee_ids: list[UUID] | None = None,
    ) -> list[TimeEntry]:
        """Approved entries dated within an inclusive range; open ends allowed."""
        query = select(TimeEntry).where(TimeEntry.approved.is_(True))
        if date_from is not None:
            query = query.where(TimeEntry.work_date >= date_from)
        if date_to is not None:
            query = query.where(TimeEntry.work_date <= date_to)
        if employee_ids is not None:
            query = query.where(TimeEntry.employee_id.in_(employee_ids))
        result = await run_query(
            self.session, query.order_by(TimeEntry.employee_id, TimeEntry.work_date)
        )
        return list(result.scalars().all())

    async def create_time_entry(
        self, data: TimeEntryData, actor_user_id: UUID | None = None
    ) -> TimeEntry:
        """Record a new, unapproved time entry."""
        data = self._local_day(data)
        await self._ensure_employee(data.employee_id)
        hours, overtime = self._derive_hours(data)

        entry = TimeEntry(
            employee_id=data.employee_id,
            hours_worked=hours,
            overtime_hours=overtime,
            approved=False,
            created_by_user_id=actor_user_id,
        )
        self._apply(entry, data)
        self.session.add(entry)
        await flush(self.session)

        logger.info(
            "Created time entry %s for employee %s on %s (%s h)",
            entry.time_entry_id,
            data.employee_id,
            data.work_date,
            hours,
        )
        return entry

    async def update_time_entry(self, time_entry_id: UUID, data: TimeEntryData) -> TimeEntry:
        """Update a time entry outside locked pay periods.

        Approval is withdrawn when the hours or overtime change.
        """
        data = self._local_day(data)
        entry = await self.get_time_entry(time_entry_id)
        days = [entry.work_date]
        if data.work_date is not None and data.work_date != entry.work_date:
            days.append(data.work_date)
        await self.lock_service.ensure_editable(*days)

        if data.employee_id != entry.employee_id:
            await self._ensure_employee(data.employee_id)
        hours, overtime = self._derive_hours(data)

        if entry.approved and (
            to_decimal(entry.hours_worked) != hours
            or to_decimal(entry.overtime_hours) != overtime
        ):
            logger.info(
                "Time entry %s hours changed (%s -> %s), approval reset",
                time_entry_id,
                entry.hours_worked,
                hours,
            )
            entry.approved = False
            entry.approved_by_user_id = None
            entry.approved_at = None

        entry.employee_id = data.employee_id
        entry.hours_worked = hours
        entry.overtime_hours = overtime
        self._apply(entry, data)
        await flush(self.session)
        return entry

    async def delete_time_entry(self, time_entry_id: UUID) -> None:
        """Delete a time entry outside locked or processed pay periods."""
        entry = await self.get_time_entry(time_entry_id)
        await self.lock_service.ensure_deletable(entry.work_date)
        await self.session.delete(entry)
        await flush(self.session)
        logger.info("Deleted time entry %s", time_entry_id)

    async def approve_time_entry(
        self, time_entry_id: UUID, approver_user_id: UUID | None = None
    ) -> TimeEntry:
        """Mark a time entry approved."""
        entry = await self.get_time_entry(time_entry_id)
        entry.approved = True
        entry.approved_by_user_id = approver_user_id
        entry.approved_at = utcnow()
        await flush(self.session)
        logger.info("Approved time entry %s", time_entry_id)
        return entry

    def _local_day(self, data: TimeEntryData) -> TimeEntryData:
        if data.work_date is None:
            return data
        return replace(
            data,
            work_date=local_calendar_date(data.work_date, self.company.business_timezone),
        )

    async def _ensure_employee(self, employee_id: UUID) -> None:
        result = await run_query(
            self.session,
            select(Employee.employee_id).where(Employee.employee_id == employee_id),
        )
        if result.first() is None:
            raise NotFoundError("Employee", employee_id)

    def _derive_hours(self, data: TimeEntryData) -> tuple[Decimal, Decimal]:
        """Validate the submission and compute (hours_worked, overtime_hours)."""
        errors: list[str] = []
        if data.work_date is None:
            errors.append("Date is required")
        if data.entry_type not in {t.value for t in TimeEntryType}:
            errors.append(f"Unknown entry type '{data.entry_type}'")
        if data.hours_worked is not None and to_decimal(data.hours_worked) < 0:
            errors.append("Hours worked cannot be negative")
        if data.break_minutes is not None and data.break_minutes < 0:
            errors.append("Break minutes cannot be negative")
        if to_decimal(data.flat_rate) < 0 or to_decimal(data.gas_money) < 0:
            errors.append("Flat rate and gas money cannot be negative")
        if errors:
            raise ValidationError("; ".join(errors), {"errors": errors})

        hours = compute_hours_worked(
            data.work_date,
            data.start_time,
            data.end_time,
            data.break_minutes,
            data.hours_worked,
        )
        overtime = derive_overtime(hours, data.entry_type, data.overtime_hours)
        return hours, overtime

    def _apply(self, entry: TimeEntry, data: TimeEntryData) -> None:
        entry.work_date = data.work_date
        entry.start_time = data.start_time
        entry.end_time = data.end_time
        entry.break_minutes = data.break_minutes or 0
        entry.entry_type = data.entry_type
        entry.flat_rate = to_decimal(data.flat_rate) if data.flat_rate is not None else None
        entry.gas_money = to_decimal(data.gas_money) if data.gas_money is not None else None
        entry.notes = data.notes
        entry.jobs = [
            TimeEntryJob(job_id=job.job_id, job_name=job.job_name)
            for job in data.jobs
            if job.job_id is not None or job.job_name
        ]
