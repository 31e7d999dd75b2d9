"""Pay period service - lifecycle and payroll processing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.engine import (
    EmployeeHours,
    PeriodPay,
    aggregate_hours,
    compute_period_pay,
)
from pool_payroll.calculators.types import ZERO, PayoutLine, utc_calendar_date
from pool_payroll.database import flush, run_query
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import Employee, PayPeriod, PayrollRecord, PercentagePayout
from pool_payroll.models.base import utcnow
from pool_payroll.services.employee_service import EmployeeService
from pool_payroll.services.state_machine import (
    InvalidTransitionError,
    PayPeriodStateMachine,
    PayPeriodStatus,
)
from pool_payroll.services.time_entry_service import TimeEntryService

logger = logging.getLogger(__name__)


@dataclass
class EmployeeTimeSummary:
    """Approved hours of one employee within a pay period."""

    employee: Employee
    hours: EmployeeHours


@dataclass
class PayPeriodSummary:
    """Totals shown with a pay period."""

    total_employees: int = 0
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_pto_hours: Decimal = ZERO
    total_gross_pay: Decimal = ZERO


@dataclass
class PayPeriodDetail:
    """A pay period with its time summary and payroll records."""

    pay_period: PayPeriod
    employee_time: list[EmployeeTimeSummary] = field(default_factory=list)
    payroll_records: list[PayrollRecord] = field(default_factory=list)
    summary: PayPeriodSummary = field(default_factory=PayPeriodSummary)


@dataclass
class PayPeriodListItem:
    """A pay period with totals of its payroll records."""

    pay_period: PayPeriod
    total_employees: int
    total_gross_pay: Decimal
    total_hours: Decimal


class PayPeriodService:
    """Service for managing pay period lifecycle.

    Operations:
    - create_pay_period: new open period
    - lock_pay_period: open → locked, freezes time entries for edit
    - process_pay_period: locked → processed, writes payroll records
    - get_pay_period_detail / list_pay_periods
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeService(session)
        self.time_entries = TimeEntryService(session)

    async def get_pay_period(self, pay_period_id: UUID) -> PayPeriod:
        """Load a pay period or raise NotFoundError."""
        result = await run_query(
            self.session,
            select(PayPeriod).where(PayPeriod.pay_period_id == pay_period_id),
        )
        pay_period = result.scalar_one_or_none()
        if pay_period is None:
            raise NotFoundError("Pay period", pay_period_id)
        return pay_period

    async def create_pay_period(
        self,
        name: str | None,
        start_date: date | datetime | None,
        end_date: date | datetime | None,
        notes: str | None = None,
    ) -> PayPeriod:
        """Create an open pay period."""
        if not (name or "").strip() or start_date is None or end_date is None:
            raise ValidationError("Name, start date, and end date are required")
        start_date = utc_calendar_date(start_date)
        end_date = utc_calendar_date(end_date)
        if end_date < start_date:
            raise ValidationError(
                "End date must be after start date",
                {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        pay_period = PayPeriod(
            name=name.strip(),
            start_date=start_date,
            end_date=end_date,
            status=PayPeriodStatus.OPEN.value,
            notes=notes,
        )
        self.session.add(pay_period)
        await flush(self.session)

        logger.info(
            "Created pay period %s (%s to %s)", pay_period.pay_period_id, start_date, end_date
        )
        return pay_period

    async def lock_pay_period(self, pay_period_id: UUID) -> PayPeriod:
        """Lock an open pay period. No computation happens here."""
        pay_period = await self.get_pay_period(pay_period_id)
        PayPeriodStateMachine.validate_transition(pay_period.status, PayPeriodStatus.LOCKED)

        pay_period.status = PayPeriodStatus.LOCKED.value
        pay_period.locked_at = utcnow()
        await flush(self.session)

        logger.info("Locked pay period %s", pay_period_id)
        return pay_period

    async def process_pay_period(self, pay_period_id: UUID) -> list[PayrollRecord]:
        """Write payroll records for a locked period and mark it processed.

        The status is claimed with a conditional update before any record is
        written, inside the caller's transaction. A concurrent run on the
        same period finds no locked row and fails with InvalidTransitionError.
        """
        pay_period = await self.get_pay_period(pay_period_id)
        PayPeriodStateMachine.validate_transition(
            pay_period.status, PayPeriodStatus.PROCESSED
        )

        processed_at = utcnow()
        result = await run_query(
            self.session,
            update(PayPeriod)
            .where(
                PayPeriod.pay_period_id == pay_period_id,
                PayPeriod.status == PayPeriodStatus.LOCKED.value,
            )
            .values(status=PayPeriodStatus.PROCESSED.value, processed_at=processed_at)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            raise InvalidTransitionError(
                pay_period.status,
                PayPeriodStatus.PROCESSED,
                "Status changed during processing",
            )
        pay_period.status = PayPeriodStatus.PROCESSED.value
        pay_period.processed_at = processed_at

        pays = await self.aggregate_payroll(pay_period)
        records = await self.upsert_payroll_records(pay_period, pays)

        logger.info(
            "Processed pay period %s: %d payroll record(s)", pay_period_id, len(records)
        )
        return records

    async def aggregate_payroll(self, pay_period: PayPeriod) -> list[PeriodPay]:
        """Gross pay per employee from approved time and daily payouts."""
        # Period bounds are UTC days, entry dates local days; compared as-is
        entries = await self.time_entries.approved_entries_between(
            pay_period.start_date, pay_period.end_date
        )
        employee_ids = list({e.employee_id for e in entries})
        employees = await self.employees.get_employees_by_id(employee_ids)

        result = await run_query(
            self.session,
            select(PercentagePayout).where(
                PercentagePayout.payout_date >= pay_period.start_date,
                PercentagePayout.payout_date <= pay_period.end_date,
            ),
        )
        lines: list[PayoutLine] = [
            line for payout in result.scalars().all() for line in payout.payout_lines()
        ]

        return compute_period_pay(
            [e.worked_time() for e in entries],
            {employee_id: e.rates() for employee_id, e in employees.items()},
            lines,
            pay_period.start_date,
            pay_period.end_date,
        )

    async def upsert_payroll_records(
        self, pay_period: PayPeriod, pays: list[PeriodPay]
    ) -> list[PayrollRecord]:
        """Create or refresh one record per (employee, period).

        Only aggregate fields are reassigned on existing records; payment
        fields are left as recorded.
        """
        result = await run_query(
            self.session,
            select(PayrollRecord).where(
                PayrollRecord.pay_period_id == pay_period.pay_period_id
            ),
        )
        existing = {r.employee_id: r for r in result.scalars().all()}

        records: list[PayrollRecord] = []
        for pay in pays:
            record = existing.get(pay.employee_id)
            if record is None:
                record = PayrollRecord(
                    employee_id=pay.employee_id,
                    pay_period_id=pay_period.pay_period_id,
                    payment_status="unpaid",
                )
                self.session.add(record)
            record.total_regular_hours = pay.regular_hours
            record.total_overtime_hours = pay.overtime_hours
            record.total_pto_hours = pay.pto_hours
            record.total_gross_pay = pay.gross_pay
            record.total_daily_payouts = pay.daily_payouts
            record.overtime_multiplier_used = pay.overtime_multiplier
            records.append(record)

        await flush(self.session)
        return records

    async def get_pay_period_detail(self, pay_period_id: UUID) -> PayPeriodDetail:
        """Pay period with approved time per employee and its payroll records."""
        pay_period = await self.get_pay_period(pay_period_id)
        entries = await self.time_entries.approved_entries_between(
            pay_period.start_date, pay_period.end_date
        )
        hours_by_employee = aggregate_hours(e.worked_time() for e in entries)
        employees = await self.employees.get_employees_by_id(list(hours_by_employee))

        employee_time = [
            EmployeeTimeSummary(employee=employees[employee_id], hours=hours)
            for employee_id, hours in hours_by_employee.items()
            if employee_id in employees
        ]
        employee_time.sort(key=lambda s: (s.employee.last_name, s.employee.first_name))

        result = await run_query(
            self.session,
            select(PayrollRecord, Employee)
            .join(Employee, Employee.employee_id == PayrollRecord.employee_id)
            .where(PayrollRecord.pay_period_id == pay_period_id)
            .order_by(Employee.last_name, Employee.first_name),
        )
        records = [row[0] for row in result.all()]

        # Overtime is summed over every entry type, as entered
        summary = PayPeriodSummary(
            total_employees=len(hours_by_employee),
            total_regular_hours=sum((h.regular_hours for h in hours_by_employee.values()), ZERO),
            total_overtime_hours=sum((e.overtime_hours or ZERO for e in entries), ZERO),
            total_pto_hours=sum((h.pto_hours for h in hours_by_employee.values()), ZERO),
            total_gross_pay=sum((r.total_gross_pay for r in records), ZERO),
        )
        return PayPeriodDetail(
            pay_period=pay_period,
            employee_time=employee_time,
            payroll_records=records,
            summary=summary,
        )

    async def list_pay_periods(
        self,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[PayPeriodListItem], int]:
        """List pay periods newest first with payroll totals."""
        query = select(PayPeriod)
        if status:
            query = query.where(PayPeriod.status == status)

        count_result = await run_query(
            self.session, select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar_one()

        offset = (max(page, 1) - 1) * limit
        result = await run_query(
            self.session,
            query.order_by(PayPeriod.start_date.desc()).offset(offset).limit(limit),
        )
        periods = list(result.scalars().all())

        items: list[PayPeriodListItem] = []
        for period in periods:
            records_result = await run_query(
                self.session,
                select(PayrollRecord).where(
                    PayrollRecord.pay_period_id == period.pay_period_id
                ),
            )
            records = list(records_result.scalars().all())
            items.append(
                PayPeriodListItem(
                    pay_period=period,
                    total_employees=len(records),
                    total_gross_pay=sum((r.total_gross_pay for r in records), ZERO),
                    total_hours=sum(
                        (r.total_regular_hours + r.total_overtime_hours for r in records),
                        ZERO,
                    ),
                )
            )
        return items, total
