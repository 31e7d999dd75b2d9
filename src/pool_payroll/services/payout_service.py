"""Daily percentage payout service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.labor_cost import time_entry_pay
from pool_payroll.calculators.payout_calculator import calculate_daily_payout
from pool_payroll.calculators.types import (
    ZERO,
    DailyPayoutResult,
    EmployeeStatus,
    PayoutPayType,
    PayoutRequest,
    PayType,
    quantize_money,
    to_decimal,
    utc_calendar_date,
)
from pool_payroll.config import CompanySettings
from pool_payroll.database import flush, run_query
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import Employee, EmployeePayout, PercentagePayout, TimeEntry
from pool_payroll.services.employee_service import EmployeeService

logger = logging.getLogger(__name__)


@dataclass
class PayoutSubmission:
    """A day's figures as submitted by an operator."""

    payout_date: date | datetime | None
    total_revenue: Decimal | None
    requests: list[PayoutRequest] = field(default_factory=list)
    job_costs: Decimal | None = None
    materials: Decimal | None = None
    labor_costs: Decimal | None = None
    notes: str | None = None


@dataclass
class WorksheetEntry:
    """One time entry as shown on the payout worksheet."""

    time_entry_id: UUID
    hours_worked: Decimal
    overtime_hours: Decimal
    flat_rate: Decimal
    gas_money: Decimal
    approved: bool


@dataclass
class WorksheetEmployee:
    """Labor summary of an employee who worked on the worksheet's day."""

    employee: Employee
    labor_cost: Decimal
    hours_worked: Decimal
    flat_rate: Decimal
    entries: list[WorksheetEntry] = field(default_factory=list)


@dataclass
class PayoutWorksheet:
    """Inputs an operator needs to fill in a day's payout."""

    work_date: date | None
    eligible_employees: list[Employee]
    employees_who_worked: list[WorksheetEmployee] = field(default_factory=list)


def validate_submission(submission: PayoutSubmission) -> list[str]:
    """Validate a payout submission, returning any errors.

    Returns list of error messages (empty if valid).
    """
    errors: list[str] = []
    if submission.payout_date is None:
        errors.append("Date is required")
    if submission.total_revenue is None or submission.total_revenue == "":
        errors.append("Total revenue is required")
    elif to_decimal(submission.total_revenue) < 0:
        errors.append("Total revenue cannot be negative")
    if not submission.requests:
        errors.append("At least one employee payout is required")

    for name in ("job_costs", "materials", "labor_costs"):
        if to_decimal(getattr(submission, name)) < 0:
            errors.append(f"{name.replace('_', ' ').capitalize()} cannot be negative")

    for request in submission.requests:
        if request.percentage_rate is not None and not (
            0 <= to_decimal(request.percentage_rate) <= 100
        ):
            errors.append(f"Percentage rate for {request.employee_id} must be between 0 and 100")
        if to_decimal(request.hourly_rate) < 0 or to_decimal(request.hours) < 0:
            errors.append(f"Hourly rate and hours for {request.employee_id} cannot be negative")

    return errors


class PayoutService:
    """Service for computing, saving and reading daily payouts.

    Operations:
    - build_worksheet: eligible employees and who worked on a day
    - calculate_payout: compute a day's payout and persist it
    - get_payout / delete_payout
    """

    def __init__(self, session: AsyncSession, company: CompanySettings | None = None):
        self.session = session
        self.company = company or CompanySettings()
        self.employees = EmployeeService(session)

    async def get_payout(self, payout_id: UUID) -> PercentagePayout:
        """Load a payout with its lines or raise NotFoundError."""
        result = await run_query(
            self.session,
            select(PercentagePayout).where(PercentagePayout.percentage_payout_id == payout_id),
        )
        payout = result.scalar_one_or_none()
        if payout is None:
            raise NotFoundError("Payout", payout_id)
        return payout

    async def delete_payout(self, payout_id: UUID) -> None:
        """Delete a payout and its lines."""
        payout = await self.get_payout(payout_id)
        await self.session.delete(payout)
        await flush(self.session)
        logger.info("Deleted payout %s for %s", payout_id, payout.payout_date)

    async def build_worksheet(self, work_date: date | None = None) -> PayoutWorksheet:
        """Collect the inputs for a day's payout.

        Eligible employees are active and paid hourly or by percentage. When
        a day is given, every employee with any time entry that day (approved
        or not, any status) is summarized with their labor cost.
        """
        result = await run_query(
            self.session,
            select(Employee)
            .where(Employee.status == EmployeeStatus.ACTIVE.value)
            .order_by(Employee.last_name, Employee.first_name),
        )
        eligible = [
            e
            for e in result.scalars().all()
            if e.has_pay_type(PayType.PERCENTAGE) or e.has_pay_type(PayType.HOURLY)
        ]
        worksheet = PayoutWorksheet(work_date=work_date, eligible_employees=eligible)
        if work_date is None:
            return worksheet

        entries = await self._entries_on(work_date, approved_only=False)
        if not entries:
            return worksheet

        employees = await self.employees.get_employees_by_id(
            list({e.employee_id for e in entries})
        )
        by_employee: dict[UUID, list[TimeEntry]] = {}
        for entry in entries:
            by_employee.setdefault(entry.employee_id, []).append(entry)

        for employee in sorted(employees.values(), key=lambda e: (e.last_name, e.first_name)):
            rates = employee.rates()
            labor_cost = ZERO
            hours = ZERO
            flat_total = ZERO
            lines: list[WorksheetEntry] = []
            for entry in by_employee.get(employee.employee_id, []):
                worked = entry.worked_time()
                labor_cost += time_entry_pay(worked, rates)
                if worked.flat_rate > 0:
                    flat_total += worked.flat_rate
                else:
                    hours += worked.hours_worked
                lines.append(
                    WorksheetEntry(
                        time_entry_id=entry.time_entry_id,
                        hours_worked=worked.hours_worked,
                        overtime_hours=worked.overtime_hours,
                        flat_rate=worked.flat_rate,
                        gas_money=worked.gas_money,
                        approved=entry.approved,
                    )
                )
            worksheet.employees_who_worked.append(
                WorksheetEmployee(
                    employee=employee,
                    labor_cost=quantize_money(labor_cost),
                    hours_worked=hours,
                    flat_rate=quantize_money(flat_total),
                    entries=lines,
                )
            )

        return worksheet

    async def preview_payout(self, submission: PayoutSubmission) -> DailyPayoutResult:
        """Compute a day's payout without saving it."""
        errors = validate_submission(submission)
        if errors:
            raise ValidationError("; ".join(errors), {"errors": errors})
        payout_date = utc_calendar_date(submission.payout_date)

        requested_ids = {r.employee_id for r in submission.requests}
        day_entries = await self._entries_on(payout_date, approved_only=True)
        employees = await self.employees.get_employees_by_id(
            list(requested_ids | {e.employee_id for e in day_entries})
        )
        for employee_id in requested_ids:
            if employee_id not in employees:
                raise NotFoundError("Employee", employee_id)

        return calculate_daily_payout(
            payout_date,
            to_decimal(submission.total_revenue),
            submission.requests,
            {employee_id: e.rates() for employee_id, e in employees.items()},
            [e.worked_time() for e in day_entries],
            job_costs=submission.job_costs,
            materials=submission.materials,
            manual_labor_costs=submission.labor_costs,
            profit_share_percentage=self.company.profit_share_percentage,
        )

    async def calculate_payout(
        self, submission: PayoutSubmission, actor_user_id: UUID | None = None
    ) -> PercentagePayout:
        """Compute a day's payout and persist it with its lines."""
        result = await self.preview_payout(submission)

        payout = PercentagePayout(
            payout_date=result.work_date,
            total_revenue=result.total_revenue,
            job_costs=result.job_costs,
            materials=result.materials,
            labor_costs=result.labor_costs,
            gas_money=result.gas_money,
            total_costs=result.total_costs,
            total_profit=result.total_profit,
            total_percentage_payout=result.total_percentage_payout,
            profit_percentage=result.profit_percentage,
            calculated_payout=result.calculated_payout,
            labor_cost_source=result.labor_cost_source,
            notes=submission.notes,
            created_by_user_id=actor_user_id,
        )
        payout.lines = [
            EmployeePayout(
                employee_id=line.employee_id,
                pay_type=line.pay_type.value,
                percentage_rate=line.percentage_rate,
                hourly_rate=line.hourly_rate if line.pay_type == PayoutPayType.HOURLY else None,
                hours=line.hours if line.pay_type == PayoutPayType.HOURLY else None,
                flat_rate=line.flat_rate,
                payout_amount=line.payout_amount,
            )
            for line in result.lines
        ]
        self.session.add(payout)
        await flush(self.session)

        logger.info(
            "Saved payout %s for %s: %d line(s), profit %s",
            payout.percentage_payout_id,
            payout.payout_date,
            len(payout.lines),
            payout.total_profit,
        )
        return payout

    async def _entries_on(self, work_date: date, approved_only: bool) -> list[TimeEntry]:
        # Time entry days are local calendar days, compared as-is
        query = select(TimeEntry).where(TimeEntry.work_date == work_date)
        if approved_only:
            query = query.where(TimeEntry.approved.is_(True))
        result = await run_query(self.session, query)
        return list(result.scalars().all())
