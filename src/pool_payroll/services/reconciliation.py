"""Payout reconciliation and reporting.

Hourly pay exists in two places: as hourly lines inside saved daily payouts,
and implicitly as approved time entries that were never rolled into one.
The views here merge both without paying any (day, employee) pair twice:

1) Load saved payouts in range
2) Collect every (payout day, employee) pair of their hourly lines
3) Synthesize hourly payouts from approved time entries of active hourly
   employees, skipping pairs collected in (2)
4) Merge, sort, paginate
5) Roll up per employee and per range
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.labor_cost import time_entry_pay
from pool_payroll.calculators.types import (
    ZERO,
    EmployeeRates,
    EmployeeStatus,
    PayoutLine,
    PayoutPayType,
    RecipientRef,
    WorkedTime,
    quantize_money,
    utc_calendar_date,
    utc_day_end,
    utc_day_start,
)
from pool_payroll.database import run_query
from pool_payroll.models import Employee, PercentagePayout
from pool_payroll.services.employee_service import EmployeeService
from pool_payroll.services.time_entry_service import TimeEntryService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

DayEmployee = tuple[date, UUID]


@dataclass
class ReconciledPayout:
    """A saved daily payout or one synthesized from time entries."""

    payout_id: UUID | None
    payout_date: date
    created_at: datetime
    lines: list[PayoutLine]
    total_revenue: Decimal = ZERO
    job_costs: Decimal = ZERO
    materials: Decimal = ZERO
    labor_costs: Decimal = ZERO
    total_costs: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_percentage_payout: Decimal = ZERO
    calculated_payout: Decimal = ZERO
    synthesized: bool = False

    @classmethod
    def from_record(cls, payout: PercentagePayout) -> ReconciledPayout:
        return cls(
            payout_id=payout.percentage_payout_id,
            payout_date=payout.payout_date,
            created_at=as_utc(payout.created_at),
            lines=payout.payout_lines(),
            total_revenue=payout.total_revenue,
            job_costs=payout.job_costs,
            materials=payout.materials,
            labor_costs=payout.labor_costs,
            total_costs=payout.total_costs,
            total_profit=payout.total_profit,
            total_percentage_payout=payout.total_percentage_payout,
            calculated_payout=payout.calculated_payout,
        )


@dataclass
class PayoutHistoryItem:
    """One line of an employee's payout history."""

    payout_id: UUID | None
    payout_date: date
    created_at: datetime
    payout_amount: Decimal
    pay_type: PayoutPayType
    percentage_rate: Decimal | None
    hourly_rate: Decimal | None
    hours: Decimal | None
    synthesized: bool


@dataclass
class EmployeeTotal:
    """Payout total of one employee across the merged view."""

    employee: Employee
    total_payout: Decimal = ZERO
    payout_count: int = 0
    payouts: list[PayoutHistoryItem] = field(default_factory=list)


@dataclass
class ReconciliationSummary:
    """Range-level rollup.

    ``total_profit`` is revenue less what employees were paid, not revenue
    less costs.
    """

    total_revenue: Decimal
    total_costs: Decimal
    total_profit: Decimal
    total_employee_payout: Decimal
    total_company_payout: Decimal


@dataclass
class ReconciliationReport:
    """Merged payouts with per-employee and range totals."""

    payouts: list[ReconciledPayout]
    employee_totals: list[EmployeeTotal]
    summary: ReconciliationSummary
    total: int
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    range_start: date | None = None
    range_end: date | None = None


def as_utc(value: datetime) -> datetime:
    """Treat a naive timestamp as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def week_bounds(
    week_start: date | None = None,
    week_end: date | None = None,
    today: date | None = None,
) -> tuple[date, date]:
    """Resolve a week range; defaults to Monday to Sunday of the current UTC week."""
    if week_start is None:
        today = today or utc_calendar_date(datetime.now(timezone.utc))
        week_start = today - timedelta(days=today.weekday())
    if week_end is None:
        week_end = week_start + timedelta(days=6)
    return week_start, week_end


def hourly_pairs(payouts: Iterable[ReconciledPayout]) -> set[DayEmployee]:
    """(day, employee) pairs already paid hourly by a saved payout."""
    pairs: set[DayEmployee] = set()
    for payout in payouts:
        for line in payout.lines:
            if line.pay_type != PayoutPayType.HOURLY:
                continue
            ref = RecipientRef.coerce(line.employee_id)
            if ref is not None:
                pairs.add((payout.payout_date, ref.id))
    return pairs


def synthesize_hourly_payouts(
    entries: Iterable[WorkedTime],
    rates_by_employee: Mapping[UUID, EmployeeRates],
    already_paid: set[DayEmployee],
) -> list[ReconciledPayout]:
    """Build one transient hourly payout per day from approved time entries.

    Only employees present in ``rates_by_employee`` and paid hourly are
    considered. Entries whose pay comes out to zero are dropped.
    """
    by_day: dict[date, list[PayoutLine]] = {}

    for entry in entries:
        if not entry.approved:
            continue
        rates = rates_by_employee.get(entry.employee_id)
        if rates is None or not rates.is_hourly:
            continue
        if (entry.work_date, entry.employee_id) in already_paid:
            continue

        amount = time_entry_pay(entry, rates)
        if amount <= 0:
            continue

        if entry.flat_rate > 0:
            line = PayoutLine(
                employee_id=entry.employee_id,
                pay_type=PayoutPayType.HOURLY,
                payout_amount=quantize_money(amount),
                hourly_rate=ZERO,
                hours=ZERO,
                flat_rate=entry.flat_rate,
            )
        else:
            line = PayoutLine(
                employee_id=entry.employee_id,
                pay_type=PayoutPayType.HOURLY,
                payout_amount=quantize_money(amount),
                hourly_rate=rates.hourly_rate,
                hours=entry.hours_worked,
            )
        by_day.setdefault(entry.work_date, []).append(line)

    payouts: list[ReconciledPayout] = []
    for day, lines in by_day.items():
        labor = sum((line.payout_amount for line in lines), ZERO)
        payouts.append(
            ReconciledPayout(
                payout_id=None,
                payout_date=day,
                created_at=utc_day_start(day),
                lines=lines,
                labor_costs=labor,
                total_costs=labor,
                synthesized=True,
            )
        )
    return payouts


def employee_totals(
    payouts: Iterable[ReconciledPayout],
    employees: Mapping[UUID, Employee],
) -> list[EmployeeTotal]:
    """Per-employee totals, largest first; unknown employees are skipped."""
    totals: dict[UUID, EmployeeTotal] = {}
    for payout in payouts:
        for line in payout.lines:
            ref = RecipientRef.coerce(line.employee_id)
            if ref is None or ref.id not in employees:
                continue
            if ref.id not in totals:
                totals[ref.id] = EmployeeTotal(employee=employees[ref.id])
            total = totals[ref.id]
            total.total_payout += line.payout_amount
            total.payout_count += 1
            total.payouts.append(
                PayoutHistoryItem(
                    payout_id=payout.payout_id,
                    payout_date=payout.payout_date,
                    created_at=payout.created_at,
                    payout_amount=line.payout_amount,
                    pay_type=line.pay_type,
                    percentage_rate=line.percentage_rate,
                    hourly_rate=line.hourly_rate,
                    hours=line.hours,
                    synthesized=payout.synthesized,
                )
            )
    return sorted(totals.values(), key=lambda t: t.total_payout, reverse=True)


def _is_known(line: PayoutLine, employees: Mapping[UUID, Employee]) -> bool:
    ref = RecipientRef.coerce(line.employee_id)
    return ref is not None and ref.id in employees


def summarize(
    payouts: Iterable[ReconciledPayout],
    totals: list[EmployeeTotal],
    employees: Mapping[UUID, Employee],
) -> ReconciliationSummary:
    """Range rollup over payouts with at least one known employee line."""
    counted = [p for p in payouts if any(_is_known(line, employees) for line in p.lines)]
    total_revenue = sum((p.total_revenue for p in counted), ZERO)
    total_costs = sum((p.total_costs for p in counted), ZERO)
    total_employee_payout = sum(
        (
            line.payout_amount
            for p in counted
            for line in p.lines
            if _is_known(line, employees)
        ),
        ZERO,
    )
    total_company_payout = sum((t.total_payout for t in totals), ZERO)
    return ReconciliationSummary(
        total_revenue=total_revenue,
        total_costs=total_costs,
        total_profit=total_revenue - total_employee_payout,
        total_employee_payout=total_employee_payout,
        total_company_payout=total_company_payout,
    )


class ReconciliationService:
    """Service producing the merged payout views.

    Operations:
    - list_payouts: by payout date, newest first, paginated
    - weekly_payouts: by submission time within a UTC week, oldest first
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.employees = EmployeeService(session)
        self.time_entries = TimeEntryService(session)

    async def list_payouts(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ReconciliationReport:
        """Saved and synthesized payouts by payout date."""
        query = select(PercentagePayout)
        if date_from is not None:
            query = query.where(PercentagePayout.payout_date >= date_from)
        if date_to is not None:
            query = query.where(PercentagePayout.payout_date <= date_to)
        result = await run_query(
            self.session, query.order_by(PercentagePayout.payout_date.desc())
        )
        saved = [ReconciledPayout.from_record(p) for p in result.scalars().all()]

        entries = await self._worked_time(date_from, date_to)
        synthesized = synthesize_hourly_payouts(
            entries, await self._hourly_rates(), hourly_pairs(saved)
        )

        merged = sorted(saved + synthesized, key=lambda p: p.payout_date, reverse=True)
        report = await self._report(merged, page, limit)
        report.range_start = date_from
        report.range_end = date_to

        logger.debug(
            "Payout list %s..%s: %d saved, %d synthesized day(s)",
            date_from,
            date_to,
            len(saved),
            len(synthesized),
        )
        return report

    async def weekly_payouts(
        self,
        week_start: date | None = None,
        week_end: date | None = None,
        today: date | None = None,
    ) -> ReconciliationReport:
        """Saved payouts submitted during a UTC week plus synthesized ones."""
        start, end = week_bounds(week_start, week_end, today)

        result = await run_query(
            self.session,
            select(PercentagePayout)
            .where(
                PercentagePayout.created_at >= utc_day_start(start),
                PercentagePayout.created_at <= utc_day_end(end),
            )
            .order_by(PercentagePayout.created_at),
        )
        saved = [ReconciledPayout.from_record(p) for p in result.scalars().all()]

        entries = await self._worked_time(start, end)
        synthesized = synthesize_hourly_payouts(
            entries, await self._hourly_rates(), hourly_pairs(saved)
        )

        merged = sorted(saved + synthesized, key=lambda p: p.created_at)
        report = await self._report(merged, page=1, limit=max(len(merged), 1))
        report.range_start = start
        report.range_end = end

        logger.debug(
            "Weekly payouts %s..%s: %d saved, %d synthesized day(s)",
            start,
            end,
            len(saved),
            len(synthesized),
        )
        return report

    async def _report(
        self, merged: list[ReconciledPayout], page: int, limit: int
    ) -> ReconciliationReport:
        employee_ids = {line.employee_id for p in merged for line in p.lines}
        employees = await self.employees.get_employees_by_id(list(employee_ids))
        totals = employee_totals(merged, employees)
        offset = (max(page, 1) - 1) * limit
        return ReconciliationReport(
            payouts=merged[offset : offset + limit],
            employee_totals=totals,
            summary=summarize(merged, totals, employees),
            total=len(merged),
            page=page,
            limit=limit,
        )

    async def _worked_time(
        self, date_from: date | None, date_to: date | None
    ) -> list[WorkedTime]:
        # Local calendar days compared as-is against the requested range
        entries = await self.time_entries.approved_entries_between(date_from, date_to)
        return [e.worked_time() for e in entries]

    async def _hourly_rates(self) -> dict[UUID, EmployeeRates]:
        """Rates of active employees paid hourly."""
        result = await run_query(
            self.session,
            select(Employee).where(Employee.status == EmployeeStatus.ACTIVE.value),
        )
        return {
            e.employee_id: e.rates() for e in result.scalars().all() if e.rates().is_hourly
        }
