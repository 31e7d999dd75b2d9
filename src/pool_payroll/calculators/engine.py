"""Pay period gross pay engine.

Aggregates approved time entries per employee and turns them into one gross
pay figure for the period. Pure computation over already-loaded inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from pool_payroll.calculators.types import (
    ZERO,
    EmployeeRates,
    PayoutLine,
    PayoutPayType,
    RecipientRef,
    TimeEntryType,
    WorkedTime,
    quantize_money,
)

DAYS_PER_YEAR = Decimal(365)

# Entry types whose hours count as paid time off.
PTO_ENTRY_TYPES = frozenset({TimeEntryType.PTO.value, TimeEntryType.SICK.value})


@dataclass
class EmployeeHours:
    """Hours of one employee over a pay period."""

    employee_id: UUID
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    pto_hours: Decimal = ZERO
    entries: list[WorkedTime] = field(default_factory=list)

    def add(self, entry: WorkedTime) -> None:
        self.entries.append(entry)
        if entry.entry_type == TimeEntryType.REGULAR.value:
            self.regular_hours += entry.hours_worked
            self.overtime_hours += entry.overtime_hours
        elif entry.entry_type in PTO_ENTRY_TYPES:
            self.pto_hours += entry.hours_worked


@dataclass
class PeriodPay:
    """Gross pay of one employee for a pay period."""

    employee_id: UUID
    regular_hours: Decimal
    overtime_hours: Decimal
    pto_hours: Decimal
    wage_pay: Decimal
    daily_payouts: Decimal
    gross_pay: Decimal
    overtime_multiplier: Decimal


def aggregate_hours(entries: Iterable[WorkedTime]) -> dict[UUID, EmployeeHours]:
    """Group approved entries by employee and sum their hours.

    Regular and overtime hours come from ``regular`` entries only; PTO hours
    from ``pto`` and ``sick`` entries. Other types are kept but not summed.
    """
    totals: dict[UUID, EmployeeHours] = {}
    for entry in entries:
        if not entry.approved:
            continue
        if entry.employee_id not in totals:
            totals[entry.employee_id] = EmployeeHours(entry.employee_id)
        totals[entry.employee_id].add(entry)
    return totals


def days_in_period(start_date: date, end_date: date) -> int:
    """Calendar days in an inclusive date range."""
    return (end_date - start_date).days + 1


def wage_pay(
    hours: EmployeeHours,
    rates: EmployeeRates,
    start_date: date,
    end_date: date,
) -> Decimal:
    """Wage or salary portion of gross pay.

    Hourly wins over salary for employees with both pay types. Overtime is
    part of the regular hours, so only the remainder is paid at base rate:

        (regular - overtime) x rate + overtime x rate x multiplier + pto x rate

    Salary is a daily rate times the days in the period; hours are tracked
    but do not enter the formula.
    """
    if rates.is_hourly:
        rate = rates.hourly_rate
        base_hours = hours.regular_hours - hours.overtime_hours
        return (
            base_hours * rate
            + hours.overtime_hours * rate * rates.overtime_multiplier
            + hours.pto_hours * rate
        )
    if rates.is_salary:
        daily_rate = rates.annual_salary / DAYS_PER_YEAR
        return daily_rate * days_in_period(start_date, end_date)
    return ZERO


def daily_payout_total(employee_id: UUID, lines: Iterable[PayoutLine]) -> Decimal:
    """Sum of an employee's percentage payout lines."""
    recipient = RecipientRef.employee(employee_id)
    total = ZERO
    for line in lines:
        if line.pay_type != PayoutPayType.PERCENTAGE:
            continue
        if recipient.matches(line.employee_id):
            total += line.payout_amount
    return total


def compute_period_pay(
    entries: Iterable[WorkedTime],
    rates_by_employee: Mapping[UUID, EmployeeRates],
    payout_lines: Iterable[PayoutLine],
    start_date: date,
    end_date: date,
) -> list[PeriodPay]:
    """Gross pay for every employee with approved time in the period.

    ``payout_lines`` are the daily payout lines dated within the period;
    only percentage lines are added to gross pay.
    """
    lines = list(payout_lines)
    results: list[PeriodPay] = []

    for employee_id, hours in aggregate_hours(entries).items():
        rates = rates_by_employee.get(employee_id)
        if rates is None:
            continue

        wages = wage_pay(hours, rates, start_date, end_date)
        payouts = daily_payout_total(employee_id, lines)
        results.append(
            PeriodPay(
                employee_id=employee_id,
                regular_hours=hours.regular_hours,
                overtime_hours=hours.overtime_hours,
                pto_hours=hours.pto_hours,
                wage_pay=quantize_money(wages),
                daily_payouts=quantize_money(payouts),
                gross_pay=quantize_money(wages + payouts),
                overtime_multiplier=rates.overtime_multiplier,
            )
        )

    return results
