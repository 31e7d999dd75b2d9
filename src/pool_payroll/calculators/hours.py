"""Worked-hours and overtime derivation for time entries."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from pool_payroll.calculators.types import ZERO, TimeEntryType, to_decimal

HOURS_PRECISION = Decimal("0.0001")

# Hours in a single day beyond which regular time counts as overtime.
# No weekly threshold applies.
DAILY_OVERTIME_THRESHOLD = Decimal("8")


def compute_hours_worked(
    work_date: date,
    start_time: time | None,
    end_time: time | None,
    break_minutes: Decimal | int | float | str | None = None,
    hours_worked: Decimal | int | float | str | None = None,
) -> Decimal:
    """Hours for a time entry.

    When both start and end times are given the hours are derived from them
    (an end before the start means the shift ran past midnight) less the
    break. Otherwise the explicitly supplied hours are used.
    """
    if start_time is None or end_time is None:
        return max(ZERO, to_decimal(hours_worked)).quantize(
            HOURS_PRECISION, rounding=ROUND_HALF_UP
        )

    start = datetime.combine(work_date, start_time)
    end = datetime.combine(work_date, end_time)
    if end < start:
        end += timedelta(days=1)

    seconds = Decimal(int((end - start).total_seconds()))
    hours = seconds / Decimal(3600) - to_decimal(break_minutes) / Decimal(60)
    return max(ZERO, hours).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def derive_overtime(
    hours_worked: Decimal,
    entry_type: str,
    provided_overtime: Decimal | int | float | str | None = None,
) -> Decimal:
    """Overtime hours for one day.

    Only regular entries are auto-derived: hours past the daily threshold
    become overtime. Other types keep whatever overtime was supplied.
    """
    overtime = to_decimal(provided_overtime)
    if entry_type == TimeEntryType.REGULAR.value and hours_worked > DAILY_OVERTIME_THRESHOLD:
        overtime = hours_worked - DAILY_OVERTIME_THRESHOLD
    return max(ZERO, overtime).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)
