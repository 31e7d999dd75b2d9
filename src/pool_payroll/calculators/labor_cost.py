"""Labor cost resolution for a day's payout.

The labor cost of a day can come from several places. The order in which
they are consulted is fixed and financially significant:

1. REQUESTS      hourly payout lines submitted for the day
2. MANUAL        a manually entered labor cost, only if (1) is zero
3. TIME_ENTRIES  all approved time entries of the day priced at the
                 employee's hourly rate, only if (1) and (2) are zero

After that provisional figure is chosen, a correction pass sums the flat-rate
pay recorded on the day's approved time entries. That flat-rate total
replaces the provisional figure whenever it is non-zero; otherwise the
provisional figure stands. Hourly rates play no part in the correction, so
a rate submitted on an hourly line is never overridden by the rate on file.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pool_payroll.calculators.types import (
    ZERO,
    EmployeeRates,
    PayoutPayType,
    PayoutRequest,
    WorkedTime,
    quantize_money,
    to_decimal,
)

logger = logging.getLogger(__name__)


class LaborCostSource(str, Enum):
    """Where the final labor cost figure came from."""

    REQUESTS = "requests"
    MANUAL = "manual"
    TIME_ENTRIES = "time_entries"
    FLAT_RATES = "flat_rates"
    NONE = "none"


LABOR_COST_PRECEDENCE: tuple[LaborCostSource, ...] = (
    LaborCostSource.REQUESTS,
    LaborCostSource.MANUAL,
    LaborCostSource.TIME_ENTRIES,
)


@dataclass(frozen=True)
class LaborCostBreakdown:
    """Every candidate figure and the one that won."""

    from_requests: Decimal
    manual: Decimal
    from_time_entries: Decimal
    flat_rate_total: Decimal
    gas_money_total: Decimal
    provisional: Decimal
    provisional_source: LaborCostSource
    final: Decimal
    source: LaborCostSource


def first_positive(*values: Decimal | None) -> Decimal:
    """First value greater than zero, else zero."""
    for value in values:
        if value is not None and value > 0:
            return value
    return ZERO


def time_entry_pay(entry: WorkedTime, rates: EmployeeRates | None) -> Decimal:
    """Wage owed for one time entry.

    A flat rate replaces the hourly computation entirely. Without one, the
    regular part (hours less overtime) is paid at the hourly rate and the
    overtime part at rate times the employee's multiplier.
    """
    if entry.flat_rate > 0:
        return entry.flat_rate
    if rates is None or rates.hourly_rate <= 0:
        return ZERO

    regular_hours = entry.hours_worked - entry.overtime_hours
    regular_pay = regular_hours * rates.hourly_rate
    overtime_pay = entry.overtime_hours * rates.hourly_rate * rates.overtime_multiplier
    return regular_pay + overtime_pay


def flat_rate_by_employee(entries: Iterable[WorkedTime]) -> dict[UUID, Decimal]:
    """Sum of flat-rate overrides per employee."""
    totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        totals[entry.employee_id] += entry.flat_rate
    return dict(totals)


def request_labor_cost(
    request: PayoutRequest,
    rates: EmployeeRates | None,
    flat_rate: Decimal = ZERO,
) -> Decimal:
    """Labor cost contributed by one hourly payout line."""
    if flat_rate > 0:
        return flat_rate
    rate = first_positive(
        to_decimal(request.hourly_rate),
        rates.hourly_rate if rates is not None else None,
    )
    return rate * to_decimal(request.hours)


def resolve_labor_costs(
    requests: Iterable[PayoutRequest],
    rates_by_employee: Mapping[UUID, EmployeeRates],
    day_entries: Iterable[WorkedTime],
    manual_labor_costs: Decimal | None = None,
) -> LaborCostBreakdown:
    """Resolve the labor cost of a day following the documented precedence.

    ``day_entries`` must already be restricted to the approved entries of
    the day.
    """
    entries = list(day_entries)
    flats = flat_rate_by_employee(entries)

    from_requests = ZERO
    for request in requests:
        if request.pay_type != PayoutPayType.HOURLY:
            continue
        from_requests += request_labor_cost(
            request,
            rates_by_employee.get(request.employee_id),
            flats.get(request.employee_id, ZERO),
        )

    manual = to_decimal(manual_labor_costs)
    from_time_entries = sum(
        (time_entry_pay(e, rates_by_employee.get(e.employee_id)) for e in entries),
        ZERO,
    )
    flat_rate_total = sum(flats.values(), ZERO)
    gas_money_total = sum((e.gas_money for e in entries), ZERO)

    provisional = ZERO
    provisional_source = LaborCostSource.NONE
    candidates = {
        LaborCostSource.REQUESTS: from_requests,
        LaborCostSource.MANUAL: manual,
        LaborCostSource.TIME_ENTRIES: from_time_entries,
    }
    for source in LABOR_COST_PRECEDENCE:
        if candidates[source] > 0:
            provisional = candidates[source]
            provisional_source = source
            break

    if flat_rate_total > 0:
        final = flat_rate_total
        source = LaborCostSource.FLAT_RATES
    else:
        final = provisional
        source = provisional_source

    logger.debug(
        "Labor cost: requests=%s manual=%s time_entries=%s -> %s (%s)",
        from_requests,
        manual,
        from_time_entries,
        final,
        source.value,
    )

    return LaborCostBreakdown(
        from_requests=quantize_money(from_requests),
        manual=quantize_money(manual),
        from_time_entries=quantize_money(from_time_entries),
        flat_rate_total=quantize_money(flat_rate_total),
        gas_money_total=quantize_money(gas_money_total),
        provisional=quantize_money(provisional),
        provisional_source=provisional_source,
        final=quantize_money(final),
        source=source,
    )
