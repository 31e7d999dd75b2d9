"""Daily percentage payout calculation.

Pure computation: callers load the employees and the day's approved time
entries and pass them in; nothing here touches the database.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from uuid import UUID

from pool_payroll.calculators.labor_cost import (
    first_positive,
    flat_rate_by_employee,
    resolve_labor_costs,
)
from pool_payroll.calculators.types import (
    ZERO,
    DailyPayoutResult,
    EmployeeRates,
    PayoutLine,
    PayoutPayType,
    PayoutRequest,
    WorkedTime,
    quantize_money,
    to_decimal,
)
from pool_payroll.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PROFIT_SHARE_PERCENTAGE = Decimal("20")


def percentage_payout(total_profit: Decimal, rate: Decimal) -> Decimal:
    """Share of the day's profit at ``rate`` percent."""
    return quantize_money(total_profit * rate / Decimal(100))


def hourly_payout(
    request: PayoutRequest,
    rates: EmployeeRates | None,
    flat_rate: Decimal = ZERO,
) -> PayoutLine:
    """Payout line for an hourly request.

    A flat rate replaces rate x hours; such a line carries no rate or hours.
    """
    if flat_rate > 0:
        return PayoutLine(
            employee_id=request.employee_id,
            pay_type=PayoutPayType.HOURLY,
            payout_amount=quantize_money(flat_rate),
            flat_rate=flat_rate,
        )

    rate = first_positive(
        to_decimal(request.hourly_rate),
        rates.hourly_rate if rates is not None else None,
    )
    hours = to_decimal(request.hours)
    return PayoutLine(
        employee_id=request.employee_id,
        pay_type=PayoutPayType.HOURLY,
        payout_amount=quantize_money(rate * hours),
        hourly_rate=rate,
        hours=hours,
    )


def calculate_daily_payout(
    work_date: date,
    total_revenue: Decimal,
    requests: Iterable[PayoutRequest],
    rates_by_employee: Mapping[UUID, EmployeeRates],
    day_entries: Iterable[WorkedTime] = (),
    *,
    job_costs: Decimal | None = None,
    materials: Decimal | None = None,
    manual_labor_costs: Decimal | None = None,
    profit_share_percentage: Decimal = DEFAULT_PROFIT_SHARE_PERCENTAGE,
) -> DailyPayoutResult:
    """Compute the aggregates and employee lines of one day's payout.

    Pipeline:
    1) Resolve labor cost (see ``labor_cost`` for the precedence)
    2) total_costs = job costs + materials + labor + gas money
    3) total_profit = revenue - total_costs
    4) Percentage lines: profit x rate / 100, summed
    5) Hourly lines: flat rate if recorded, else rate x hours
    6) calculated_payout = profit x profit share / 100 (informational)

    Raises:
        ValidationError: if the day made a loss.
    """
    request_list = list(requests)
    entries = [e for e in day_entries if e.approved]

    labor = resolve_labor_costs(
        request_list, rates_by_employee, entries, manual_labor_costs
    )

    revenue = quantize_money(to_decimal(total_revenue))
    job_costs_value = quantize_money(to_decimal(job_costs))
    materials_value = quantize_money(to_decimal(materials))
    total_costs = job_costs_value + materials_value + labor.final + labor.gas_money_total
    total_profit = revenue - total_costs
    if total_profit < 0:
        raise ValidationError(
            "Total profit is negative; a loss day cannot be saved",
            {"total_costs": str(total_costs), "total_profit": str(total_profit)},
        )

    flats = flat_rate_by_employee(entries)
    lines: list[PayoutLine] = []
    total_percentage_payout = ZERO

    for request in request_list:
        rates = rates_by_employee.get(request.employee_id)

        if request.pay_type == PayoutPayType.HOURLY:
            lines.append(
                hourly_payout(request, rates, flats.get(request.employee_id, ZERO))
            )
            continue

        rate = first_positive(
            to_decimal(request.percentage_rate),
            rates.percentage_rate if rates is not None else None,
        )
        amount = percentage_payout(total_profit, rate)
        total_percentage_payout += amount
        lines.append(
            PayoutLine(
                employee_id=request.employee_id,
                pay_type=PayoutPayType.PERCENTAGE,
                payout_amount=amount,
                percentage_rate=rate,
            )
        )

    logger.info(
        "Daily payout for %s: revenue=%s costs=%s profit=%s labor_source=%s",
        work_date,
        revenue,
        total_costs,
        total_profit,
        labor.source.value,
    )

    return DailyPayoutResult(
        work_date=work_date,
        total_revenue=revenue,
        job_costs=job_costs_value,
        materials=materials_value,
        labor_costs=labor.final,
        gas_money=labor.gas_money_total,
        total_costs=total_costs,
        total_profit=total_profit,
        total_percentage_payout=total_percentage_payout,
        profit_percentage=profit_share_percentage,
        calculated_payout=quantize_money(total_profit * profit_share_percentage / Decimal(100)),
        labor_cost_source=labor.source.value,
        lines=lines,
    )
