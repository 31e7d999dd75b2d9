"""Payroll and payout calculators."""

from pool_payroll.calculators.engine import PeriodPay, compute_period_pay
from pool_payroll.calculators.hours import compute_hours_worked, derive_overtime
from pool_payroll.calculators.labor_cost import (
    LABOR_COST_PRECEDENCE,
    LaborCostBreakdown,
    LaborCostSource,
    resolve_labor_costs,
    time_entry_pay,
)
from pool_payroll.calculators.payout_calculator import calculate_daily_payout

__all__ = [
    "PeriodPay",
    "compute_period_pay",
    "compute_hours_worked",
    "derive_overtime",
    "LABOR_COST_PRECEDENCE",
    "LaborCostBreakdown",
    "LaborCostSource",
    "resolve_labor_costs",
    "time_entry_pay",
    "calculate_daily_payout",
]
