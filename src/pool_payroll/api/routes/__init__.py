"""API routes."""

from pool_payroll.api.routes.employees import router as employees_router
from pool_payroll.api.routes.health import router as health_router
from pool_payroll.api.routes.pay_periods import router as pay_periods_router
from pool_payroll.api.routes.payouts import router as payouts_router
from pool_payroll.api.routes.payroll_records import router as payroll_records_router
from pool_payroll.api.routes.time_entries import router as time_entries_router

__all__ = [
    "employees_router",
    "health_router",
    "pay_periods_router",
    "payouts_router",
    "payroll_records_router",
    "time_entries_router",
]
