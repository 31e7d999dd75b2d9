"""Payroll and payout services."""

from pool_payroll.services.employee_service import EmployeeData, EmployeeService
from pool_payroll.services.locking_service import PeriodLockService
from pool_payroll.services.pay_period_service import PayPeriodService
from pool_payroll.services.payout_service import PayoutService, PayoutSubmission
from pool_payroll.services.payroll_service import PayrollService
from pool_payroll.services.reconciliation import ReconciliationService
from pool_payroll.services.state_machine import (
    InvalidTransitionError,
    PayPeriodStateMachine,
    PayPeriodStatus,
)
from pool_payroll.services.time_entry_service import JobLink, TimeEntryData, TimeEntryService

__all__ = [
    "EmployeeData",
    "EmployeeService",
    "PeriodLockService",
    "PayPeriodService",
    "PayoutService",
    "PayoutSubmission",
    "PayrollService",
    "ReconciliationService",
    "InvalidTransitionError",
    "PayPeriodStateMachine",
    "PayPeriodStatus",
    "JobLink",
    "TimeEntryData",
    "TimeEntryService",
]
