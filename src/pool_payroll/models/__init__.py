"""ORM models."""

from pool_payroll.models.base import Base, TimestampMixin, UpdatedAtMixin
from pool_payroll.models.employee import Employee
from pool_payroll.models.payroll import (
    EmployeePayout,
    PayPeriod,
    PayrollRecord,
    PercentagePayout,
    TimeEntry,
    TimeEntryJob,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UpdatedAtMixin",
    "Employee",
    "EmployeePayout",
    "PayPeriod",
    "PayrollRecord",
    "PercentagePayout",
    "TimeEntry",
    "TimeEntryJob",
]
