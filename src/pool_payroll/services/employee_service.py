"""Employee registry service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.types import EmployeeStatus, PayType, to_decimal
from pool_payroll.database import flush, run_query
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import Employee

logger = logging.getLogger(__name__)

ARCHIVE_STATUSES = {
    EmployeeStatus.INACTIVE.value,
    EmployeeStatus.TERMINATED.value,
    EmployeeStatus.ON_LEAVE.value,
}


@dataclass
class EmployeeData:
    """Full employee record as submitted for create or replace."""

    first_name: str
    last_name: str
    email: str
    pay_types: list[str] = field(default_factory=list)
    phone: str | None = None
    position: str | None = None
    department: str | None = None
    hire_date: date | None = None
    termination_date: date | None = None
    hourly_rate: Decimal | None = None
    annual_salary: Decimal | None = None
    percentage_rate: Decimal | None = None
    default_overtime_multiplier: Decimal | None = None
    status: str = EmployeeStatus.ACTIVE.value
    notes: str | None = None


def validate_employee_data(data: EmployeeData) -> list[str]:
    """Validate an employee record, returning any errors.

    Returns list of error messages (empty if valid).
    """
    errors: list[str] = []

    if not (data.first_name or "").strip():
        errors.append("First name is required")
    if not (data.last_name or "").strip():
        errors.append("Last name is required")
    if not (data.email or "").strip():
        errors.append("Email is required")

    valid_pay_types = {p.value for p in PayType}
    pay_types = set(data.pay_types or [])
    if not pay_types:
        errors.append("At least one pay type is required")
    unknown = pay_types - valid_pay_types
    if unknown:
        errors.append(f"Unknown pay type(s): {', '.join(sorted(unknown))}")

    if PayType.HOURLY.value in pay_types and to_decimal(data.hourly_rate) <= 0:
        errors.append("Hourly rate must be greater than 0 for hourly employees")
    if PayType.SALARY.value in pay_types and to_decimal(data.annual_salary) <= 0:
        errors.append("Annual salary must be greater than 0 for salary employees")
    if PayType.PERCENTAGE.value in pay_types:
        rate = to_decimal(data.percentage_rate)
        if rate <= 0 or rate > 100:
            errors.append("Percentage rate must be between 0 and 100 for percentage employees")

    multiplier = data.default_overtime_multiplier
    if multiplier is not None and to_decimal(multiplier) < 1:
        errors.append("Overtime multiplier must be at least 1")

    if data.status not in {s.value for s in EmployeeStatus}:
        errors.append(f"Unknown status '{data.status}'")

    return errors


class EmployeeService:
    """Service for the employee registry.

    Operations:
    - create_employee / update_employee: full-record writes with validation
    - archive_employee: status transition, never deletion
    - get_employee / list_employees
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employee(self, employee_id: UUID) -> Employee:
        """Load an employee or raise NotFoundError."""
        result = await run_query(
            self.session, select(Employee).where(Employee.employee_id == employee_id)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def get_employees_by_id(
        self, employee_ids: list[UUID] | None = None
    ) -> dict[UUID, Employee]:
        """Load employees keyed by id; all employees when no ids are given."""
        query = select(Employee)
        if employee_ids is not None:
            if not employee_ids:
                return {}
            query = query.where(Employee.employee_id.in_(employee_ids))
        result = await run_query(self.session, query)
        return {e.employee_id: e for e in result.scalars().all()}

    async def list_employees(
        self,
        status: str | None = None,
        pay_type: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Employee], int]:
        """List employees sorted by name, returning (page, total)."""
        query = select(Employee)
        if status:
            query = query.where(Employee.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Employee.first_name).like(pattern),
                    func.lower(Employee.last_name).like(pattern),
                    func.lower(Employee.email).like(pattern),
                )
            )
        query = query.order_by(Employee.last_name, Employee.first_name)

        result = await run_query(self.session, query)
        employees = list(result.scalars().all())
        # pay_types is a JSON list, filtered here for portability
        if pay_type:
            employees = [e for e in employees if e.has_pay_type(pay_type)]

        total = len(employees)
        offset = (max(page, 1) - 1) * limit
        return employees[offset : offset + limit], total

    async def create_employee(self, data: EmployeeData) -> Employee:
        """Create an employee after validation."""
        self._validate(data)
        email = data.email.strip().lower()
        await self._ensure_email_unique(email)

        employee = Employee(email=email)
        self._apply(employee, data)
        self.session.add(employee)
        await flush(self.session)

        logger.info("Created employee %s (%s)", employee.employee_id, email)
        return employee

    async def update_employee(self, employee_id: UUID, data: EmployeeData) -> Employee:
        """Replace an employee record with new data."""
        employee = await self.get_employee(employee_id)
        self._validate(data)
        email = data.email.strip().lower()
        await self._ensure_email_unique(email, exclude_id=employee_id)

        employee.email = email
        self._apply(employee, data)
        await flush(self.session)

        logger.info("Updated employee %s", employee_id)
        return employee

    async def archive_employee(
        self,
        employee_id: UUID,
        status: str = EmployeeStatus.INACTIVE.value,
        today: date | None = None,
    ) -> Employee:
        """Move an employee out of active status.

        Terminating also stamps the termination date when none is set.
        """
        if status not in ARCHIVE_STATUSES:
            raise ValidationError(
                f"Cannot archive employee to status '{status}'",
                {"allowed": sorted(ARCHIVE_STATUSES)},
            )
        employee = await self.get_employee(employee_id)
        employee.status = status
        if status == EmployeeStatus.TERMINATED.value and employee.termination_date is None:
            employee.termination_date = today or date.today()
        await flush(self.session)

        logger.info("Employee %s status set to %s", employee_id, status)
        return employee

    def _validate(self, data: EmployeeData) -> None:
        errors = validate_employee_data(data)
        if errors:
            raise ValidationError("; ".join(errors), {"errors": errors})

    async def _ensure_email_unique(self, email: str, exclude_id: UUID | None = None) -> None:
        query = select(Employee.employee_id).where(Employee.email == email)
        if exclude_id is not None:
            query = query.where(Employee.employee_id != exclude_id)
        result = await run_query(self.session, query)
        if result.first() is not None:
            raise ValidationError(f"Email {email} is already in use", {"email": email})

    def _apply(self, employee: Employee, data: EmployeeData) -> None:
        """Copy submitted fields, clearing rates of unselected pay types."""
        pay_types = [p.value for p in PayType if p.value in set(data.pay_types)]

        employee.first_name = data.first_name.strip()
        employee.last_name = data.last_name.strip()
        employee.phone = data.phone
        employee.position = data.position
        employee.department = data.department
        employee.hire_date = data.hire_date
        employee.termination_date = data.termination_date
        employee.notes = data.notes
        employee.status = data.status
        employee.pay_types = pay_types
        employee.hourly_rate = (
            to_decimal(data.hourly_rate) if PayType.HOURLY.value in pay_types else None
        )
        employee.annual_salary = (
            to_decimal(data.annual_salary) if PayType.SALARY.value in pay_types else None
        )
        employee.percentage_rate = (
            to_decimal(data.percentage_rate) if PayType.PERCENTAGE.value in pay_types else None
        )
        employee.default_overtime_multiplier = (
            to_decimal(data.default_overtime_multiplier)
            if data.default_overtime_multiplier is not None
            else Decimal("1.5")
        )
