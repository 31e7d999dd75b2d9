"""Employee model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pool_payroll.calculators.types import ZERO, EmployeeRates, PayType
from pool_payroll.models.base import Base, TimestampMixin, UpdatedAtMixin


class Employee(Base, TimestampMixin, UpdatedAtMixin):
    """Employee record with pay-type configuration."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    position: Mapped[str | None] = mapped_column(String, nullable=True)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    pay_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)
    annual_salary: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    percentage_rate: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    default_overtime_multiplier: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("1.5")
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'terminated', 'on_leave')",
            name="employee_status_check",
        ),
        CheckConstraint(
            "default_overtime_multiplier >= 1",
            name="employee_overtime_multiplier_check",
        ),
    )

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    def has_pay_type(self, pay_type: PayType | str) -> bool:
        value = pay_type.value if isinstance(pay_type, PayType) else pay_type
        return value in (self.pay_types or [])

    def rates(self) -> EmployeeRates:
        """Pay configuration for the calculators."""
        return EmployeeRates(
            employee_id=self.employee_id,
            pay_types=frozenset(self.pay_types or []),
            hourly_rate=self.hourly_rate or ZERO,
            annual_salary=self.annual_salary or ZERO,
            percentage_rate=self.percentage_rate or ZERO,
            overtime_multiplier=self.default_overtime_multiplier or Decimal("1.5"),
        )
