"""Pay period, time entry, daily payout and payroll record models."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pool_payroll.calculators.types import (
    ZERO,
    PayoutLine,
    PayoutPayType,
    WorkedTime,
)
from pool_payroll.models.base import Base, TimestampMixin, UpdatedAtMixin

MONEY = Numeric(14, 4)
HOURS = Numeric(8, 4)


# ===== Pay Periods =====


class PayPeriod(Base, TimestampMixin):
    """Administrative date range over which payroll is aggregated."""

    __tablename__ = "pay_period"

    pay_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('open', 'locked', 'processed')",
            name="pay_period_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="pay_period_dates_check"),
    )


# ===== Time Entries =====


class TimeEntry(Base, TimestampMixin, UpdatedAtMixin):
    """Hours worked by one employee on one local calendar day."""

    __tablename__ = "time_entry"

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours_worked: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=ZERO)
    overtime_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=ZERO)
    entry_type: Mapped[str] = mapped_column(String, nullable=False, default="regular")
    flat_rate: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    gas_money: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by_user_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('regular', 'overtime', 'pto', 'sick', 'holiday')",
            name="time_entry_type_check",
        ),
        CheckConstraint("hours_worked >= 0", name="time_entry_hours_check"),
        CheckConstraint("overtime_hours >= 0", name="time_entry_overtime_check"),
    )

    jobs: Mapped[list[TimeEntryJob]] = relationship(
        back_populates="time_entry",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def worked_time(self) -> WorkedTime:
        """Hours and overrides for the calculators."""
        return WorkedTime(
            employee_id=self.employee_id,
            work_date=self.work_date,
            hours_worked=self.hours_worked or ZERO,
            overtime_hours=self.overtime_hours or ZERO,
            entry_type=self.entry_type,
            flat_rate=self.flat_rate or ZERO,
            gas_money=self.gas_money or ZERO,
            approved=self.approved,
        )


class TimeEntryJob(Base):
    """Link from a time entry to a job it was worked on."""

    __tablename__ = "time_entry_job"

    time_entry_job_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    time_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_entry.time_entry_id", ondelete="CASCADE"),
        nullable=False,
    )
    job_id: Mapped[UUID | None] = mapped_column(nullable=True)
    job_name: Mapped[str | None] = mapped_column(String, nullable=True)

    time_entry: Mapped[TimeEntry] = relationship(back_populates="jobs")


# ===== Daily Percentage Payouts =====


class PercentagePayout(Base, TimestampMixin):
    """One day's profit computation with its employee payout lines."""

    __tablename__ = "percentage_payout"

    percentage_payout_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payout_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    job_costs: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    materials: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    labor_costs: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    gas_money: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    total_costs: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    total_profit: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    total_percentage_payout: Mapped[Decimal] = mapped_column(
        MONEY, nullable=False, default=ZERO
    )
    profit_percentage: Mapped[Decimal] = mapped_column(
        Numeric(7, 4), nullable=False, default=Decimal("20")
    )
    calculated_payout: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    labor_cost_source: Mapped[str] = mapped_column(String, nullable=False, default="none")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[UUID | None] = mapped_column(nullable=True)

    lines: Mapped[list[EmployeePayout]] = relationship(
        back_populates="percentage_payout",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def payout_lines(self) -> list[PayoutLine]:
        """Lines in calculator form."""
        return [line.to_line() for line in self.lines]


class EmployeePayout(Base):
    """One employee's line in a daily payout."""

    __tablename__ = "employee_payout"

    employee_payout_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    percentage_payout_id: Mapped[UUID] = mapped_column(
        ForeignKey("percentage_payout.percentage_payout_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    pay_type: Mapped[str] = mapped_column(String, nullable=False)
    percentage_rate: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    hours: Mapped[Decimal | None] = mapped_column(HOURS, nullable=True)
    flat_rate: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    payout_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)

    __table_args__ = (
        CheckConstraint(
            "pay_type IN ('percentage', 'hourly')",
            name="employee_payout_pay_type_check",
        ),
    )

    percentage_payout: Mapped[PercentagePayout] = relationship(back_populates="lines")

    def to_line(self) -> PayoutLine:
        return PayoutLine(
            employee_id=self.employee_id,
            pay_type=PayoutPayType(self.pay_type),
            payout_amount=self.payout_amount or ZERO,
            percentage_rate=self.percentage_rate,
            hourly_rate=self.hourly_rate,
            hours=self.hours,
            flat_rate=self.flat_rate,
        )


# ===== Payroll Records =====


class PayrollRecord(Base, TimestampMixin, UpdatedAtMixin):
    """Gross pay of one employee for one pay period."""

    __tablename__ = "payroll_record"

    payroll_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    pay_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("pay_period.pay_period_id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Aggregates, reassigned on every processing run
    total_regular_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=ZERO)
    total_overtime_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=ZERO)
    total_pto_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=ZERO)
    total_gross_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    total_daily_payouts: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=ZERO)
    overtime_multiplier_used: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("1.5")
    )

    # Payment, set by the payment-recording action only
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="unpaid")
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "pay_period_id", name="payroll_record_employee_period_unique"
        ),
        CheckConstraint(
            "payment_status IN ('unpaid', 'scheduled', 'paid')",
            name="payroll_record_payment_status_check",
        ),
        CheckConstraint(
            "payment_method IS NULL OR payment_method IN "
            "('check', 'direct_deposit', 'cash', 'other')",
            name="payroll_record_payment_method_check",
        ),
    )
