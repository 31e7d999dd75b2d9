"""Type definitions shared by the payroll calculators and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, NewType
from uuid import UUID
from zoneinfo import ZoneInfo

# ===== Calendar dates =====

# Day of a time entry, interpreted in the business timezone.
LocalCalendarDate = NewType("LocalCalendarDate", date)

# Day of a pay period boundary or a daily payout, interpreted in UTC.
UTCCalendarDate = NewType("UTCCalendarDate", date)


def local_calendar_date(value: date | datetime, tz_name: str = "UTC") -> LocalCalendarDate:
    """Calendar day of a time entry in the business timezone."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz_name))
        return LocalCalendarDate(value.date())
    return LocalCalendarDate(value)


def utc_calendar_date(value: date | datetime) -> UTCCalendarDate:
    """Calendar day of a payout or pay period boundary in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return UTCCalendarDate(value.date())
    return UTCCalendarDate(value)


def utc_day_start(day: date) -> datetime:
    """First instant of a UTC calendar day."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def utc_day_end(day: date) -> datetime:
    """Last instant of a UTC calendar day."""
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


# ===== Enumerations =====


class PayType(str, Enum):
    """Employee pay types."""

    HOURLY = "hourly"
    SALARY = "salary"
    PERCENTAGE = "percentage"


class EmployeeStatus(str, Enum):
    """Employee lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
    ON_LEAVE = "on_leave"


class TimeEntryType(str, Enum):
    """Time entry types."""

    REGULAR = "regular"
    OVERTIME = "overtime"
    PTO = "pto"
    SICK = "sick"
    HOLIDAY = "holiday"


class PayoutPayType(str, Enum):
    """Pay type of a line in a daily payout."""

    PERCENTAGE = "percentage"
    HOURLY = "hourly"


class PaymentStatus(str, Enum):
    """Payroll record payment status."""

    UNPAID = "unpaid"
    SCHEDULED = "scheduled"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """How a payroll record was paid."""

    CHECK = "check"
    DIRECT_DEPOSIT = "direct_deposit"
    CASH = "cash"
    OTHER = "other"


# ===== Recipient references =====


class RecipientKind(str, Enum):
    """What a payout or payment recipient refers to."""

    EMPLOYEE = "employee"
    USER = "user"


@dataclass(frozen=True)
class RecipientRef:
    """Tagged reference to an Employee or a User."""

    kind: RecipientKind
    id: UUID

    @classmethod
    def employee(cls, employee_id: UUID) -> RecipientRef:
        return cls(RecipientKind.EMPLOYEE, employee_id)

    @classmethod
    def coerce(
        cls, value: Any, kind: RecipientKind = RecipientKind.EMPLOYEE
    ) -> RecipientRef | None:
        """Resolve a reference from any shape it is found in.

        Accepts a RecipientRef, a UUID, a UUID string, or an object exposing
        ``employee_id`` or ``id``. Anything else is no match.
        """
        if value is None:
            return None
        if isinstance(value, RecipientRef):
            return value
        if isinstance(value, UUID):
            return cls(kind, value)
        if isinstance(value, str):
            try:
                return cls(kind, UUID(value))
            except ValueError:
                return None
        for attr in ("employee_id", "id"):
            nested = getattr(value, attr, None)
            if nested is not None and nested is not value:
                return cls.coerce(nested, kind)
        return None

    def matches(self, other: Any) -> bool:
        """Compare against a reference of any shape; malformed means False."""
        ref = RecipientRef.coerce(other, self.kind)
        return ref is not None and ref == self


# ===== Money =====

MONEY_PRECISION = Decimal("0.0001")  # internal and persisted precision
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce numeric input to Decimal; missing or blank means zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def quantize_money(amount: Decimal) -> Decimal:
    """Round to the internal precision (4 places)."""
    return amount.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


# ===== Calculation inputs =====


@dataclass(frozen=True)
class EmployeeRates:
    """Pay configuration of one employee as the calculators see it."""

    employee_id: UUID
    pay_types: frozenset[str]
    hourly_rate: Decimal = ZERO
    annual_salary: Decimal = ZERO
    percentage_rate: Decimal = ZERO
    overtime_multiplier: Decimal = Decimal("1.5")

    @property
    def is_hourly(self) -> bool:
        return PayType.HOURLY.value in self.pay_types

    @property
    def is_salary(self) -> bool:
        return PayType.SALARY.value in self.pay_types


@dataclass(frozen=True)
class WorkedTime:
    """Hours and overrides of one time entry as the calculators see it."""

    employee_id: UUID
    work_date: date
    hours_worked: Decimal
    overtime_hours: Decimal = ZERO
    entry_type: str = TimeEntryType.REGULAR.value
    flat_rate: Decimal = ZERO
    gas_money: Decimal = ZERO
    approved: bool = True


@dataclass(frozen=True)
class PayoutRequest:
    """One employee line submitted for a day's payout."""

    employee_id: UUID
    pay_type: PayoutPayType = PayoutPayType.PERCENTAGE
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None


@dataclass
class PayoutLine:
    """A computed employee payout for a day."""

    employee_id: UUID
    pay_type: PayoutPayType
    payout_amount: Decimal
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None
    flat_rate: Decimal | None = None


@dataclass
class DailyPayoutResult:
    """Day-level aggregates and the computed employee lines."""

    work_date: date
    total_revenue: Decimal
    job_costs: Decimal
    materials: Decimal
    labor_costs: Decimal
    gas_money: Decimal
    total_costs: Decimal
    total_profit: Decimal
    total_percentage_payout: Decimal
    profit_percentage: Decimal
    calculated_payout: Decimal
    labor_cost_source: str
    lines: list[PayoutLine] = field(default_factory=list)
