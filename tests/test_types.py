"""Tests for money helpers, recipient references and calendar days."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from pool_payroll.calculators.types import (
    RecipientKind,
    RecipientRef,
    local_calendar_date,
    quantize_money,
    round_to_cents,
    to_decimal,
    utc_calendar_date,
)


class TestMoney:
    """Decimal coercion and rounding."""

    def test_to_decimal_blank_is_zero(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("") == Decimal("0")
        assert to_decimal("not a number") == Decimal("0")

    def test_to_decimal_floats_go_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_half_up(self):
        assert round_to_cents(Decimal("2.345")) == Decimal("2.35")
        assert quantize_money(Decimal("1.00005")) == Decimal("1.0001")


class TestRecipientRef:
    """Resolving references from whatever shape they arrive in."""

    def test_coerce_shapes(self):
        employee_id = uuid4()
        expected = RecipientRef.employee(employee_id)

        assert RecipientRef.coerce(employee_id) == expected
        assert RecipientRef.coerce(str(employee_id)) == expected
        assert RecipientRef.coerce(SimpleNamespace(employee_id=employee_id)) == expected
        assert RecipientRef.coerce(SimpleNamespace(id=str(employee_id))) == expected

    def test_malformed_is_no_match(self):
        ref = RecipientRef.employee(uuid4())
        assert RecipientRef.coerce("garbage") is None
        assert RecipientRef.coerce(None) is None
        assert ref.matches("garbage") is False
        assert ref.matches(SimpleNamespace()) is False

    def test_kind_is_part_of_identity(self):
        user_id = uuid4()
        as_user = RecipientRef(RecipientKind.USER, user_id)
        assert as_user.matches(user_id) is True
        assert as_user != RecipientRef.employee(user_id)


class TestCalendarDays:
    """Local versus UTC calendar days."""

    def test_plain_dates_pass_through(self):
        day = date(2024, 6, 3)
        assert local_calendar_date(day, "America/Chicago") == day
        assert utc_calendar_date(day) == day

    def test_local_day_of_timestamp(self):
        late_evening = datetime(2024, 6, 4, 3, 30, tzinfo=timezone.utc)
        assert local_calendar_date(late_evening, "America/Chicago") == date(2024, 6, 3)
        assert local_calendar_date(late_evening) == date(2024, 6, 4)

    def test_utc_day_of_timestamp(self):
        evening_east = datetime(2024, 6, 3, 21, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_calendar_date(evening_east) == date(2024, 6, 4)
