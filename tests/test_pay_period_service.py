"""Tests for pay period lifecycle and payroll processing."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import EmployeePayout, PayrollRecord, PercentagePayout
from pool_payroll.services.state_machine import InvalidTransitionError
from pool_payroll.services.pay_period_service import PayPeriodService

pytestmark = pytest.mark.asyncio

START = date(2024, 6, 1)
END = date(2024, 6, 14)
WORK_DAY = date(2024, 6, 3)


class TestCreatePayPeriod:
    """Creating pay periods."""

    async def test_creates_open_period(self, session):
        period = await PayPeriodService(session).create_pay_period(" June 1-14 ", START, END)
        assert period.status == "open"
        assert period.name == "June 1-14"

    async def test_requires_fields(self, session):
        with pytest.raises(ValidationError) as exc_info:
            await PayPeriodService(session).create_pay_period("", START, None)
        assert str(exc_info.value) == "Name, start date, and end date are required"

    async def test_end_before_start(self, session):
        with pytest.raises(ValidationError) as exc_info:
            await PayPeriodService(session).create_pay_period("Backwards", END, START)
        assert str(exc_info.value) == "End date must be after start date"

    async def test_single_day_period(self, session):
        period = await PayPeriodService(session).create_pay_period("One day", START, START)
        assert period.start_date == period.end_date


class TestLifecycle:
    """Lock and process transitions."""

    async def test_process_requires_lock(self, session, make_pay_period):
        period = await make_pay_period(START, END)
        with pytest.raises(InvalidTransitionError):
            await PayPeriodService(session).process_pay_period(period.pay_period_id)

    async def test_lock_cannot_regress(self, session, make_pay_period):
        period = await make_pay_period(START, END, status="processed")
        with pytest.raises(InvalidTransitionError):
            await PayPeriodService(session).lock_pay_period(period.pay_period_id)

    async def test_lock_sets_timestamp(self, session, make_pay_period):
        period = await make_pay_period(START, END)
        locked = await PayPeriodService(session).lock_pay_period(period.pay_period_id)
        assert locked.status == "locked"
        assert locked.locked_at is not None

    async def test_missing_period(self, session):
        with pytest.raises(NotFoundError):
            await PayPeriodService(session).lock_pay_period(uuid4())

    async def test_process_hourly_with_overtime(
        self, session, make_employee, make_time_entry, make_pay_period
    ):
        """10 hours with 2 overtime at $20 and 1.5x gives 220."""
        employee = await make_employee()
        await make_time_entry(
            employee.employee_id,
            WORK_DAY,
            hours_worked=Decimal("10"),
            overtime_hours=Decimal("2"),
        )
        # Unapproved and out-of-period time is ignored
        await make_time_entry(employee.employee_id, date(2024, 6, 4), approved=False)
        await make_time_entry(employee.employee_id, date(2024, 6, 20))
        period = await make_pay_period(START, END, status="locked")

        records = await PayPeriodService(session).process_pay_period(period.pay_period_id)

        (record,) = records
        assert record.total_regular_hours == Decimal("10")
        assert record.total_overtime_hours == Decimal("2")
        assert record.total_gross_pay == Decimal("220")
        assert record.overtime_multiplier_used == Decimal("1.5")
        assert record.payment_status == "unpaid"
        assert period.status == "processed"
        assert period.processed_at is not None

        with pytest.raises(InvalidTransitionError):
            await PayPeriodService(session).process_pay_period(period.pay_period_id)

    async def test_daily_payouts_in_range_are_added(
        self, session, make_employee, make_time_entry, make_pay_period
    ):
        employee = await make_employee(pay_types=["hourly", "percentage"], percentage_rate=Decimal("10"))
        await make_time_entry(employee.employee_id, WORK_DAY)
        for payout_date, amount in ((WORK_DAY, "79"), (date(2024, 6, 20), "500")):
            session.add(
                PercentagePayout(
                    payout_date=payout_date,
                    total_revenue=Decimal("1000"),
                    lines=[
                        EmployeePayout(
                            employee_id=employee.employee_id,
                            pay_type="percentage",
                            payout_amount=Decimal(amount),
                        )
                    ],
                )
            )
        await session.flush()
        period = await make_pay_period(START, END, status="locked")

        (record,) = await PayPeriodService(session).process_pay_period(period.pay_period_id)

        assert record.total_daily_payouts == Decimal("79")
        assert record.total_gross_pay == Decimal("239")


class TestUpsert:
    """Re-running aggregation over the same period."""

    async def test_rerun_updates_in_place_and_keeps_payment(
        self, session, make_employee, make_time_entry, make_pay_period
    ):
        employee = await make_employee()
        entry = await make_time_entry(employee.employee_id, WORK_DAY)
        period = await make_pay_period(START, END, status="locked")
        service = PayPeriodService(session)

        (record,) = await service.upsert_payroll_records(
            period, await service.aggregate_payroll(period)
        )
        record.payment_status = "paid"
        record.payment_method = "check"
        entry.hours_worked = Decimal("9")
        entry.overtime_hours = Decimal("1")
        await session.flush()

        (rerun,) = await service.upsert_payroll_records(
            period, await service.aggregate_payroll(period)
        )

        assert rerun.payroll_record_id == record.payroll_record_id
        assert rerun.total_gross_pay == Decimal("190")
        assert rerun.payment_status == "paid"
        assert rerun.payment_method == "check"
        count = await session.execute(select(func.count()).select_from(PayrollRecord))
        assert count.scalar_one() == 1


class TestReadViews:
    """Detail and list views."""

    async def test_detail(self, session, make_employee, make_time_entry, make_pay_period):
        employee = await make_employee(last_name="Zimmer")
        other = await make_employee(last_name="Abbott")
        await make_time_entry(employee.employee_id, WORK_DAY, hours_worked=Decimal("10"), overtime_hours=Decimal("2"))
        await make_time_entry(employee.employee_id, date(2024, 6, 4), entry_type="pto")
        await make_time_entry(other.employee_id, WORK_DAY, hours_worked=Decimal("4"))
        period = await make_pay_period(START, END, status="locked")
        service = PayPeriodService(session)
        await service.process_pay_period(period.pay_period_id)

        detail = await service.get_pay_period_detail(period.pay_period_id)

        assert [s.employee.last_name for s in detail.employee_time] == ["Abbott", "Zimmer"]
        assert detail.summary.total_employees == 2
        assert detail.summary.total_regular_hours == Decimal("14")
        assert detail.summary.total_overtime_hours == Decimal("2")
        assert detail.summary.total_pto_hours == Decimal("8")
        # 4 x 20 + (220 + 8 x 20)
        assert detail.summary.total_gross_pay == Decimal("460")
        assert [r.employee_id for r in detail.payroll_records] == [
            other.employee_id,
            employee.employee_id,
        ]

    async def test_list_newest_first_with_totals(
        self, session, make_employee, make_time_entry, make_pay_period
    ):
        employee = await make_employee()
        await make_time_entry(employee.employee_id, WORK_DAY)
        older = await make_pay_period(START, END, status="locked")
        await make_pay_period(date(2024, 6, 15), date(2024, 6, 28))
        service = PayPeriodService(session)
        await service.process_pay_period(older.pay_period_id)

        items, total = await service.list_pay_periods()

        assert total == 2
        assert [i.pay_period.start_date for i in items] == [date(2024, 6, 15), START]
        assert items[1].total_employees == 1
        assert items[1].total_gross_pay == Decimal("160")
        assert items[1].total_hours == Decimal("8")

        items, total = await service.list_pay_periods(status="open")
        assert total == 1
