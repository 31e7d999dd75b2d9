"""Tests for payroll records: payments and CSV export."""

import csv
import io
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from pool_payroll.config import CompanySettings
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import PayrollRecord
from pool_payroll.services.payroll_service import CSV_COLUMNS, PayrollService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def make_record(session):
    """Factory for payroll records."""

    async def _make(employee, pay_period, **overrides):
        fields = {
            "employee_id": employee.employee_id,
            "pay_period_id": pay_period.pay_period_id,
            "total_regular_hours": Decimal("10"),
            "total_overtime_hours": Decimal("2"),
            "total_pto_hours": Decimal("0"),
            "total_gross_pay": Decimal("220"),
            "total_daily_payouts": Decimal("0"),
            "overtime_multiplier_used": Decimal("1.5"),
        }
        fields.update(overrides)
        record = PayrollRecord(**fields)
        session.add(record)
        await session.flush()
        return record

    return _make


class TestRecordPayment:
    """Payment fields on a payroll record."""

    async def test_defaults_to_paid_today(
        self, session, make_employee, make_pay_period, make_record
    ):
        employee = await make_employee()
        period = await make_pay_period(date(2024, 6, 1), date(2024, 6, 14), status="processed")
        record = await make_record(employee, period)

        paid = await PayrollService(session).record_payment(
            record.payroll_record_id,
            payment_method="direct_deposit",
            transaction_reference="ACH-1001",
            today=date(2024, 6, 18),
        )

        assert paid.payment_status == "paid"
        assert paid.payment_date == date(2024, 6, 18)
        assert paid.payment_method == "direct_deposit"
        assert paid.transaction_reference == "ACH-1001"
        # Aggregates are untouched
        assert paid.total_gross_pay == Decimal("220")

    async def test_rejects_unknown_status_and_method(
        self, session, make_employee, make_pay_period, make_record
    ):
        employee = await make_employee()
        period = await make_pay_period(date(2024, 6, 1), date(2024, 6, 14), status="processed")
        record = await make_record(employee, period)
        service = PayrollService(session)

        with pytest.raises(ValidationError):
            await service.record_payment(record.payroll_record_id, payment_status="bounced")
        with pytest.raises(ValidationError):
            await service.record_payment(record.payroll_record_id, payment_method="crypto")

    async def test_missing_record(self, session):
        with pytest.raises(NotFoundError):
            await PayrollService(session).record_payment(uuid4())


class TestListPayrollRecords:
    """Filtering payroll records."""

    async def test_filters(self, session, make_employee, make_pay_period, make_record):
        first = await make_employee()
        second = await make_employee()
        period = await make_pay_period(date(2024, 6, 1), date(2024, 6, 14), status="processed")
        await make_record(first, period, payment_status="paid")
        await make_record(second, period)
        service = PayrollService(session)

        records, total = await service.list_payroll_records(pay_period_id=period.pay_period_id)
        assert total == 2

        records, total = await service.list_payroll_records(payment_status="unpaid")
        assert [r.employee_id for r in records] == [second.employee_id]

        records, total = await service.list_payroll_records(employee_id=first.employee_id)
        assert total == 1


class TestExportCsv:
    """CSV export of payroll records."""

    async def test_columns_formatting_and_escaping(
        self, session, make_employee, make_pay_period, make_record
    ):
        quoted = await make_employee(first_name='Jo "JJ"', last_name="Baker, Jr.")
        plain = await make_employee(first_name="Ann", last_name="Adams")
        period = await make_pay_period(
            date(2024, 6, 1), date(2024, 6, 14), status="processed", name="June\nfirst half"
        )
        await make_record(quoted, period, total_gross_pay=Decimal("1234.5"))
        await make_record(
            plain,
            period,
            total_gross_pay=Decimal("99.999"),
            payment_status="paid",
            payment_date=date(2024, 6, 18),
            payment_method="check",
        )

        text = await PayrollService(session).export_csv(period.pay_period_id)

        assert text.splitlines()[0] == ",".join(CSV_COLUMNS)
        assert '"Jo ""JJ"" Baker, Jr."' in text
        assert '"June\nfirst half"' in text

        rows = list(csv.reader(io.StringIO(text)))
        assert len(rows) == 3
        header, adams, baker = rows
        assert adams == [
            "Ann Adams",
            plain.email,
            "June\nfirst half",
            "10.00",
            "2.00",
            "0.00",
            "100.00",
            "paid",
            "2024-06-18",
            "check",
        ]
        assert baker[0] == 'Jo "JJ" Baker, Jr.'
        assert baker[6] == "1234.50"
        assert baker[7:] == ["unpaid", "", ""]

    async def test_empty_export_has_header_only(self, session):
        text = await PayrollService(session).export_csv()
        assert text == ",".join(CSV_COLUMNS) + "\n"

    async def test_filename(self, session):
        service = PayrollService(session, CompanySettings(company_name="APS - Aboveground Pool Sales"))
        assert (
            service.export_filename(date(2024, 6, 30))
            == "aps-aboveground-pool-sales-payroll-export-2024-06-30.csv"
        )
