"""Payroll record service - listing, payment recording and CSV export."""

from __future__ import annotations

import csv
import io
import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pool_payroll.calculators.types import (
    PaymentMethod,
    PaymentStatus,
    round_to_cents,
    to_decimal,
)
from pool_payroll.config import CompanySettings
from pool_payroll.database import flush, run_query
from pool_payroll.errors import NotFoundError, ValidationError
from pool_payroll.models import Employee, PayPeriod, PayrollRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "Employee Name",
    "Email",
    "Pay Period",
    "Regular Hours",
    "Overtime Hours",
    "PTO Hours",
    "Gross Pay",
    "Payment Status",
    "Payment Date",
    "Payment Method",
)


class PayrollService:
    """Service for payroll records after a pay period is processed."""

    def __init__(self, session: AsyncSession, company: CompanySettings | None = None):
        self.session = session
        self.company = company or CompanySettings()

    async def get_payroll_record(self, payroll_record_id: UUID) -> PayrollRecord:
        """Load a payroll record or raise NotFoundError."""
        result = await run_query(
            self.session,
            select(PayrollRecord).where(PayrollRecord.payroll_record_id == payroll_record_id),
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Payroll record", payroll_record_id)
        return record

    async def list_payroll_records(
        self,
        employee_id: UUID | None = None,
        pay_period_id: UUID | None = None,
        payment_status: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[PayrollRecord], int]:
        """List payroll records newest first, returning (page, total)."""
        query = select(PayrollRecord)
        if employee_id is not None:
            query = query.where(PayrollRecord.employee_id == employee_id)
        if pay_period_id is not None:
            query = query.where(PayrollRecord.pay_period_id == pay_period_id)
        if payment_status:
            query = query.where(PayrollRecord.payment_status == payment_status)

        count_result = await run_query(
            self.session, select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar_one()

        offset = (max(page, 1) - 1) * limit
        result = await run_query(
            self.session,
            query.order_by(PayrollRecord.created_at.desc()).offset(offset).limit(limit),
        )
        return list(result.scalars().all()), total

    async def record_payment(
        self,
        payroll_record_id: UUID,
        payment_status: str | None = None,
        payment_date: date | None = None,
        payment_method: str | None = None,
        transaction_reference: str | None = None,
        notes: str | None = None,
        today: date | None = None,
    ) -> PayrollRecord:
        """Set the payment fields of a record.

        Status defaults to paid and the date to today. Aggregate fields are
        never touched here.
        """
        status = payment_status or PaymentStatus.PAID.value
        if status not in {s.value for s in PaymentStatus}:
            raise ValidationError(f"Unknown payment status '{status}'")
        if payment_method and payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError(f"Unknown payment method '{payment_method}'")

        record = await self.get_payroll_record(payroll_record_id)
        record.payment_status = status
        record.payment_date = payment_date or today or date.today()
        record.payment_method = payment_method or None
        record.transaction_reference = transaction_reference or None
        record.notes = notes or record.notes
        await flush(self.session)

        logger.info(
            "Recorded payment for payroll record %s: %s on %s",
            payroll_record_id,
            status,
            record.payment_date,
        )
        return record

    async def export_csv(self, pay_period_id: UUID | None = None) -> str:
        """Payroll records as CSV text, sorted by employee name."""
        query = (
            select(PayrollRecord, Employee, PayPeriod)
            .join(Employee, Employee.employee_id == PayrollRecord.employee_id)
            .join(PayPeriod, PayPeriod.pay_period_id == PayrollRecord.pay_period_id)
        )
        if pay_period_id is not None:
            query = query.where(PayrollRecord.pay_period_id == pay_period_id)
        query = query.order_by(Employee.last_name, Employee.first_name, PayPeriod.start_date)
        result = await run_query(self.session, query)
        rows = result.all()

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for record, employee, pay_period in rows:
            writer.writerow(
                [
                    employee.full_name,
                    employee.email or "",
                    pay_period.name if pay_period is not None else "",
                    _two_places(record.total_regular_hours),
                    _two_places(record.total_overtime_hours),
                    _two_places(record.total_pto_hours),
                    _two_places(record.total_gross_pay),
                    record.payment_status or PaymentStatus.UNPAID.value,
                    record.payment_date.isoformat() if record.payment_date else "",
                    record.payment_method or "",
                ]
            )

        logger.info(
            "Exported %d payroll record(s) for %s",
            len(rows),
            pay_period_id or "all pay periods",
        )
        return buffer.getvalue()

    def export_filename(self, stamp: date | None = None) -> str:
        """Download name for an export."""
        slug = "".join(c if c.isalnum() else "-" for c in self.company.company_name.lower())
        slug = "-".join(part for part in slug.split("-") if part)
        return f"{slug}-payroll-export-{(stamp or date.today()).isoformat()}.csv"


def _two_places(value) -> str:
    return f"{round_to_cents(to_decimal(value)):.2f}"
