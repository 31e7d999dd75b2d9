"""Payroll record API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response

from pool_payroll.api.dependencies import Company, DbSession
from pool_payroll.api.schemas import (
    ErrorResponse,
    PaymentRequest,
    PayrollRecordListResponse,
    PayrollRecordResponse,
)
from pool_payroll.database import commit
from pool_payroll.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll-records", tags=["payroll-records"])


@router.get("", response_model=PayrollRecordListResponse)
async def list_payroll_records(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    employee_id: UUID | None = None,
    pay_period_id: UUID | None = None,
    payment_status: str | None = None,
) -> PayrollRecordListResponse:
    """List payroll records with optional filters."""
    records, total = await PayrollService(db).list_payroll_records(
        employee_id=employee_id,
        pay_period_id=pay_period_id,
        payment_status=payment_status,
        page=page,
        limit=page_size,
    )
    return PayrollRecordListResponse(
        items=[PayrollRecordResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/export.csv",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_payroll_records(
    db: DbSession,
    company: Company,
    pay_period_id: UUID | None = None,
) -> Response:
    """Download payroll records as CSV."""
    service = PayrollService(db, company)
    body = await service.export_csv(pay_period_id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{service.export_filename()}"'
        },
    )


@router.get(
    "/{payroll_record_id}",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_record(
    db: DbSession, payroll_record_id: Annotated[UUID, Path()]
) -> PayrollRecordResponse:
    """Get a specific payroll record by ID."""
    record = await PayrollService(db).get_payroll_record(payroll_record_id)
    return PayrollRecordResponse.model_validate(record)


@router.post(
    "/{payroll_record_id}/payment",
    response_model=PayrollRecordResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_payment(
    db: DbSession,
    payroll_record_id: Annotated[UUID, Path()],
    payload: PaymentRequest,
) -> PayrollRecordResponse:
    """Record how and when a payroll record was paid."""
    record = await PayrollService(db).record_payment(
        payroll_record_id,
        payment_status=payload.payment_status,
        payment_date=payload.payment_date,
        payment_method=payload.payment_method,
        transaction_reference=payload.transaction_reference,
        notes=payload.notes,
    )
    await commit(db)
    return PayrollRecordResponse.model_validate(record)
