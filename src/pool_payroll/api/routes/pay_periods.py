"""Pay period API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from pool_payroll.api.dependencies import DbSession
from pool_payroll.api.schemas import (
    ErrorResponse,
    PayPeriodCreate,
    PayPeriodDetailResponse,
    PayPeriodListItemResponse,
    PayPeriodListResponse,
    PayPeriodResponse,
    PayrollRecordResponse,
    ProcessResponse,
)
from pool_payroll.database import commit
from pool_payroll.services.pay_period_service import PayPeriodService

router = APIRouter(prefix="/pay-periods", tags=["pay-periods"])


# ============================================================================
# Pay Period CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayPeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_pay_period(db: DbSession, payload: PayPeriodCreate) -> PayPeriodResponse:
    """Create a new pay period in open status."""
    pay_period = await PayPeriodService(db).create_pay_period(
        payload.name, payload.start_date, payload.end_date, payload.notes
    )
    await commit(db)
    return PayPeriodResponse.model_validate(pay_period)


@router.get("", response_model=PayPeriodListResponse)
async def list_pay_periods(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayPeriodListResponse:
    """List pay periods, newest first, with payroll totals."""
    items, total = await PayPeriodService(db).list_pay_periods(
        status=status_filter, page=page, limit=page_size
    )
    return PayPeriodListResponse(
        items=[PayPeriodListItemResponse.model_validate(i) for i in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{pay_period_id}",
    response_model=PayPeriodDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_pay_period(
    db: DbSession, pay_period_id: Annotated[UUID, Path()]
) -> PayPeriodDetailResponse:
    """Get a pay period with its time summary and payroll records."""
    detail = await PayPeriodService(db).get_pay_period_detail(pay_period_id)
    return PayPeriodDetailResponse.model_validate(detail)


# ============================================================================
# State Transitions
# ============================================================================


@router.post(
    "/{pay_period_id}/lock",
    response_model=PayPeriodResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def lock_pay_period(
    db: DbSession, pay_period_id: Annotated[UUID, Path()]
) -> PayPeriodResponse:
    """Lock an open pay period against time entry edits."""
    pay_period = await PayPeriodService(db).lock_pay_period(pay_period_id)
    await commit(db)
    return PayPeriodResponse.model_validate(pay_period)


@router.post(
    "/{pay_period_id}/process",
    response_model=ProcessResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def process_pay_period(
    db: DbSession, pay_period_id: Annotated[UUID, Path()]
) -> ProcessResponse:
    """Process a locked pay period into payroll records.

    Status change and record writes commit together or not at all.
    """
    service = PayPeriodService(db)
    records = await service.process_pay_period(pay_period_id)
    await commit(db)

    pay_period = await service.get_pay_period(pay_period_id)
    return ProcessResponse(
        pay_period=PayPeriodResponse.model_validate(pay_period),
        records_written=len(records),
        payroll_records=[PayrollRecordResponse.model_validate(r) for r in records],
    )
