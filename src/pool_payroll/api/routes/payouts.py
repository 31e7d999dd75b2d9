"""Daily payout API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from pool_payroll.api.dependencies import Company, DbSession, UserId
from pool_payroll.api.schemas import (
    ErrorResponse,
    PayoutCalculateRequest,
    PercentagePayoutResponse,
    ReconciliationResponse,
    WorksheetResponse,
)
from pool_payroll.database import commit
from pool_payroll.services.payout_service import PayoutService
from pool_payroll.services.reconciliation import DEFAULT_PAGE_SIZE, ReconciliationService

router = APIRouter(prefix="/payouts", tags=["payouts"])


# ============================================================================
# Worksheet and Calculation
# ============================================================================


@router.get("/worksheet", response_model=WorksheetResponse)
async def get_worksheet(
    db: DbSession,
    company: Company,
    work_date: Annotated[date | None, Query(alias="date")] = None,
) -> WorksheetResponse:
    """Eligible employees and, for a day, who worked and their labor cost."""
    worksheet = await PayoutService(db, company).build_worksheet(work_date)
    return WorksheetResponse.model_validate(worksheet)


@router.post(
    "/calculate",
    response_model=PercentagePayoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def calculate_payout(
    db: DbSession,
    company: Company,
    user_id: UserId,
    payload: PayoutCalculateRequest,
) -> PercentagePayoutResponse:
    """Compute a day's payout and save it."""
    payout = await PayoutService(db, company).calculate_payout(
        payload.to_submission(), user_id
    )
    await commit(db)
    return PercentagePayoutResponse.model_validate(payout)


# ============================================================================
# Reconciled Views
# ============================================================================


@router.get("", response_model=ReconciliationResponse)
async def list_payouts(
    db: DbSession,
    date_from: date | None = None,
    date_to: date | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = DEFAULT_PAGE_SIZE,
) -> ReconciliationResponse:
    """Saved and synthesized hourly payouts, newest payout date first."""
    report = await ReconciliationService(db).list_payouts(date_from, date_to, page, limit)
    return ReconciliationResponse.model_validate(report)


@router.get("/weekly", response_model=ReconciliationResponse)
async def weekly_payouts(
    db: DbSession,
    week_start: date | None = None,
    week_end: date | None = None,
) -> ReconciliationResponse:
    """Payouts submitted during a week, oldest first."""
    report = await ReconciliationService(db).weekly_payouts(week_start, week_end)
    return ReconciliationResponse.model_validate(report)


# ============================================================================
# Single Payout
# ============================================================================


@router.get(
    "/{payout_id}",
    response_model=PercentagePayoutResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payout(
    db: DbSession, payout_id: Annotated[UUID, Path()]
) -> PercentagePayoutResponse:
    """Get a saved payout with its lines."""
    payout = await PayoutService(db).get_payout(payout_id)
    return PercentagePayoutResponse.model_validate(payout)


@router.delete(
    "/{payout_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_payout(db: DbSession, payout_id: Annotated[UUID, Path()]) -> Response:
    """Delete a saved payout and its lines."""
    await PayoutService(db).delete_payout(payout_id)
    await commit(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
