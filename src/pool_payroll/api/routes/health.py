"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import func, select

from pool_payroll.api.dependencies import Company, DbSession
from pool_payroll.database import run_query
from pool_payroll.errors import DataAccessError
from pool_payroll.models import PayPeriod
from pool_payroll.services.state_machine import PayPeriodStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status plus how many pay periods are still taking entries."""

    status: str
    timestamp: datetime
    company: str
    database: str
    open_pay_periods: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession, company: Company) -> HealthResponse:
    """Report database reachability and the number of open pay periods."""
    open_periods = None
    try:
        result = await run_query(
            db,
            select(func.count())
            .select_from(PayPeriod)
            .where(PayPeriod.status == PayPeriodStatus.OPEN.value),
        )
        open_periods = result.scalar_one()
    except DataAccessError as e:
        logger.warning("Health check could not reach the database: %s", e)

    reachable = open_periods is not None
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        timestamp=datetime.now(timezone.utc),
        company=company.company_name,
        database="healthy" if reachable else "unhealthy",
        open_pay_periods=open_periods,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(db: DbSession) -> dict[str, str]:
    """Ready once the payroll tables answer a query."""
    try:
        await run_query(db, select(PayPeriod.pay_period_id).limit(1))
    except DataAccessError as e:
        logger.warning("Readiness check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payroll database is not ready",
        ) from e
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
