"""Time entry API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from pool_payroll.api.dependencies import Company, DbSession, UserId
from pool_payroll.api.schemas import (
    ErrorResponse,
    TimeEntryListResponse,
    TimeEntryResponse,
    TimeEntryWrite,
)
from pool_payroll.database import commit
from pool_payroll.services.time_entry_service import TimeEntryService

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.post(
    "",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_time_entry(
    db: DbSession, company: Company, user_id: UserId, payload: TimeEntryWrite
) -> TimeEntryResponse:
    """Record a time entry."""
    service = TimeEntryService(db, company)
    entry = await service.create_time_entry(payload.to_data(), user_id)
    await commit(db)
    return TimeEntryResponse.model_validate(entry)


@router.get("", response_model=TimeEntryListResponse)
async def list_time_entries(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    employee_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    entry_type: Annotated[str | None, Query(alias="type")] = None,
    approved: bool | None = None,
) -> TimeEntryListResponse:
    """List time entries with optional filters."""
    entries, total = await TimeEntryService(db).list_time_entries(
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        entry_type=entry_type,
        approved=approved,
        page=page,
        limit=page_size,
    )
    return TimeEntryListResponse(
        items=[TimeEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{time_entry_id}",
    response_model=TimeEntryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_time_entry(
    db: DbSession, time_entry_id: Annotated[UUID, Path()]
) -> TimeEntryResponse:
    """Get a specific time entry by ID."""
    entry = await TimeEntryService(db).get_time_entry(time_entry_id)
    return TimeEntryResponse.model_validate(entry)


@router.put(
    "/{time_entry_id}",
    response_model=TimeEntryResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_time_entry(
    db: DbSession,
    company: Company,
    time_entry_id: Annotated[UUID, Path()],
    payload: TimeEntryWrite,
) -> TimeEntryResponse:
    """Update a time entry outside locked pay periods."""
    service = TimeEntryService(db, company)
    entry = await service.update_time_entry(time_entry_id, payload.to_data())
    await commit(db)
    return TimeEntryResponse.model_validate(entry)


@router.delete(
    "/{time_entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_time_entry(
    db: DbSession, time_entry_id: Annotated[UUID, Path()]
) -> Response:
    """Delete a time entry outside locked or processed pay periods."""
    await TimeEntryService(db).delete_time_entry(time_entry_id)
    await commit(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{time_entry_id}/approve",
    response_model=TimeEntryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def approve_time_entry(
    db: DbSession,
    user_id: UserId,
    time_entry_id: Annotated[UUID, Path()],
) -> TimeEntryResponse:
    """Approve a time entry."""
    entry = await TimeEntryService(db).approve_time_entry(time_entry_id, user_id)
    await commit(db)
    return TimeEntryResponse.model_validate(entry)
