"""Employee API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from pool_payroll.api.dependencies import DbSession
from pool_payroll.api.schemas import (
    EmployeeArchiveRequest,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeWrite,
    ErrorResponse,
)
from pool_payroll.database import commit
from pool_payroll.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_employee(db: DbSession, payload: EmployeeWrite) -> EmployeeResponse:
    """Create an employee."""
    employee = await EmployeeService(db).create_employee(payload.to_data())
    await commit(db)
    return EmployeeResponse.model_validate(employee)


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    pay_type: str | None = None,
    search: str | None = None,
) -> EmployeeListResponse:
    """List employees with optional filters."""
    employees, total = await EmployeeService(db).list_employees(
        status=status_filter,
        pay_type=pay_type,
        search=search,
        page=page,
        limit=page_size,
    )
    return EmployeeListResponse(
        items=[EmployeeResponse.model_validate(e) for e in employees],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee(
    db: DbSession, employee_id: Annotated[UUID, Path()]
) -> EmployeeResponse:
    """Get a specific employee by ID."""
    employee = await EmployeeService(db).get_employee(employee_id)
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_employee(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    payload: EmployeeWrite,
) -> EmployeeResponse:
    """Replace an employee record."""
    employee = await EmployeeService(db).update_employee(employee_id, payload.to_data())
    await commit(db)
    return EmployeeResponse.model_validate(employee)


@router.post(
    "/{employee_id}/archive",
    response_model=EmployeeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def archive_employee(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    payload: EmployeeArchiveRequest,
) -> EmployeeResponse:
    """Move an employee to inactive, terminated or on leave."""
    employee = await EmployeeService(db).archive_employee(employee_id, payload.status)
    await commit(db)
    return EmployeeResponse.model_validate(employee)
