"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pool_payroll.calculators.types import PayoutPayType, PayoutRequest
from pool_payroll.services.employee_service import EmployeeData
from pool_payroll.services.payout_service import PayoutSubmission
from pool_payroll.services.time_entry_service import JobLink, TimeEntryData

# ============================================================================
# Shared
# ============================================================================


class ListResponse(BaseModel):
    """Pagination fields shared by list responses."""

    total: int
    page: int
    page_size: int


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeWrite(BaseModel):
    """Full employee record for create and replace."""

    first_name: str
    last_name: str
    email: str
    pay_types: list[str] = Field(default_factory=list)
    phone: str | None = None
    position: str | None = None
    department: str | None = None
    hire_date: date | None = None
    termination_date: date | None = None
    hourly_rate: Decimal | None = None
    annual_salary: Decimal | None = None
    percentage_rate: Decimal | None = None
    default_overtime_multiplier: Decimal | None = None
    status: str = "active"
    notes: str | None = None

    def to_data(self) -> EmployeeData:
        return EmployeeData(**self.model_dump())


class EmployeeArchiveRequest(BaseModel):
    """Schema for archiving an employee."""

    status: str = "inactive"


class EmployeeSummary(BaseModel):
    """Identity fields of an employee."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    first_name: str
    last_name: str
    full_name: str
    status: str


class EmployeeResponse(EmployeeSummary):
    """Schema for employee response."""

    email: str
    phone: str | None = None
    position: str | None = None
    department: str | None = None
    hire_date: date | None = None
    termination_date: date | None = None
    pay_types: list[str]
    hourly_rate: Decimal | None = None
    annual_salary: Decimal | None = None
    percentage_rate: Decimal | None = None
    default_overtime_multiplier: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class EmployeeListResponse(ListResponse):
    """Schema for listing employees."""

    items: list[EmployeeResponse]


# ============================================================================
# Time entry schemas
# ============================================================================


class JobLinkSchema(BaseModel):
    """Job a time entry was worked on."""

    model_config = ConfigDict(from_attributes=True)

    job_id: UUID | None = None
    job_name: str | None = None


class TimeEntryWrite(BaseModel):
    """Schema for creating or updating a time entry."""

    employee_id: UUID
    work_date: date | datetime | None = None
    start_time: time | None = None
    end_time: time | None = None
    break_minutes: int | None = None
    hours_worked: Decimal | None = None
    overtime_hours: Decimal | None = None
    entry_type: str = "regular"
    flat_rate: Decimal | None = None
    gas_money: Decimal | None = None
    notes: str | None = None
    jobs: list[JobLinkSchema] = Field(default_factory=list)

    def to_data(self) -> TimeEntryData:
        fields = self.model_dump(exclude={"jobs"})
        return TimeEntryData(
            **fields,
            jobs=[JobLink(job_id=j.job_id, job_name=j.job_name) for j in self.jobs],
        )


class TimeEntryResponse(BaseModel):
    """Schema for time entry response."""

    model_config = ConfigDict(from_attributes=True)

    time_entry_id: UUID
    employee_id: UUID
    work_date: date
    start_time: time | None = None
    end_time: time | None = None
    break_minutes: int
    hours_worked: Decimal
    overtime_hours: Decimal
    entry_type: str
    flat_rate: Decimal | None = None
    gas_money: Decimal | None = None
    notes: str | None = None
    approved: bool
    approved_by_user_id: UUID | None = None
    approved_at: datetime | None = None
    jobs: list[JobLinkSchema] = []
    created_at: datetime


class TimeEntryListResponse(ListResponse):
    """Schema for listing time entries."""

    items: list[TimeEntryResponse]


# ============================================================================
# Pay period schemas
# ============================================================================


class PayPeriodCreate(BaseModel):
    """Schema for creating a pay period."""

    name: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    notes: str | None = None


class PayPeriodResponse(BaseModel):
    """Schema for pay period response."""

    model_config = ConfigDict(from_attributes=True)

    pay_period_id: UUID
    name: str
    start_date: date
    end_date: date
    status: str
    notes: str | None = None
    locked_at: datetime | None = None
    processed_at: datetime | None = None
    created_at: datetime


class PayPeriodListItemResponse(BaseModel):
    """Pay period with payroll totals."""

    model_config = ConfigDict(from_attributes=True)

    pay_period: PayPeriodResponse
    total_employees: int
    total_gross_pay: Decimal
    total_hours: Decimal


class PayPeriodListResponse(ListResponse):
    """Schema for listing pay periods."""

    items: list[PayPeriodListItemResponse]


class EmployeeHoursResponse(BaseModel):
    """Summed hours of one employee."""

    model_config = ConfigDict(from_attributes=True)

    regular_hours: Decimal
    overtime_hours: Decimal
    pto_hours: Decimal


class EmployeeTimeSummaryResponse(BaseModel):
    """Approved time of one employee within a period."""

    model_config = ConfigDict(from_attributes=True)

    employee: EmployeeSummary
    hours: EmployeeHoursResponse


class PayPeriodSummaryResponse(BaseModel):
    """Totals of a pay period."""

    model_config = ConfigDict(from_attributes=True)

    total_employees: int
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_pto_hours: Decimal
    total_gross_pay: Decimal


class PayrollRecordResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_record_id: UUID
    employee_id: UUID
    pay_period_id: UUID
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_pto_hours: Decimal
    total_gross_pay: Decimal
    total_daily_payouts: Decimal
    overtime_multiplier_used: Decimal
    payment_status: str
    payment_date: date | None = None
    payment_method: str | None = None
    transaction_reference: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class PayPeriodDetailResponse(BaseModel):
    """Pay period with time summary and payroll records."""

    model_config = ConfigDict(from_attributes=True)

    pay_period: PayPeriodResponse
    employee_time: list[EmployeeTimeSummaryResponse]
    payroll_records: list[PayrollRecordResponse]
    summary: PayPeriodSummaryResponse


class ProcessResponse(BaseModel):
    """Schema for process response."""

    pay_period: PayPeriodResponse
    records_written: int
    payroll_records: list[PayrollRecordResponse]


# ============================================================================
# Payroll record schemas
# ============================================================================


class PayrollRecordListResponse(ListResponse):
    """Schema for listing payroll records."""

    items: list[PayrollRecordResponse]


class PaymentRequest(BaseModel):
    """Schema for recording a payment."""

    payment_status: str | None = None
    payment_date: date | None = None
    payment_method: str | None = None
    transaction_reference: str | None = None
    notes: str | None = None


# ============================================================================
# Daily payout schemas
# ============================================================================


class PayoutRequestSchema(BaseModel):
    """One employee line of a payout submission."""

    employee_id: UUID
    pay_type: PayoutPayType = PayoutPayType.PERCENTAGE
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None


class PayoutCalculateRequest(BaseModel):
    """Schema for computing and saving a day's payout."""

    payout_date: date | datetime | None = None
    total_revenue: Decimal | None = None
    job_costs: Decimal | None = None
    materials: Decimal | None = None
    labor_costs: Decimal | None = None
    notes: str | None = None
    employee_payouts: list[PayoutRequestSchema] = Field(default_factory=list)

    def to_submission(self) -> PayoutSubmission:
        return PayoutSubmission(
            payout_date=self.payout_date,
            total_revenue=self.total_revenue,
            job_costs=self.job_costs,
            materials=self.materials,
            labor_costs=self.labor_costs,
            notes=self.notes,
            requests=[
                PayoutRequest(
                    employee_id=p.employee_id,
                    pay_type=p.pay_type,
                    percentage_rate=p.percentage_rate,
                    hourly_rate=p.hourly_rate,
                    hours=p.hours,
                )
                for p in self.employee_payouts
            ],
        )


class EmployeePayoutResponse(BaseModel):
    """One employee line of a payout."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    pay_type: str
    payout_amount: Decimal
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None
    flat_rate: Decimal | None = None


class PercentagePayoutResponse(BaseModel):
    """Schema for a saved daily payout."""

    model_config = ConfigDict(from_attributes=True)

    percentage_payout_id: UUID
    payout_date: date
    total_revenue: Decimal
    job_costs: Decimal
    materials: Decimal
    labor_costs: Decimal
    gas_money: Decimal
    total_costs: Decimal
    total_profit: Decimal
    total_percentage_payout: Decimal
    profit_percentage: Decimal
    calculated_payout: Decimal
    labor_cost_source: str
    notes: str | None = None
    created_by_user_id: UUID | None = None
    created_at: datetime
    lines: list[EmployeePayoutResponse]


class WorksheetEntryResponse(BaseModel):
    """One time entry on the worksheet."""

    model_config = ConfigDict(from_attributes=True)

    time_entry_id: UUID
    hours_worked: Decimal
    overtime_hours: Decimal
    flat_rate: Decimal
    gas_money: Decimal
    approved: bool


class WorksheetEmployeeResponse(BaseModel):
    """Employee who worked on the worksheet's day."""

    model_config = ConfigDict(from_attributes=True)

    employee: EmployeeSummary
    labor_cost: Decimal
    hours_worked: Decimal
    flat_rate: Decimal
    entries: list[WorksheetEntryResponse]


class WorksheetResponse(BaseModel):
    """Inputs for a day's payout."""

    model_config = ConfigDict(from_attributes=True)

    work_date: date | None = None
    eligible_employees: list[EmployeeResponse]
    employees_who_worked: list[WorksheetEmployeeResponse]


class ReconciledLineResponse(BaseModel):
    """Line of a merged payout."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    pay_type: PayoutPayType
    payout_amount: Decimal
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None
    flat_rate: Decimal | None = None


class ReconciledPayoutResponse(BaseModel):
    """Saved or synthesized payout in a merged view."""

    model_config = ConfigDict(from_attributes=True)

    payout_id: UUID | None = None
    payout_date: date
    created_at: datetime
    total_revenue: Decimal
    job_costs: Decimal
    materials: Decimal
    labor_costs: Decimal
    total_costs: Decimal
    total_profit: Decimal
    total_percentage_payout: Decimal
    calculated_payout: Decimal
    synthesized: bool
    lines: list[ReconciledLineResponse]


class PayoutHistoryItemResponse(BaseModel):
    """One line of an employee's payout history."""

    model_config = ConfigDict(from_attributes=True)

    payout_id: UUID | None = None
    payout_date: date
    created_at: datetime
    payout_amount: Decimal
    pay_type: PayoutPayType
    percentage_rate: Decimal | None = None
    hourly_rate: Decimal | None = None
    hours: Decimal | None = None
    synthesized: bool


class EmployeeTotalResponse(BaseModel):
    """Payout total of one employee."""

    model_config = ConfigDict(from_attributes=True)

    employee: EmployeeSummary
    total_payout: Decimal
    payout_count: int
    payouts: list[PayoutHistoryItemResponse]


class ReconciliationSummaryResponse(BaseModel):
    """Range rollup."""

    model_config = ConfigDict(from_attributes=True)

    total_revenue: Decimal
    total_costs: Decimal
    total_profit: Decimal
    total_employee_payout: Decimal
    total_company_payout: Decimal


class ReconciliationResponse(BaseModel):
    """Merged payouts with totals."""

    model_config = ConfigDict(from_attributes=True)

    payouts: list[ReconciledPayoutResponse]
    employee_totals: list[EmployeeTotalResponse]
    summary: ReconciliationSummaryResponse
    total: int
    page: int
    limit: int
    range_start: date | None = None
    range_end: date | None = None
