import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PayrollStatus = Literal["pending", "partial", "paid"]


class PayrollEmployee(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    hourly_rate: float
    job_title: Optional[str]


class PayrollTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payroll_record_id: int
    amount: float
    paid_at: dt.datetime
    method: Optional[str]
    memo: Optional[str]
    created_at: dt.datetime


class PayrollRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    date: dt.date
    hours_worked: float
    total_pay: float
    status: PayrollStatus
    notes: Optional[str]
    status_overridden_at: Optional[dt.datetime]
    created_at: dt.datetime
    updated_at: dt.datetime
    employee: Optional[PayrollEmployee] = None
    transactions: List[PayrollTransactionResponse] = []


class PayrollRecordCreate(BaseModel):
    employee_id: int
    date: dt.date
    hours_worked: float = Field(..., ge=0)
    hourly_rate: float = Field(..., ge=0)
    notes: Optional[str] = None


class PayrollRecordUpdate(BaseModel):
    hours_worked: Optional[float] = Field(None, ge=0)
    total_pay: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class PayrollStatusOverride(BaseModel):
    status: PayrollStatus


class PaymentCreate(BaseModel):
    amount: float
    paid_at: Optional[dt.datetime] = None
    method: Optional[str] = None
    memo: Optional[str] = None


class PaymentResponse(BaseModel):
    record: PayrollRecordResponse
    transaction: PayrollTransactionResponse


class WeeklyGenerateRequest(BaseModel):
    week_start_date: dt.date


class WeeklyGenerateResponse(BaseModel):
    week_start_date: str
    week_end_date: str
    records_created: int
    records_updated: int
    total_records: int
    hours_from_timesheets: int
    records: List[PayrollRecordResponse]


class WeeklyHoursUpdate(BaseModel):
    record_id: int
    hours: float = Field(..., ge=0)


class PayrollWeek(BaseModel):
    week_id: str
    week_start: str
    week_end: str
    record_count: int


class PayrollSyncResponse(BaseModel):
    updated: int
    total: int


class WeeklyReportRow(BaseModel):
    week_start: str
    week_end: str
    total_hours: float
    total_pay: float
    pending_pay: float
    partial_pay: float
    paid_pay: float
