from typing import Optional

from pydantic import BaseModel


class TimesheetWeekSummary(BaseModel):
    week_start_date: str
    week_end_date: str
    employee_count: int
    total_hours: float
    last_synced_at: Optional[str]


class TimesheetRow(BaseModel):
    id: Optional[int]
    employee_id: int
    week_start_date: str
    week_end_date: str
    total_hours: float
    monday_hours: float
    tuesday_hours: float
    wednesday_hours: float
    thursday_hours: float
    friday_hours: float
    saturday_hours: float
    sunday_hours: float
    synced_from_connecteam: bool
    synced_at: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


class TimesheetWithEmployee(TimesheetRow):
    employee_name: Optional[str]
    employee_email: Optional[str]
    employee_hourly_rate: float
    employee_job_title: Optional[str]

