from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    hourly_rate: float = Field(0, ge=0)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    kiosk_code: Optional[str] = None
    connecteam_id: Optional[str] = None
    employee_number: Optional[str] = None
    job_title: Optional[str] = None
    employment_start_date: Optional[date] = None
    is_active: bool = True


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    hourly_rate: Optional[float] = Field(None, ge=0)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    kiosk_code: Optional[str] = None
    connecteam_id: Optional[str] = None
    employee_number: Optional[str] = None
    job_title: Optional[str] = None
    employment_start_date: Optional[date] = None
    is_active: Optional[bool] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str]
    phone_number: Optional[str]
    kiosk_code: Optional[str]
    connecteam_id: Optional[str]
    employee_number: Optional[str]
    job_title: Optional[str]
    employment_start_date: Optional[date]
    hourly_rate: float
    current_week_hours: float
    is_active: bool
    last_sync_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class ConnecteamUserResponse(BaseModel):
    user_id: int
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str]
    phone_number: Optional[str]
    kiosk_code: Optional[str]
    is_archived: bool
    employee_number: Optional[str]
    job_title: Optional[str]


class ConnecteamMatchesResponse(BaseModel):
    # employee id -> Connecteam user id
    matches: Dict[int, str]


class ConnecteamLinkRequest(BaseModel):
    matches: Dict[int, str]


class ConnecteamLinkResponse(BaseModel):
    updated: int


class SyncRequest(BaseModel):
    week_start_date: Optional[date] = None
    clear_first: bool = True


class SyncResponse(BaseModel):
    success: bool
    employees_synced: int
    errors: List[str]
    synced_at: str
    week_start_date: Optional[str]
    week_end_date: Optional[str]
