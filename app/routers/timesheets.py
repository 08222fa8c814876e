from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.core.authorization import Role, require_role
from app.schemas.timesheet import TimesheetWeekSummary, TimesheetWithEmployee
from app.services import timesheet_service

router = APIRouter(prefix="/timesheets", tags=["Timesheets"])


@router.get("/weeks", response_model=List[TimesheetWeekSummary])
def list_weeks(_role=Depends(require_role(Role.MANAGER))):
    return timesheet_service.get_available_timesheet_weeks()


@router.get("/weeks/{week_start}", response_model=List[TimesheetWithEmployee])
def get_week(
    week_start: str,
    _role=Depends(require_role(Role.MANAGER)),
):
    try:
        return timesheet_service.get_timesheets_for_week(week_start)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
