from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.authorization import Role, require_role
from app.schemas.payroll import WeeklyReportRow
from app.services.payroll_service import get_weekly_payroll_report

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/weekly", response_model=List[WeeklyReportRow])
def weekly_report(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    _role=Depends(require_role(Role.MANAGER)),
):
    try:
        return get_weekly_payroll_report(date_from=date_from, date_to=date_to)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
