from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.authorization import Role, require_role
from app.core.errors import NotFoundError
from app.schemas.payroll import (
    PaymentCreate,
    PaymentResponse,
    PayrollRecordCreate,
    PayrollRecordResponse,
    PayrollRecordUpdate,
    PayrollStatusOverride,
    PayrollSyncResponse,
    PayrollWeek,
    WeeklyGenerateRequest,
    WeeklyGenerateResponse,
    WeeklyHoursUpdate,
)
from app.services import payroll_service

router = APIRouter(prefix="/payroll", tags=["Payroll"])


@router.get("", response_model=List[PayrollRecordResponse])
def list_payroll_records(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    status: Optional[str] = None,
    employee_id: Optional[int] = None,
    _role=Depends(require_role(Role.MANAGER)),
):
    try:
        return payroll_service.list_payroll_records(
            date_from=date_from,
            date_to=date_to,
            status=status,
            employee_id=employee_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("", response_model=PayrollRecordResponse)
def create_payroll_record(
    payload: PayrollRecordCreate,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return payroll_service.create_payroll_record(
            payload.employee_id,
            payload.date,
            payload.hours_worked,
            payload.hourly_rate,
            payload.notes,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/weeks", response_model=List[PayrollWeek])
def list_payroll_weeks(_role=Depends(require_role(Role.MANAGER))):
    return payroll_service.get_all_payroll_weeks()


@router.post("/weekly/generate", response_model=WeeklyGenerateResponse)
def generate_weekly_payroll(
    payload: WeeklyGenerateRequest,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        result = payroll_service.generate_weekly_payroll(payload.week_start_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "week_start_date": result.week_start_date,
        "week_end_date": result.week_end_date,
        "records_created": result.records_created,
        "records_updated": result.records_updated,
        "total_records": result.total_records,
        "hours_from_timesheets": result.hours_from_timesheets,
        "records": result.records,
    }


@router.get("/weekly/{week_start}", response_model=List[PayrollRecordResponse])
def get_weekly_payroll(
    week_start: str,
    _role=Depends(require_role(Role.MANAGER)),
):
    try:
        return payroll_service.get_weekly_payroll_records(week_start)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/weekly/{week_start}", response_model=PayrollRecordResponse)
def update_weekly_hours(
    week_start: str,
    payload: WeeklyHoursUpdate,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        record = payroll_service.get_payroll_record(payload.record_id)
        if record is None:
            raise NotFoundError("Payroll record not found")
        if record.date.isoformat() != week_start[:10]:
            raise HTTPException(status_code=400, detail="Payroll record does not belong to this week")
        return payroll_service.update_payroll_hours(payload.record_id, payload.hours)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/weekly/{week_start}/sync-from-timesheets", response_model=PayrollSyncResponse)
def sync_weekly_from_timesheets(
    week_start: str,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return payroll_service.sync_payroll_from_timesheets(week_start)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{record_id}", response_model=PayrollRecordResponse)
def get_payroll_record(
    record_id: int,
    _role=Depends(require_role(Role.MANAGER)),
):
    record = payroll_service.get_payroll_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Payroll record not found")
    return record


@router.patch("/{record_id}", response_model=PayrollRecordResponse)
def update_payroll_record(
    record_id: int,
    payload: PayrollRecordUpdate,
    _role=Depends(require_role(Role.ADMIN)),
):
    data = payload.model_dump(exclude_unset=True)
    try:
        return payroll_service.update_payroll_record(record_id, **data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/{record_id}/status", response_model=PayrollRecordResponse)
def override_payroll_status(
    record_id: int,
    payload: PayrollStatusOverride,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return payroll_service.override_status(record_id, payload.status)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/{record_id}/transactions", response_model=PaymentResponse)
def record_payment(
    record_id: int,
    payload: PaymentCreate,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        record, transaction = payroll_service.record_payroll_payment(
            record_id,
            payload.amount,
            paid_at=payload.paid_at,
            method=payload.method,
            memo=payload.memo,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {"record": record, "transaction": transaction}
