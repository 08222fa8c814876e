from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.authorization import Role, require_role
from app.core.errors import NotFoundError
from app.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from app.services import employee_service

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    active_only: bool = Query(False),
    _role=Depends(require_role(Role.MANAGER)),
):
    return employee_service.list_employees(active_only=active_only)


@router.post("", response_model=EmployeeResponse)
def create_employee(
    payload: EmployeeCreate,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return employee_service.create_employee(payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    _role=Depends(require_role(Role.MANAGER)),
):
    row = employee_service.get_employee(employee_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return row


@router.patch("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return employee_service.update_employee(employee_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/{employee_id}", status_code=204)
def delete_employee(
    employee_id: int,
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        employee_service.delete_employee(employee_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
