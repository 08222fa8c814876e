from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.database import session_scope
from app.models.employee import Employee
from app.models.payroll_record import PayrollRecord
from app.services.connecteam_client import ConnecteamUser, get_custom_field_value
from app.services.numeric import to_decimal

logger = logging.getLogger(__name__)

_OPTIONAL_TEXT_FIELDS = (
    "email",
    "phone_number",
    "kiosk_code",
    "connecteam_id",
    "employee_number",
    "job_title",
)

_UPDATABLE_FIELDS = _OPTIONAL_TEXT_FIELDS + (
    "name",
    "hourly_rate",
    "employment_start_date",
    "current_week_hours",
    "is_active",
)


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _validate_rate(value: Any):
    rate = to_decimal(value)
    if rate < 0:
        raise ValueError("hourly_rate must be non-negative")
    return rate


def list_employees(*, db: Optional[Session] = None, active_only: bool = False) -> List[Employee]:
    with session_scope(db) as s:
        q = s.query(Employee)
        if active_only:
            q = q.filter(Employee.is_active.is_(True))
        return q.order_by(Employee.name.asc(), Employee.id.asc()).all()


def get_employee(employee_id: int, *, db: Optional[Session] = None) -> Optional[Employee]:
    with session_scope(db) as s:
        return s.get(Employee, int(employee_id))


def create_employee(data: Mapping[str, Any], *, db: Optional[Session] = None) -> Employee:
    name = _clean_text(data.get("name"))
    if not name:
        raise ValueError("name is required")

    row = Employee(
        name=name,
        hourly_rate=_validate_rate(data.get("hourly_rate") or 0),
        current_week_hours=to_decimal(data.get("current_week_hours") or 0),
        is_active=bool(data.get("is_active", True)),
        employment_start_date=data.get("employment_start_date") or None,
        last_sync_at=data.get("last_sync_at") or None,
    )
    for field_name in _OPTIONAL_TEXT_FIELDS:
        setattr(row, field_name, _clean_text(data.get(field_name)))

    with session_scope(db) as s:
        s.add(row)
        s.flush()
        s.refresh(row)
        logger.info("Employee created", extra={"employee_id": row.id})
        return row


def update_employee(employee_id: int, data: Mapping[str, Any], *, db: Optional[Session] = None) -> Employee:
    """Partial update; only keys present in data are written."""
    with session_scope(db) as s:
        row = s.get(Employee, int(employee_id))
        if row is None:
            raise NotFoundError("Employee not found")

        for key, value in data.items():
            if key not in _UPDATABLE_FIELDS:
                continue
            if key == "name":
                value = _clean_text(value)
                if not value:
                    raise ValueError("name is required")
            elif key == "hourly_rate":
                value = _validate_rate(value)
            elif key == "current_week_hours":
                if value is None:
                    continue
                value = to_decimal(value)
            elif key in _OPTIONAL_TEXT_FIELDS:
                value = _clean_text(value)
            setattr(row, key, value)

        s.flush()
        s.refresh(row)
        return row


def delete_employee(employee_id: int, *, db: Optional[Session] = None) -> None:
    with session_scope(db) as s:
        row = s.get(Employee, int(employee_id))
        if row is None:
            raise NotFoundError("Employee not found")
        has_payroll = (
            s.query(PayrollRecord.id).filter(PayrollRecord.employee_id == row.id).first() is not None
        )
        if has_payroll:
            raise ValueError("Employee has payroll records; deactivate instead of deleting")
        s.delete(row)
        s.flush()


def suggest_connecteam_matches(
    employees: Iterable[Employee], users: Iterable[ConnecteamUser]
) -> Dict[int, str]:
    """employee id -> Connecteam user id, by case-insensitive name containment."""
    users = list(users)
    matches: Dict[int, str] = {}
    for emp in employees:
        emp_name = (emp.name or "").lower().strip()
        if not emp_name:
            continue
        for user in users:
            full_name = user.full_name.lower()
            if not full_name:
                continue
            if emp_name in full_name or full_name in emp_name:
                matches[int(emp.id)] = str(user.user_id)
                break
    return matches


def _parse_day_first_date(value: str) -> Optional[date]:
    parts = value.split("/")
    if len(parts) != 3:
        return None
    day, month, year = (p.strip() for p in parts)
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def profile_from_connecteam_user(user: ConnecteamUser) -> Dict[str, Any]:
    profile: Dict[str, Any] = {
        "name": user.full_name,
        "email": user.email,
        "connecteam_id": str(user.user_id),
        "phone_number": user.phone_number,
        "kiosk_code": user.kiosk_code,
        "is_active": not user.is_archived,
    }

    employee_number = get_custom_field_value(user, "Employee ID")
    if employee_number:
        profile["employee_number"] = employee_number

    title = get_custom_field_value(user, "Title")
    if title:
        profile["job_title"] = title

    start_date = get_custom_field_value(user, "Employment Start Date")
    if start_date:
        parsed = _parse_day_first_date(start_date)
        if parsed is not None:
            profile["employment_start_date"] = parsed

    return profile


def link_connecteam_users(
    matches: Mapping[int, str],
    users: Iterable[ConnecteamUser],
    *,
    db: Optional[Session] = None,
) -> int:
    """Copy matched Connecteam profiles onto employees. Returns the number updated."""
    by_id = {str(u.user_id): u for u in users}
    updated = 0

    with session_scope(db) as s:
        for employee_id, connecteam_id in matches.items():
            if not connecteam_id:
                continue
            user = by_id.get(str(connecteam_id))
            if user is None:
                continue
            row = s.get(Employee, int(employee_id))
            if row is None:
                continue

            update_employee(row.id, profile_from_connecteam_user(user), db=s)
            updated += 1

        logger.info("Connecteam users linked", extra={"updated": updated})
        return updated
