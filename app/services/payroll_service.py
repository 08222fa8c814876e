"""
Weekly payroll: generation from timesheets, payments, and payment status.

Status is normally derived: after every appended payment the record's status
is recomputed from scratch as a pure function of the summed transaction
amounts against the record's total_pay snapshot. An administrator can also
override the status directly; the override stands until the next payment is
appended, which recomputes and logs that it replaced an override.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.errors import NotFoundError
from app.database import lock_week, session_scope
from app.models.employee import Employee
from app.models.payroll_record import PAYROLL_STATUSES, PayrollRecord
from app.models.payroll_transaction import PayrollTransaction
from app.models.timesheet import Timesheet
from app.services.numeric import money, parse_numeric, round_hours, to_decimal
from app.services.timesheet_service import max_hours_by_employee_near_week
from app.services.week_dates import (
    DateLike,
    format_date,
    get_week_end,
    get_week_start,
    parse_date,
    week_label,
)

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class PayrollGenerationResult:
    week_start_date: str
    week_end_date: str
    records_created: int
    records_updated: int
    total_records: int
    hours_from_timesheets: int
    records: List[PayrollRecord] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_status(status: str) -> str:
    if status not in PAYROLL_STATUSES:
        raise ValueError(f"Unsupported payroll status: {status}")
    return status


def compute_status(total_pay: Any, total_paid: Any) -> str:
    paid = to_decimal(total_paid)
    if paid <= 0:
        return "pending"
    if paid >= to_decimal(total_pay):
        return "paid"
    return "partial"


def recompute_status(record: PayrollRecord) -> str:
    """Derived status for a record from its loaded transactions. No side effects."""
    total_paid = sum((to_decimal(t.amount) for t in record.transactions), Decimal("0"))
    return compute_status(record.total_pay, total_paid)


def initial_status(total_pay: Any) -> str:
    # nothing owed: settled on creation
    return "paid" if to_decimal(total_pay) == 0 else "pending"


def _with_relations(q):
    return q.options(
        joinedload(PayrollRecord.employee),
        selectinload(PayrollRecord.transactions),
    )


def _load_record(db: Session, record_id: int) -> PayrollRecord:
    record = (
        _with_relations(db.query(PayrollRecord))
        .populate_existing()
        .filter(PayrollRecord.id == int(record_id))
        .one_or_none()
    )
    if record is None:
        raise NotFoundError("Payroll record not found")
    return record


def generate_weekly_payroll(
    week_start_date: DateLike,
    *,
    db: Optional[Session] = None,
    now: Optional[datetime] = None,
) -> PayrollGenerationResult:
    """
    Create or refresh one payroll record per active employee for a week.

    Existing records keep their status; only hours, pay and notes are
    refreshed. Safe to call repeatedly. Any store failure aborts the call.
    """
    week_start = get_week_start(week_start_date)
    week_end = get_week_end(week_start)
    stamp = now or _utcnow()
    notes = week_label(week_start)

    with session_scope(db) as s:
        lock_week(s, "week", format_date(week_start))

        employees = (
            s.query(Employee)
            .filter(Employee.is_active.is_(True))
            .order_by(Employee.name.asc(), Employee.id.asc())
            .all()
        )
        if not employees:
            raise ValueError("No active employees found")

        hours_by_employee, timesheet_rows = max_hours_by_employee_near_week(week_start, db=s)

        existing = {
            r.employee_id: r
            for r in s.query(PayrollRecord).filter(PayrollRecord.date == week_start).all()
        }

        created = 0
        updated = 0
        results: List[PayrollRecord] = []

        for emp in employees:
            hours = round_hours(hours_by_employee.get(emp.id, Decimal("0")))
            total_pay = money(hours * to_decimal(emp.hourly_rate))
            record = existing.get(emp.id)

            if record is not None:
                record.hours_worked = hours
                record.total_pay = total_pay
                record.notes = notes
                record.updated_at = stamp
                updated += 1
            else:
                record = PayrollRecord(
                    employee_id=emp.id,
                    date=week_start,
                    hours_worked=hours,
                    total_pay=total_pay,
                    status=initial_status(total_pay),
                    notes=notes,
                    created_at=stamp,
                    updated_at=stamp,
                )
                s.add(record)
                created += 1

            results.append(record)

        s.flush()
        results = (
            _with_relations(s.query(PayrollRecord))
            .populate_existing()
            .join(Employee, Employee.id == PayrollRecord.employee_id)
            .filter(PayrollRecord.id.in_([r.id for r in results]))
            .order_by(Employee.name.asc(), PayrollRecord.id.asc())
            .all()
        )

        logger.info(
            "Weekly payroll generated",
            extra={
                "week_start": format_date(week_start),
                "created": created,
                "updated": updated,
                "timesheet_rows": timesheet_rows,
            },
        )

        return PayrollGenerationResult(
            week_start_date=format_date(week_start),
            week_end_date=format_date(week_end),
            records_created=created,
            records_updated=updated,
            total_records=len(results),
            hours_from_timesheets=timesheet_rows,
            records=results,
        )


def refresh_payroll_status(db: Session, record_id: int) -> PayrollRecord:
    """Recompute a record's status from its transaction sum and persist it."""
    record = db.get(PayrollRecord, int(record_id))
    if record is None:
        raise NotFoundError("Payroll record not found")

    total_paid = (
        db.query(func.coalesce(func.sum(PayrollTransaction.amount), 0))
        .filter(PayrollTransaction.payroll_record_id == record.id)
        .scalar()
    )
    next_status = compute_status(record.total_pay, total_paid)

    if record.status_overridden_at is not None:
        logger.warning(
            "Payment recompute replaces an administrative status override",
            extra={
                "payroll_record_id": record.id,
                "override_status": record.status,
                "derived_status": next_status,
                "overridden_at": record.status_overridden_at,
            },
        )
        record.status_overridden_at = None

    if next_status != record.status:
        record.status = next_status
        record.updated_at = _utcnow()

    db.flush()
    return record


def record_payroll_payment(
    payroll_record_id: int,
    amount: Any,
    *,
    paid_at: Optional[datetime] = None,
    method: Optional[str] = None,
    memo: Optional[str] = None,
    db: Optional[Session] = None,
) -> Tuple[PayrollRecord, PayrollTransaction]:
    value = money(amount)
    if value <= 0:
        raise ValueError("Payment amount must be greater than zero.")

    with session_scope(db) as s:
        record = s.get(PayrollRecord, int(payroll_record_id))
        if record is None:
            raise NotFoundError("Payroll record not found")

        transaction = PayrollTransaction(
            payroll_record_id=record.id,
            amount=value,
            paid_at=paid_at or _utcnow(),
            method=method or None,
            memo=memo or None,
        )
        s.add(transaction)
        s.flush()

        refresh_payroll_status(s, record.id)
        s.refresh(transaction)

        logger.info(
            "Payroll payment recorded",
            extra={"payroll_record_id": record.id, "amount": str(value), "status": record.status},
        )
        return _load_record(s, record.id), transaction


def override_status(record_id: int, status: str, *, db: Optional[Session] = None) -> PayrollRecord:
    """Administrative escape hatch: set status directly, bypassing derivation."""
    _ensure_status(status)

    with session_scope(db) as s:
        record = s.get(PayrollRecord, int(record_id))
        if record is None:
            raise NotFoundError("Payroll record not found")

        previous = record.status
        record.status = status
        record.status_overridden_at = _utcnow()
        record.updated_at = record.status_overridden_at
        s.flush()

        logger.warning(
            "Payroll status overridden",
            extra={"payroll_record_id": record.id, "from_status": previous, "to_status": status},
        )
        return _load_record(s, record.id)


mark_payroll_status = override_status


def list_payroll_records(
    *,
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    status: Optional[str] = None,
    employee_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> List[PayrollRecord]:
    with session_scope(db) as s:
        q = _with_relations(s.query(PayrollRecord))

        if date_from is not None:
            q = q.filter(PayrollRecord.date >= parse_date(date_from))
        if date_to is not None:
            q = q.filter(PayrollRecord.date <= parse_date(date_to))
        if status and status != "all":
            q = q.filter(PayrollRecord.status == _ensure_status(status))
        if employee_id is not None:
            q = q.filter(PayrollRecord.employee_id == int(employee_id))

        return q.order_by(PayrollRecord.date.desc(), PayrollRecord.created_at.desc(), PayrollRecord.id.desc()).all()


def get_payroll_record(record_id: int, *, db: Optional[Session] = None) -> Optional[PayrollRecord]:
    with session_scope(db) as s:
        return _with_relations(s.query(PayrollRecord)).filter(PayrollRecord.id == int(record_id)).one_or_none()


def create_payroll_record(
    employee_id: int,
    record_date: DateLike,
    hours_worked: Any,
    hourly_rate: Any,
    notes: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> PayrollRecord:
    hours = round_hours(hours_worked)
    rate = to_decimal(hourly_rate)
    if hours < 0 or rate < 0:
        raise ValueError("hours_worked and hourly_rate must be non-negative")

    with session_scope(db) as s:
        if s.get(Employee, int(employee_id)) is None:
            raise NotFoundError("Employee not found")

        record = PayrollRecord(
            employee_id=int(employee_id),
            date=parse_date(record_date),
            hours_worked=hours,
            total_pay=money(hours * rate),
            status="pending",
            notes=notes,
        )
        s.add(record)
        s.flush()
        return _load_record(s, record.id)


def update_payroll_record(
    record_id: int,
    *,
    hours_worked: Any = None,
    total_pay: Any = None,
    notes: Any = _UNSET,
    db: Optional[Session] = None,
) -> PayrollRecord:
    """Edit hours/pay/notes. Status changes go through override_status only."""
    with session_scope(db) as s:
        record = s.get(PayrollRecord, int(record_id))
        if record is None:
            raise NotFoundError("Payroll record not found")

        if hours_worked is not None:
            hours = round_hours(hours_worked)
            if hours < 0:
                raise ValueError("hours_worked must be non-negative")
            record.hours_worked = hours
        if total_pay is not None:
            pay = money(total_pay)
            if pay < 0:
                raise ValueError("total_pay must be non-negative")
            record.total_pay = pay
        if notes is not _UNSET:
            record.notes = notes

        record.updated_at = _utcnow()
        s.flush()
        return _load_record(s, record.id)


def update_payroll_hours(record_id: int, hours: Any, *, db: Optional[Session] = None) -> PayrollRecord:
    """Set hours and recompute total_pay from the employee's current rate."""
    value = round_hours(hours)
    if value < 0:
        raise ValueError("hours must be non-negative")

    with session_scope(db) as s:
        record = _load_record(s, record_id)
        record.hours_worked = value
        record.total_pay = money(value * to_decimal(record.employee.hourly_rate))
        record.updated_at = _utcnow()
        s.flush()
        return record


def sync_payroll_from_timesheets(week_start_date: DateLike, *, db: Optional[Session] = None) -> Dict[str, int]:
    """Refresh hours/pay of an already generated week from its exact-week timesheets."""
    week_start = parse_date(week_start_date)

    with session_scope(db) as s:
        timesheets = (
            s.query(Timesheet.employee_id, Timesheet.total_hours)
            .filter(Timesheet.week_start_date == week_start)
            .all()
        )
        if not timesheets:
            raise ValueError("No timesheet data found for this week")

        records = (
            s.query(PayrollRecord)
            .options(joinedload(PayrollRecord.employee))
            .filter(PayrollRecord.date == week_start)
            .all()
        )
        if not records:
            raise ValueError("No payroll records found for this week. Generate the week first.")

        by_employee = {r.employee_id: r for r in records}
        stamp = _utcnow()
        updated = 0
        for employee_id, total_hours in timesheets:
            record = by_employee.get(employee_id)
            if record is None:
                continue
            hours = round_hours(total_hours)
            record.hours_worked = hours
            record.total_pay = money(hours * to_decimal(record.employee.hourly_rate))
            record.updated_at = stamp
            updated += 1

        s.flush()
        return {"updated": updated, "total": len(timesheets)}


def get_all_payroll_weeks(*, db: Optional[Session] = None) -> List[Dict[str, Any]]:
    with session_scope(db) as s:
        rows = (
            s.query(PayrollRecord.date, func.count(PayrollRecord.id))
            .group_by(PayrollRecord.date)
            .order_by(PayrollRecord.date.desc())
            .all()
        )

    return [
        {
            "week_id": f"Week of {format_date(week_start)}",
            "week_start": format_date(week_start),
            "week_end": format_date(get_week_end(week_start)),
            "record_count": int(count),
        }
        for week_start, count in rows
    ]


def get_weekly_payroll_records(week_start_date: DateLike, *, db: Optional[Session] = None) -> List[PayrollRecord]:
    week_start = parse_date(week_start_date)
    with session_scope(db) as s:
        return (
            _with_relations(s.query(PayrollRecord))
            .join(Employee, Employee.id == PayrollRecord.employee_id)
            .filter(PayrollRecord.date == week_start)
            .order_by(Employee.name.asc(), PayrollRecord.id.asc())
            .all()
        )


def get_weekly_payroll_report(
    *,
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    db: Optional[Session] = None,
) -> List[Dict[str, Any]]:
    def _pay_with(status: str):
        return func.coalesce(
            func.sum(case((PayrollRecord.status == status, PayrollRecord.total_pay), else_=0)), 0
        )

    with session_scope(db) as s:
        q = s.query(
            PayrollRecord.date.label("week_start"),
            func.coalesce(func.sum(PayrollRecord.hours_worked), 0).label("total_hours"),
            func.coalesce(func.sum(PayrollRecord.total_pay), 0).label("total_pay"),
            _pay_with("pending").label("pending_pay"),
            _pay_with("partial").label("partial_pay"),
            _pay_with("paid").label("paid_pay"),
        )
        if date_from is not None:
            q = q.filter(PayrollRecord.date >= parse_date(date_from))
        if date_to is not None:
            q = q.filter(PayrollRecord.date <= parse_date(date_to))

        rows = q.group_by(PayrollRecord.date).order_by(PayrollRecord.date.desc()).all()

    return [
        {
            "week_start": format_date(r.week_start),
            "week_end": format_date(get_week_end(r.week_start)),
            "total_hours": parse_numeric(r.total_hours, default=0),
            "total_pay": parse_numeric(r.total_pay, default=0),
            "pending_pay": parse_numeric(r.pending_pay, default=0),
            "partial_pay": parse_numeric(r.partial_pay, default=0),
            "paid_pay": parse_numeric(r.paid_pay, default=0),
        }
        for r in rows
    ]
