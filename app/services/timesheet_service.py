"""
Timesheet store: one row per (employee, week start) with per-weekday hours.

Week summaries and per-week listings prefer the database-side SQL functions
installed by the migrations (Postgres); when those are unavailable the same
shape is built from plain rows. Either way, numeric columns leave this module
as floats.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import dialect_name, session_scope
from app.models.employee import Employee
from app.models.timesheet import WEEKDAY_COLUMNS, Timesheet
from app.services.numeric import parse_numeric, to_decimal
from app.services.week_dates import (
    WEEKDAY_NAMES,
    DateLike,
    format_date,
    get_week_end,
    parse_date,
    tolerance_window,
)

logger = logging.getLogger(__name__)

_HOUR_FIELDS = ("total_hours",) + WEEKDAY_COLUMNS


@dataclass
class TimesheetEntry:
    employee_id: int
    week_start_date: date
    week_end_date: date
    total_hours: Decimal = Decimal("0")
    daily_hours: Dict[str, Decimal] = field(default_factory=dict)  # weekday name -> hours


@dataclass(frozen=True)
class BulkUpsertResult:
    success: int
    errors: List[str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _date_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return format_date(value)


def coerce_timesheet_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": row.get("id"),
        "employee_id": row.get("employee_id"),
        "week_start_date": _date_str(row.get("week_start_date")),
        "week_end_date": _date_str(row.get("week_end_date")),
        "synced_from_connecteam": bool(row.get("synced_from_connecteam")),
        "synced_at": _iso(row.get("synced_at")),
    }
    for name in _HOUR_FIELDS:
        out[name] = parse_numeric(row.get(name), default=0)
    out["created_at"] = _iso(row.get("created_at")) or out["synced_at"]
    out["updated_at"] = _iso(row.get("updated_at")) or out["synced_at"]
    return out


def coerce_timesheet_with_employee(row: Mapping[str, Any]) -> Dict[str, Any]:
    out = coerce_timesheet_row(row)
    out["employee_name"] = row.get("employee_name")
    out["employee_email"] = row.get("employee_email")
    out["employee_hourly_rate"] = parse_numeric(row.get("employee_hourly_rate"), default=0)
    out["employee_job_title"] = row.get("employee_job_title")
    return out


def coerce_week_summary(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "week_start_date": _date_str(row.get("week_start_date")),
        "week_end_date": _date_str(row.get("week_end_date")),
        "employee_count": int(parse_numeric(row.get("employee_count"), default=0)),
        "total_hours": parse_numeric(row.get("total_hours"), default=0),
        "last_synced_at": _iso(row.get("last_synced_at")),
    }


def _timesheet_mapping(ts: Timesheet) -> Dict[str, Any]:
    return {c.name: getattr(ts, c.name) for c in Timesheet.__table__.columns}


def _call_sql_function(db: Session, sql: str, params: Optional[dict] = None) -> Optional[List[Mapping[str, Any]]]:
    """Rows from a database-side function, or None when it can't be used here."""
    if dialect_name(db) != "postgresql":
        return None
    try:
        with db.begin_nested():
            return list(db.execute(text(sql), params or {}).mappings().all())
    except SQLAlchemyError:
        logger.warning("SQL function unavailable, falling back to direct query", extra={"sql": sql}, exc_info=True)
        return None


def get_available_timesheet_weeks(*, db: Optional[Session] = None) -> List[Dict[str, Any]]:
    with session_scope(db) as s:
        rows = _call_sql_function(
            s,
            "SELECT week_start_date, week_end_date, employee_count, total_hours, last_synced_at "
            "FROM get_available_timesheet_weeks()",
        )
        if rows is not None:
            return [coerce_week_summary(r) for r in rows]

        raw = (
            s.query(
                Timesheet.week_start_date,
                Timesheet.week_end_date,
                Timesheet.total_hours,
                Timesheet.synced_at,
            )
            .order_by(Timesheet.week_start_date.desc(), Timesheet.synced_at.desc())
            .all()
        )

        grouped: Dict[date, Dict[str, Any]] = {}
        for r in raw:
            summary = grouped.get(r.week_start_date)
            if summary is None:
                summary = {
                    "week_start_date": r.week_start_date,
                    "week_end_date": r.week_end_date,
                    "employee_count": 0,
                    "total_hours": 0.0,
                    "last_synced_at": r.synced_at,
                }
                grouped[r.week_start_date] = summary

            summary["employee_count"] += 1
            summary["total_hours"] += parse_numeric(r.total_hours, default=0)
            if summary["last_synced_at"] is None:
                summary["last_synced_at"] = r.synced_at

        return [coerce_week_summary(v) for v in grouped.values()]


def get_timesheets_for_week(week_start: DateLike, *, db: Optional[Session] = None) -> List[Dict[str, Any]]:
    week_start_date = parse_date(week_start)

    with session_scope(db) as s:
        rows = _call_sql_function(
            s,
            "SELECT * FROM get_timesheets_for_week(:p_week_start_date)",
            {"p_week_start_date": week_start_date},
        )
        if rows is not None:
            return [coerce_timesheet_with_employee(r) for r in rows]

        raw = (
            s.query(Timesheet, Employee)
            .join(Employee, Employee.id == Timesheet.employee_id)
            .filter(Timesheet.week_start_date == week_start_date)
            .order_by(Employee.name.asc(), Timesheet.id.asc())
            .all()
        )

        results = []
        for ts, emp in raw:
            row = _timesheet_mapping(ts)
            row.update(
                employee_name=emp.name,
                employee_email=emp.email,
                employee_hourly_rate=emp.hourly_rate,
                employee_job_title=emp.job_title,
            )
            results.append(coerce_timesheet_with_employee(row))
        return results


def _upsert_statement(db: Session, rows: List[Dict[str, Any]]):
    dialect = dialect_name(db)
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ValueError(f"Timesheet upsert not supported on dialect {dialect!r}")

    stmt = insert(Timesheet).values(rows)
    update_cols = ("week_end_date",) + _HOUR_FIELDS + ("synced_from_connecteam", "synced_at", "updated_at")
    return stmt.on_conflict_do_update(
        index_elements=["employee_id", "week_start_date"],
        set_={c: stmt.excluded[c] for c in update_cols},
    )


def _row_for_entry(entry: TimesheetEntry, synced_at: datetime) -> Dict[str, Any]:
    hours = {f"{day}_hours": to_decimal(entry.daily_hours.get(day, 0)) for day in WEEKDAY_NAMES}
    for value in list(hours.values()) + [to_decimal(entry.total_hours)]:
        if value < 0:
            raise ValueError("timesheet hours must be non-negative")

    return {
        "employee_id": int(entry.employee_id),
        "week_start_date": entry.week_start_date,
        "week_end_date": entry.week_end_date,
        "total_hours": to_decimal(entry.total_hours),
        **hours,
        "synced_from_connecteam": True,
        "synced_at": synced_at,
        "created_at": synced_at,
        "updated_at": synced_at,
    }


def bulk_upsert_timesheets(
    entries: Iterable[TimesheetEntry],
    *,
    db: Optional[Session] = None,
    synced_at: Optional[datetime] = None,
) -> BulkUpsertResult:
    """
    One batched upsert keyed on (employee_id, week_start_date).

    Failures are reported, not raised, so a sync run can surface them next to
    its other per-employee errors.
    """
    synced_at = synced_at or _utcnow()
    entries = list(entries)
    if not entries:
        return BulkUpsertResult(success=0, errors=[])

    try:
        rows = [_row_for_entry(e, synced_at) for e in entries]
    except ValueError as exc:
        return BulkUpsertResult(success=0, errors=[str(exc)])

    with session_scope(db) as s:
        try:
            with s.begin_nested():
                s.execute(_upsert_statement(s, rows))
        except SQLAlchemyError as exc:
            logger.error("Bulk timesheet upsert failed", extra={"rows": len(rows)}, exc_info=True)
            return BulkUpsertResult(success=0, errors=[str(exc.orig if getattr(exc, "orig", None) else exc)])

        return BulkUpsertResult(success=len(rows), errors=[])


def upsert_timesheet(
    employee_id: int,
    week_start: DateLike,
    week_end: Optional[DateLike] = None,
    total_hours: Any = 0,
    daily_hours: Optional[Mapping[str, Any]] = None,
    *,
    db: Optional[Session] = None,
) -> Dict[str, Any]:
    start = parse_date(week_start)
    end = parse_date(week_end) if week_end is not None else get_week_end(start)
    entry = TimesheetEntry(
        employee_id=int(employee_id),
        week_start_date=start,
        week_end_date=end,
        total_hours=to_decimal(total_hours),
        daily_hours={k: to_decimal(v) for k, v in (daily_hours or {}).items()},
    )

    with session_scope(db) as s:
        s.execute(_upsert_statement(s, [_row_for_entry(entry, _utcnow())]))
        s.expire_all()
        ts = (
            s.query(Timesheet)
            .filter(Timesheet.employee_id == int(employee_id), Timesheet.week_start_date == start)
            .one()
        )
        return coerce_timesheet_row(_timesheet_mapping(ts))


def delete_timesheets_for_week(week_start: DateLike, *, db: Optional[Session] = None) -> int:
    with session_scope(db) as s:
        return (
            s.query(Timesheet)
            .filter(Timesheet.week_start_date == parse_date(week_start))
            .delete(synchronize_session=False)
        )


def delete_timesheets_near_week(week_start: DateLike, *, db: Optional[Session] = None) -> int:
    """Delete every row whose week start lies within the legacy tolerance window."""
    lo, hi = tolerance_window(week_start)
    with session_scope(db) as s:
        return (
            s.query(Timesheet)
            .filter(Timesheet.week_start_date >= lo, Timesheet.week_start_date <= hi)
            .delete(synchronize_session=False)
        )


def max_hours_by_employee_near_week(
    week_start: DateLike, *, db: Optional[Session] = None
) -> Tuple[Dict[int, Decimal], int]:
    """
    employee id -> hours for the week, reading every row in the tolerance window.

    When an employee has several rows in the window the largest total wins and
    a warning is logged: this resolves timezone-shifted duplicates, but it
    would equally hide two genuinely different weeks colliding.
    Also returns the number of rows read.
    """
    lo, hi = tolerance_window(week_start)
    with session_scope(db) as s:
        rows = (
            s.query(Timesheet.employee_id, Timesheet.total_hours, Timesheet.week_start_date)
            .filter(Timesheet.week_start_date >= lo, Timesheet.week_start_date <= hi)
            .all()
        )

    hours: Dict[int, Decimal] = {}
    seen: Dict[int, set] = {}
    for employee_id, total_hours, row_week_start in rows:
        value = to_decimal(total_hours)
        seen.setdefault(employee_id, set()).add((row_week_start, value))
        if value > hours.get(employee_id, Decimal("0")) or employee_id not in hours:
            hours[employee_id] = value

    for employee_id, variants in seen.items():
        if len({v for _, v in variants}) > 1:
            logger.warning(
                "Conflicting timesheet rows near week; using maximum hours",
                extra={
                    "employee_id": employee_id,
                    "week_start": format_date(week_start),
                    "variants": sorted((format_date(d), str(v)) for d, v in variants),
                },
            )

    return hours, len(rows)
