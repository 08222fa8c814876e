"""
Connecteam -> timesheets sync.

Connecteam is the source of truth for hours. A run resolves the target week,
pulls the provider's per-day totals in one call, then writes in two phases:

  reset     zero every employee's cached current_week_hours (optional)
  populate  replace the week's timesheet rows and refresh cached hours for
            every employee, matched by connecteam_id

Fatal problems (no clock, provider/HTTP failure) happen before any write and
end the run with success=False. Store failures inside the write phases are
collected into errors[] and the run carries on.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import lock_week, session_scope
from app.models.employee import Employee
from app.services.connecteam_client import (
    ConnecteamAPIError,
    ConnecteamClient,
    ConnecteamConfigError,
    DailyHoursBreakdown,
)
from app.services.numeric import round_hours
from app.services.timesheet_service import (
    TimesheetEntry,
    bulk_upsert_timesheets,
    delete_timesheets_near_week,
)
from app.services.week_dates import DateLike, parse_date, week_range, weekday_name

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    success: bool
    employees_synced: int
    errors: List[str] = field(default_factory=list)
    synced_at: str = ""
    week_start_date: Optional[str] = None
    week_end_date: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def daily_hours_by_weekday(breakdown: DailyHoursBreakdown) -> Dict[str, Decimal]:
    """YYYY-MM-DD keyed hours -> monday..sunday keyed hours."""
    out: Dict[str, Decimal] = {}
    for date_key, hours in breakdown.daily_hours.items():
        out[weekday_name(date_key)] = round_hours(hours)
    return out


def reset_current_week_hours(db: Session) -> int:
    """Phase 1: every employee's cached weekly hours back to zero."""
    return db.query(Employee).update({Employee.current_week_hours: 0})


def populate_week_hours(
    db: Session,
    employees: List[Employee],
    hours_by_user: Mapping[str, DailyHoursBreakdown],
    week_start: date,
    week_end: date,
    *,
    synced_at: datetime,
    write_unmatched: bool,
    weekday_hours: Optional[Mapping[str, Dict[str, Decimal]]] = None,
) -> Tuple[int, List[str], List[TimesheetEntry]]:
    """
    Phase 2: refresh cached hours and build one timesheet entry per employee.

    Employees without a connecteam_id (or absent from the provider response)
    get zero hours. Their cached field is only written when write_unmatched
    is set, since the reset phase already zeroed it otherwise.

    weekday_hours, when given, is the already-normalized per-day breakdown
    keyed like hours_by_user.
    """
    synced = 0
    errors: List[str] = []
    entries: List[TimesheetEntry] = []

    for emp in employees:
        if not emp.connecteam_id:
            if write_unmatched:
                if _write_cached_hours(db, emp, Decimal("0"), synced_at, errors):
                    synced += 1
            entries.append(
                TimesheetEntry(employee_id=emp.id, week_start_date=week_start, week_end_date=week_end)
            )
            continue

        key = str(emp.connecteam_id)
        breakdown = hours_by_user.get(key) or DailyHoursBreakdown()
        if weekday_hours is not None:
            daily = dict(weekday_hours.get(key) or {})
        else:
            daily = daily_hours_by_weekday(breakdown)
        total = round_hours(breakdown.total_hours)

        if _write_cached_hours(db, emp, total, synced_at, errors):
            synced += 1

        entries.append(
            TimesheetEntry(
                employee_id=emp.id,
                week_start_date=week_start,
                week_end_date=week_end,
                total_hours=total,
                daily_hours=daily,
            )
        )

    return synced, errors, entries


def _write_cached_hours(
    db: Session, emp: Employee, hours: Decimal, synced_at: datetime, errors: List[str]
) -> bool:
    try:
        with db.begin_nested():
            emp.current_week_hours = hours
            emp.last_sync_at = synced_at
            db.flush()
    except SQLAlchemyError as exc:
        logger.error("Cached hours update failed", extra={"employee_id": emp.id}, exc_info=True)
        errors.append(f"Failed to update {emp.name}: {exc}")
        return False
    return True


def sync_week_hours(
    gateway: Optional[ConnecteamClient] = None,
    week_start_date: Optional[DateLike] = None,
    clear_first: bool = True,
    *,
    db: Optional[Session] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SyncResult:
    """
    Sync one week of Connecteam hours into employees + timesheets.

    week_start_date may be any day of the target week (default: the week
    containing today). Re-running for the same week replaces that week's
    rows, so the last run wins.
    """
    synced_at = now or _utcnow()
    errors: List[str] = []

    with session_scope(db) as s:
        employees = s.query(Employee).order_by(Employee.id.asc()).all()
        if not employees:
            return SyncResult(
                success=True,
                employees_synced=0,
                errors=["No employees found"],
                synced_at=synced_at.isoformat(),
            )

        try:
            start_str, end_str = week_range(week_start_date, today=today)
            client = gateway or ConnecteamClient()
            clock = client.get_active_time_clock()
            hours_by_user = client.get_timesheet_totals_with_daily(clock.id, start_str, end_str)
            # bad day keys or hour values end the run here, before any write
            weekday_hours = {uid: daily_hours_by_weekday(b) for uid, b in hours_by_user.items()}
        except (ConnecteamConfigError, ConnecteamAPIError, ValueError) as exc:
            logger.error("Connecteam sync aborted", extra={"reason": str(exc)})
            return SyncResult(
                success=False,
                employees_synced=0,
                errors=[str(exc)],
                synced_at=synced_at.isoformat(),
            )

        week_start = parse_date(start_str)
        week_end = parse_date(end_str)
        lock_week(s, "week", start_str)

        if clear_first:
            try:
                with s.begin_nested():
                    reset_current_week_hours(s)
            except SQLAlchemyError as exc:
                errors.append(f"Warning: Failed to clear existing hours: {exc}")

        try:
            with s.begin_nested():
                deleted = delete_timesheets_near_week(week_start, db=s)
        except SQLAlchemyError as exc:
            deleted = 0
            errors.append(f"Failed to clear existing timesheets: {exc}")

        synced, populate_errors, entries = populate_week_hours(
            s,
            employees,
            hours_by_user,
            week_start,
            week_end,
            synced_at=synced_at,
            write_unmatched=not clear_first,
            weekday_hours=weekday_hours,
        )
        errors.extend(populate_errors)

        upsert = bulk_upsert_timesheets(entries, db=s, synced_at=synced_at)
        errors.extend(f"Timesheet save error: {e}" for e in upsert.errors)

        logger.info(
            "Connecteam sync finished",
            extra={
                "week_start": start_str,
                "employees_synced": synced,
                "timesheets_replaced": deleted,
                "timesheets_written": upsert.success,
                "error_count": len(errors),
            },
        )

        return SyncResult(
            success=not errors,
            employees_synced=synced,
            errors=errors,
            synced_at=synced_at.isoformat(),
            week_start_date=start_str,
            week_end_date=end_str,
        )
