from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.orm import backref, relationship

from app.database import Base

WEEKDAY_COLUMNS = (
    "monday_hours",
    "tuesday_hours",
    "wednesday_hours",
    "thursday_hours",
    "friday_hours",
    "saturday_hours",
    "sunday_hours",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Timesheet(Base):
    __tablename__ = "timesheets"

    __table_args__ = (
        UniqueConstraint("employee_id", "week_start_date", name="uq_timesheets_employee_week"),
        CheckConstraint("week_end_date > week_start_date", name="ck_timesheets_week_order"),
        CheckConstraint("total_hours >= 0", name="ck_timesheets_total_hours_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    week_start_date = Column(Date, nullable=False, index=True)
    week_end_date = Column(Date, nullable=False)

    total_hours = Column(Numeric(8, 2), nullable=False, default=0)
    monday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    tuesday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    wednesday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    thursday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    friday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    saturday_hours = Column(Numeric(6, 2), nullable=False, default=0)
    sunday_hours = Column(Numeric(6, 2), nullable=False, default=0)

    synced_from_connecteam = Column(Boolean, nullable=False, default=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    employee = relationship("Employee", backref=backref("timesheets", passive_deletes=True))
