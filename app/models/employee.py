from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    kiosk_code = Column(String, nullable=True)
    employee_number = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    employment_start_date = Column(Date, nullable=True)

    # Connecteam user id; employees without one always sync to zero hours
    connecteam_id = Column(String, nullable=True, index=True)

    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Written only by the Connecteam sync
    current_week_hours = Column(Numeric(8, 2), nullable=False, default=0)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
