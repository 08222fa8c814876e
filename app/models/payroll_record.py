from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import backref, relationship

from app.database import Base

PAYROLL_STATUSES = ("pending", "partial", "paid")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PayrollRecord(Base):
    __tablename__ = "payroll_records"

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_payroll_records_employee_week"),
        CheckConstraint(
            "status IN ('pending', 'partial', 'paid')",
            name="ck_payroll_records_status_valid",
        ),
        CheckConstraint("hours_worked >= 0", name="ck_payroll_records_hours_nonnegative"),
        CheckConstraint("total_pay >= 0", name="ck_payroll_records_total_pay_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(
        Integer,
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # week start (Monday)
    date = Column(Date, nullable=False, index=True)

    hours_worked = Column(Numeric(8, 2), nullable=False, default=0)
    # snapshot of hours * hourly_rate at generation time
    total_pay = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="pending")
    notes = Column(Text, nullable=True)

    # set by an administrative status override, cleared by the next payment
    status_overridden_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    employee = relationship("Employee", backref=backref("payroll_records", passive_deletes="all"))
    transactions = relationship(
        "PayrollTransaction",
        back_populates="payroll_record",
        cascade="all, delete-orphan",
        order_by="PayrollTransaction.paid_at",
    )
