from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PayrollTransaction(Base):
    __tablename__ = "payroll_transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payroll_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    payroll_record_id = Column(
        Integer,
        ForeignKey("payroll_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Numeric(10, 2), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    method = Column(String, nullable=True)
    memo = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    payroll_record = relationship("PayrollRecord", back_populates="transactions")
