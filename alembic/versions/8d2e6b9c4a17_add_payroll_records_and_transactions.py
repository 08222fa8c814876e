"""add payroll records and transactions

Revision ID: 8d2e6b9c4a17
Revises: 3c1f0a7e2b41
Create Date: 2026-09-28 10:40:02.771946

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d2e6b9c4a17'
down_revision: Union[str, Sequence[str], None] = '3c1f0a7e2b41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "payroll_records",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hours_worked", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("total_pay", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status_overridden_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("employee_id", "date", name="uq_payroll_records_employee_week"),
        sa.CheckConstraint(
            "status IN ('pending', 'partial', 'paid')",
            name="ck_payroll_records_status_valid",
        ),
        sa.CheckConstraint("hours_worked >= 0", name="ck_payroll_records_hours_nonnegative"),
        sa.CheckConstraint("total_pay >= 0", name="ck_payroll_records_total_pay_nonnegative"),
    )
    op.create_index("ix_payroll_records_id", "payroll_records", ["id"], unique=False)
    op.create_index("ix_payroll_records_employee_id", "payroll_records", ["employee_id"], unique=False)
    op.create_index("ix_payroll_records_date", "payroll_records", ["date"], unique=False)

    op.create_table(
        "payroll_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "payroll_record_id",
            sa.Integer(),
            sa.ForeignKey("payroll_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("method", sa.String(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_payroll_transactions_amount_positive"),
    )
    op.create_index("ix_payroll_transactions_id", "payroll_transactions", ["id"], unique=False)
    op.create_index(
        "ix_payroll_transactions_payroll_record_id",
        "payroll_transactions",
        ["payroll_record_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_payroll_transactions_payroll_record_id", table_name="payroll_transactions")
    op.drop_index("ix_payroll_transactions_id", table_name="payroll_transactions")
    op.drop_table("payroll_transactions")

    op.drop_index("ix_payroll_records_date", table_name="payroll_records")
    op.drop_index("ix_payroll_records_employee_id", table_name="payroll_records")
    op.drop_index("ix_payroll_records_id", table_name="payroll_records")
    op.drop_table("payroll_records")
