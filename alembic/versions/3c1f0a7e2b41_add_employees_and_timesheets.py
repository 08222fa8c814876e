"""add employees and timesheets

Revision ID: 3c1f0a7e2b41
Revises:
Create Date: 2026-09-28 10:12:44.218301

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a7e2b41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _hours_column(name: str, precision: int = 6) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision, 2), nullable=False, server_default="0")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("kiosk_code", sa.String(), nullable=True),
        sa.Column("employee_number", sa.String(), nullable=True),
        sa.Column("job_title", sa.String(), nullable=True),
        sa.Column("employment_start_date", sa.Date(), nullable=True),
        sa.Column("connecteam_id", sa.String(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_week_hours", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_employees_id", "employees", ["id"], unique=False)
    op.create_index("ix_employees_connecteam_id", "employees", ["connecteam_id"], unique=False)

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("week_end_date", sa.Date(), nullable=False),
        _hours_column("total_hours", precision=8),
        _hours_column("monday_hours"),
        _hours_column("tuesday_hours"),
        _hours_column("wednesday_hours"),
        _hours_column("thursday_hours"),
        _hours_column("friday_hours"),
        _hours_column("saturday_hours"),
        _hours_column("sunday_hours"),
        sa.Column("synced_from_connecteam", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("employee_id", "week_start_date", name="uq_timesheets_employee_week"),
        sa.CheckConstraint("week_end_date > week_start_date", name="ck_timesheets_week_order"),
        sa.CheckConstraint("total_hours >= 0", name="ck_timesheets_total_hours_nonnegative"),
    )
    op.create_index("ix_timesheets_id", "timesheets", ["id"], unique=False)
    op.create_index("ix_timesheets_employee_id", "timesheets", ["employee_id"], unique=False)
    op.create_index("ix_timesheets_week_start_date", "timesheets", ["week_start_date"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_timesheets_week_start_date", table_name="timesheets")
    op.drop_index("ix_timesheets_employee_id", table_name="timesheets")
    op.drop_index("ix_timesheets_id", table_name="timesheets")
    op.drop_table("timesheets")

    op.drop_index("ix_employees_connecteam_id", table_name="employees")
    op.drop_index("ix_employees_id", table_name="employees")
    op.drop_table("employees")
