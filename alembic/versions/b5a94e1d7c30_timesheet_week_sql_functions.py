"""timesheet week sql functions

Revision ID: b5a94e1d7c30
Revises: 8d2e6b9c4a17
Create Date: 2026-09-30 09:05:37.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b5a94e1d7c30'
down_revision: Union[str, Sequence[str], None] = '8d2e6b9c4a17'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    """Upgrade schema."""
    if not _is_postgres():
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION get_available_timesheet_weeks()
        RETURNS TABLE (
            week_start_date date,
            week_end_date date,
            employee_count bigint,
            total_hours numeric,
            last_synced_at timestamptz
        ) AS $$
            SELECT
                t.week_start_date,
                max(t.week_end_date) AS week_end_date,
                count(*) AS employee_count,
                coalesce(sum(t.total_hours), 0) AS total_hours,
                max(t.synced_at) AS last_synced_at
            FROM timesheets t
            GROUP BY t.week_start_date
            ORDER BY t.week_start_date DESC;
        $$ LANGUAGE sql STABLE;

        CREATE OR REPLACE FUNCTION get_timesheets_for_week(p_week_start_date date)
        RETURNS TABLE (
            id integer,
            employee_id integer,
            week_start_date date,
            week_end_date date,
            total_hours numeric,
            monday_hours numeric,
            tuesday_hours numeric,
            wednesday_hours numeric,
            thursday_hours numeric,
            friday_hours numeric,
            saturday_hours numeric,
            sunday_hours numeric,
            synced_from_connecteam boolean,
            synced_at timestamptz,
            created_at timestamptz,
            updated_at timestamptz,
            employee_name varchar,
            employee_email varchar,
            employee_hourly_rate numeric,
            employee_job_title varchar
        ) AS $$
            SELECT
                t.id,
                t.employee_id,
                t.week_start_date,
                t.week_end_date,
                t.total_hours,
                t.monday_hours,
                t.tuesday_hours,
                t.wednesday_hours,
                t.thursday_hours,
                t.friday_hours,
                t.saturday_hours,
                t.sunday_hours,
                t.synced_from_connecteam,
                t.synced_at,
                t.created_at,
                t.updated_at,
                e.name,
                e.email,
                e.hourly_rate,
                e.job_title
            FROM timesheets t
            JOIN employees e ON e.id = t.employee_id
            WHERE t.week_start_date = p_week_start_date
            ORDER BY e.name ASC, t.id ASC;
        $$ LANGUAGE sql STABLE;
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    if not _is_postgres():
        return

    op.execute(
        """
        DROP FUNCTION IF EXISTS get_timesheets_for_week(date);
        DROP FUNCTION IF EXISTS get_available_timesheet_weeks();
        """
    )
