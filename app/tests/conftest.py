import os
import tempfile
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / 'cleaning_ops_payroll_test.db'}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app import database
from app.models import Employee, PayrollRecord, Timesheet
from app.services.connecteam_client import (
    ConnecteamAPIError,
    ConnecteamUser,
    DailyHoursBreakdown,
    TimeClock,
)
from app.services.week_dates import get_week_end


def _get_access_token(client, user_id: str = "test", role: str = "ADMIN") -> str:
    resp = client.post("/auth/token", json={"user_id": user_id, "role": role})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    data = resp.json()
    assert isinstance(data, dict), f"token response not a JSON object: {data}"
    assert "access_token" in data, f"token response missing access_token: {data}"
    return data["access_token"]


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    database.configure_database()

    if make_url(TEST_DATABASE_URL).drivername.startswith("postgresql"):
        _ensure_database_exists(TEST_DATABASE_URL)

        env = os.environ.copy()
        env["DATABASE_URL"] = TEST_DATABASE_URL

        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            cwd=Path(__file__).resolve().parents[2],
            env=env,
        )
        return

    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)


@pytest.fixture(scope="function", autouse=True)
def _clear_tables_between_tests():
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def db_session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def employee_factory():
    def _make(
        name: str = "Alice Smith",
        hourly_rate="20.00",
        connecteam_id: Optional[str] = None,
        is_active: bool = True,
        **fields,
    ) -> Employee:
        db = database.SessionLocal()
        try:
            row = Employee(
                name=name,
                hourly_rate=Decimal(str(hourly_rate)),
                connecteam_id=connecteam_id,
                is_active=is_active,
                current_week_hours=Decimal(str(fields.pop("current_week_hours", "0"))),
                **fields,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def timesheet_factory():
    def _make(employee_id: int, week_start: date, total_hours="0", **daily) -> Timesheet:
        db = database.SessionLocal()
        try:
            row = Timesheet(
                employee_id=employee_id,
                week_start_date=week_start,
                week_end_date=get_week_end(week_start),
                total_hours=Decimal(str(total_hours)),
                synced_from_connecteam=True,
                synced_at=daily.pop("synced_at", datetime.now(timezone.utc)),
                **{f"{day}_hours": Decimal(str(v)) for day, v in daily.items()},
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return _make


@pytest.fixture
def payroll_record_factory():
    def _make(
        employee_id: int,
        week_start: date,
        hours_worked="0",
        total_pay="0",
        status: str = "pending",
        notes: Optional[str] = None,
    ) -> PayrollRecord:
        db = database.SessionLocal()
        try:
            row = PayrollRecord(
                employee_id=employee_id,
                date=week_start,
                hours_worked=Decimal(str(hours_worked)),
                total_pay=Decimal(str(total_pay)),
                status=status,
                notes=notes,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return _make


class FakeGateway:
    """In-memory stand-in for ConnecteamClient."""

    def __init__(self) -> None:
        self.clock: Optional[TimeClock] = TimeClock(id=9001, name="Main clock", is_archived=False)
        self.hours: Dict[str, DailyHoursBreakdown] = {}
        self.users: List[ConnecteamUser] = []
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []

    def set_hours(self, user_id, daily: Dict[str, float]) -> None:
        self.hours[str(user_id)] = DailyHoursBreakdown(
            total_hours=sum(daily.values()),
            daily_hours=dict(daily),
        )

    def get_active_time_clock(self) -> TimeClock:
        if self.error is not None:
            raise self.error
        if self.clock is None:
            raise ConnecteamAPIError("No active time clock found")
        return self.clock

    def get_timesheet_totals_with_daily(self, time_clock_id, start_date, end_date):
        self.calls.append((time_clock_id, start_date, end_date))
        return dict(self.hours)

    def get_connecteam_users(self) -> List[ConnecteamUser]:
        if self.error is not None:
            raise self.error
        return list(self.users)

    def test_connection(self) -> dict:
        if self.error is not None:
            raise self.error
        return {"ok": True, "base_url": "fake", "time_clock_count": 1, "active_time_clocks": [self.clock.name]}


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(fake_gateway):
    from app.deps.connecteam import get_connecteam_client
    from app.main import app

    app.dependency_overrides[get_connecteam_client] = lambda: fake_gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client) -> dict:
    return {"Authorization": f"Bearer {_get_access_token(client, role='ADMIN')}"}


@pytest.fixture
def manager_headers(client) -> dict:
    return {"Authorization": f"Bearer {_get_access_token(client, role='MANAGER')}"}
