"""
Connecteam time-clock / users API client.

Thin I/O adapter: authenticate with X-API-Key, GET JSON, flatten the
provider's shapes into plain dataclasses. No retries; a failed call raises
and the caller decides whether to re-run the whole (idempotent) sync.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

import requests

from app.services.week_dates import DateLike, format_date, week_range

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.connecteam.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
USERS_PAGE_SIZE = 100
ERROR_BODY_LIMIT = 200


class ConnecteamConfigError(RuntimeError):
    pass


class ConnecteamAPIError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class TimeClock:
    id: int
    name: str
    is_archived: bool


@dataclass(frozen=True)
class TimeActivity:
    id: int
    user_id: int
    start_time: Optional[str]
    end_time: Optional[str]
    duration: float
    status: Optional[str]
    job_id: Optional[int] = None


@dataclass
class DailyHoursBreakdown:
    total_hours: float = 0.0
    daily_hours: Dict[str, float] = field(default_factory=dict)  # YYYY-MM-DD -> hours


@dataclass(frozen=True)
class CustomField:
    custom_field_id: int
    name: str
    type: str
    value: Union[str, int, float, List[Dict[str, Any]], None]


@dataclass(frozen=True)
class ConnecteamUser:
    user_id: int
    first_name: str
    last_name: str
    is_archived: bool
    email: Optional[str] = None
    phone_number: Optional[str] = None
    kiosk_code: Optional[str] = None
    custom_fields: List[CustomField] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ConnecteamUser":
        return cls(
            user_id=int(payload["userId"]),
            first_name=str(payload.get("firstName") or ""),
            last_name=str(payload.get("lastName") or ""),
            is_archived=bool(payload.get("isArchived", False)),
            email=payload.get("email") or None,
            phone_number=payload.get("phoneNumber") or None,
            kiosk_code=payload.get("kioskCode") or None,
            custom_fields=[
                CustomField(
                    custom_field_id=int(f.get("customFieldId", 0)),
                    name=str(f.get("name", "")),
                    type=str(f.get("type", "")),
                    value=f.get("value"),
                )
                for f in (payload.get("customFields") or [])
            ],
        )


def get_custom_field_value(user: ConnecteamUser, field_name: str) -> Optional[str]:
    found = next((f for f in user.custom_fields if f.name == field_name), None)
    if found is None:
        return None

    value = found.value
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    # dropdown-style fields: [{"id": 1, "value": "..."}]
    if isinstance(value, list) and value:
        return ", ".join(str(v.get("value", "")) for v in value if isinstance(v, dict))
    return None


def calculate_total_hours(activities: Iterable[TimeActivity]) -> float:
    total_seconds = sum(a.duration or 0 for a in activities)
    return total_seconds / 3600


def get_current_week_range(today: Optional[date] = None) -> tuple[str, str]:
    return week_range(today=today)


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


class ConnecteamClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv("CONNECTEAM_PAYROLL_API_KEY", "")
        self.base_url = (base_url or os.getenv("CONNECTEAM_API_BASE") or DEFAULT_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else _env_float(
            "CONNECTEAM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
        )
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("CONNECTEAM_PAYROLL_API_KEY is not set; Connecteam calls will fail")

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.api_key:
            raise ConnecteamConfigError("CONNECTEAM_PAYROLL_API_KEY is required")

        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers={
                    "X-API-Key": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ConnecteamAPIError(f"Connecteam request failed ({endpoint}): {exc}") from exc

        raw = response.text or ""

        if not response.ok:
            logger.warning(
                "Connecteam API error",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
            raise ConnecteamAPIError(
                f"Connecteam API error ({response.status_code} {response.reason}): "
                f"{raw[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ConnecteamAPIError(
                f"Connecteam API returned non-JSON response: {raw[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
            ) from exc

        if not isinstance(body, dict):
            raise ConnecteamAPIError(
                f"Connecteam API returned unexpected payload: {raw[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
            )
        return body

    def list_time_clocks(self) -> List[TimeClock]:
        body = self._get("/time-clock/v1/time-clocks")
        clocks = (body.get("data") or {}).get("timeClocks") or []
        return [
            TimeClock(
                id=int(c["id"]),
                name=str(c.get("name", "")),
                is_archived=bool(c.get("isArchived", False)),
            )
            for c in clocks
        ]

    def get_active_time_clock(self) -> TimeClock:
        clocks = self.list_time_clocks()
        if not clocks:
            raise ConnecteamAPIError("No time clocks found in Connecteam")

        # single-clock deployment: first non-archived clock wins
        active = next((c for c in clocks if not c.is_archived), None)
        if active is None:
            raise ConnecteamAPIError("No active time clock found")
        return active

    def get_time_activities(
        self, time_clock_id: int, start_date: DateLike, end_date: DateLike
    ) -> List[TimeActivity]:
        body = self._get(
            f"/time-clock/v1/time-clocks/{int(time_clock_id)}/time-activities",
            params={"startDate": format_date(start_date), "endDate": format_date(end_date)},
        )

        activities: List[TimeActivity] = []
        for group in (body.get("data") or {}).get("timeActivitiesByUsers") or []:
            user_id = group.get("userId")
            for a in group.get("timeActivities") or []:
                activities.append(
                    TimeActivity(
                        id=int(a.get("id", 0)),
                        user_id=int(user_id if user_id is not None else a.get("userId")),
                        start_time=a.get("startTime"),
                        end_time=a.get("endTime"),
                        duration=float(a.get("duration") or 0),
                        status=a.get("status"),
                        job_id=a.get("jobId"),
                    )
                )
        return activities

    def get_timesheet_totals_with_daily(
        self, time_clock_id: int, start_date: DateLike, end_date: DateLike
    ) -> Dict[str, DailyHoursBreakdown]:
        """Provider-aggregated hours keyed by Connecteam user id (as str)."""
        body = self._get(
            f"/time-clock/v1/time-clocks/{int(time_clock_id)}/timesheet",
            params={"startDate": format_date(start_date), "endDate": format_date(end_date)},
        )

        hours: Dict[str, DailyHoursBreakdown] = {}
        try:
            for user in (body.get("data") or {}).get("users") or []:
                breakdown = DailyHoursBreakdown()
                for day in user.get("dailyRecords") or []:
                    day_hours = float(day.get("dailyTotalHours") or 0)
                    breakdown.total_hours += day_hours
                    breakdown.daily_hours[str(day["date"])] = day_hours
                hours[str(user["userId"])] = breakdown
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ConnecteamAPIError(f"Malformed Connecteam timesheet payload: {exc!r}") from exc
        return hours

    def get_timesheet_totals(
        self, time_clock_id: int, start_date: DateLike, end_date: DateLike
    ) -> Dict[str, float]:
        with_daily = self.get_timesheet_totals_with_daily(time_clock_id, start_date, end_date)
        return {user_id: b.total_hours for user_id, b in with_daily.items()}

    def get_connecteam_users(self) -> List[ConnecteamUser]:
        users: List[ConnecteamUser] = []
        offset = 0

        while True:
            body = self._get(
                "/users/v1/users",
                params={"limit": USERS_PAGE_SIZE, "offset": offset},
            )
            data = body.get("data") or {}
            users.extend(ConnecteamUser.from_payload(u) for u in data.get("users") or [])

            if not data.get("hasMore"):
                break
            offset += USERS_PAGE_SIZE

        return users

    def test_connection(self) -> Dict[str, Any]:
        clocks = self.list_time_clocks()
        return {
            "ok": True,
            "base_url": self.base_url,
            "time_clock_count": len(clocks),
            "active_time_clocks": [c.name for c in clocks if not c.is_archived],
        }
