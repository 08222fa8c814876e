import json
from datetime import date

import pytest
import requests

from app.services.connecteam_client import (
    ConnecteamAPIError,
    ConnecteamClient,
    ConnecteamConfigError,
    ConnecteamUser,
    TimeActivity,
    calculate_total_hours,
    get_current_week_range,
    get_custom_field_value,
)


class StubResponse:
    def __init__(self, status_code=200, body=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._body is None:
            return json.loads(self.text)
        return self._body


class StubSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _client(*responses, **kwargs):
    session = StubSession(responses)
    client = ConnecteamClient(api_key="secret-key", base_url="https://ct.test/", session=session, **kwargs)
    return client, session


def test_missing_api_key_fails_at_call_time_not_construction(monkeypatch):
    monkeypatch.delenv("CONNECTEAM_PAYROLL_API_KEY", raising=False)
    session = StubSession([])
    client = ConnecteamClient(session=session)

    with pytest.raises(ConnecteamConfigError):
        client.list_time_clocks()
    assert session.requests == []


def test_requests_carry_api_key_and_timeout():
    client, session = _client(StubResponse(body={"data": {"timeClocks": []}}), timeout=12)

    client.list_time_clocks()

    sent = session.requests[0]
    assert sent["url"] == "https://ct.test/time-clock/v1/time-clocks"
    assert sent["headers"]["X-API-Key"] == "secret-key"
    assert sent["timeout"] == 12


def test_timeout_env_falls_back_on_invalid_value(monkeypatch):
    monkeypatch.setenv("CONNECTEAM_TIMEOUT_SECONDS", "not-a-number")
    client = ConnecteamClient(api_key="k", session=StubSession([]))
    assert client.timeout == 30.0


def test_active_clock_is_first_non_archived():
    client, _ = _client(
        StubResponse(
            body={
                "data": {
                    "timeClocks": [
                        {"id": 1, "name": "Old", "isArchived": True},
                        {"id": 2, "name": "Main", "isArchived": False},
                        {"id": 3, "name": "Backup", "isArchived": False},
                    ]
                }
            }
        )
    )
    assert client.get_active_time_clock().id == 2


def test_no_active_clock_raises():
    client, _ = _client(StubResponse(body={"data": {"timeClocks": [{"id": 1, "name": "Old", "isArchived": True}]}}))
    with pytest.raises(ConnecteamAPIError, match="No active time clock"):
        client.get_active_time_clock()


def test_non_2xx_error_embeds_truncated_body():
    client, _ = _client(StubResponse(status_code=500, text="x" * 500, reason="Internal Server Error"))

    with pytest.raises(ConnecteamAPIError) as excinfo:
        client.list_time_clocks()

    assert excinfo.value.status_code == 500
    message = str(excinfo.value)
    assert "500" in message
    assert "x" * 200 in message
    assert "x" * 201 not in message


def test_non_json_body_raises():
    client, _ = _client(StubResponse(status_code=200, text="<html>maintenance</html>"))
    with pytest.raises(ConnecteamAPIError, match="non-JSON"):
        client.list_time_clocks()


def test_transport_errors_are_wrapped():
    client, _ = _client(requests.Timeout("read timed out"))
    with pytest.raises(ConnecteamAPIError, match="read timed out"):
        client.list_time_clocks()


def test_timesheet_totals_with_daily_are_keyed_by_user_id_string():
    client, session = _client(
        StubResponse(
            body={
                "data": {
                    "users": [
                        {
                            "userId": 77,
                            "dailyRecords": [
                                {"date": "2024-01-01", "dailyTotalHours": 8},
                                {"date": "2024-01-02", "dailyTotalHours": 7.5},
                            ],
                        },
                        {"userId": 78, "dailyRecords": []},
                    ]
                }
            }
        )
    )

    totals = client.get_timesheet_totals_with_daily(2, "2024-01-01", "2024-01-07")

    assert session.requests[0]["params"] == {"startDate": "2024-01-01", "endDate": "2024-01-07"}
    assert totals["77"].total_hours == pytest.approx(15.5)
    assert totals["77"].daily_hours == {"2024-01-01": 8.0, "2024-01-02": 7.5}
    assert totals["78"].total_hours == 0


@pytest.mark.parametrize(
    "users",
    [
        [{"dailyRecords": [{"date": "2024-01-01", "dailyTotalHours": 8}]}],
        [{"userId": 77, "dailyRecords": [{"dailyTotalHours": 8}]}],
        [{"userId": 77, "dailyRecords": [{"date": "2024-01-01", "dailyTotalHours": "eight"}]}],
        [{"userId": 77, "dailyRecords": ["2024-01-01"]}],
    ],
)
def test_malformed_timesheet_payload_raises_api_error(users):
    client, _ = _client(StubResponse(body={"data": {"users": users}}))

    with pytest.raises(ConnecteamAPIError, match="Malformed Connecteam timesheet payload"):
        client.get_timesheet_totals_with_daily(2, "2024-01-01", "2024-01-07")


def test_users_are_paginated_until_has_more_is_false():
    page_1 = {"data": {"users": [{"userId": i, "firstName": "U", "lastName": str(i)} for i in range(100)], "hasMore": True}}
    page_2 = {"data": {"users": [{"userId": 100, "firstName": "Last", "lastName": "One"}], "hasMore": False}}
    client, session = _client(StubResponse(body=page_1), StubResponse(body=page_2))

    users = client.get_connecteam_users()

    assert len(users) == 101
    assert [r["params"]["offset"] for r in session.requests] == [0, 100]
    assert all(r["params"]["limit"] == 100 for r in session.requests)


def test_time_activities_flatten_and_sum():
    client, _ = _client(
        StubResponse(
            body={
                "data": {
                    "timeActivitiesByUsers": [
                        {"userId": 5, "timeActivities": [{"id": 1, "duration": 3600}, {"id": 2, "duration": 1800}]},
                    ]
                }
            }
        )
    )
    activities = client.get_time_activities(2, "2024-01-01", "2024-01-07")

    assert [a.user_id for a in activities] == [5, 5]
    assert calculate_total_hours(activities) == pytest.approx(1.5)
    assert calculate_total_hours([TimeActivity(id=1, user_id=1, start_time=None, end_time=None, duration=0, status=None)]) == 0


def test_custom_field_values():
    user = ConnecteamUser.from_payload(
        {
            "userId": 9,
            "firstName": "Ana",
            "lastName": "Lopez",
            "customFields": [
                {"customFieldId": 1, "name": "Employee ID", "type": "number", "value": 1042},
                {"customFieldId": 2, "name": "Title", "type": "dropdown", "value": [{"id": 1, "value": "Cleaner"}, {"id": 2, "value": "Lead"}]},
            ],
        }
    )

    assert user.full_name == "Ana Lopez"
    assert get_custom_field_value(user, "Employee ID") == "1042"
    assert get_custom_field_value(user, "Title") == "Cleaner, Lead"
    assert get_custom_field_value(user, "Missing") is None


def test_timesheet_totals_drop_the_daily_breakdown():
    client, _ = _client(
        StubResponse(
            body={"data": {"users": [{"userId": 77, "dailyRecords": [{"date": "2024-01-01", "dailyTotalHours": 4.25}]}]}}
        )
    )
    assert client.get_timesheet_totals(2, "2024-01-01", "2024-01-07") == {"77": 4.25}


def test_current_week_range():
    assert get_current_week_range(today=date(2024, 1, 7)) == ("2024-01-01", "2024-01-07")
