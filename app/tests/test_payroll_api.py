from datetime import date


def test_generate_pay_and_report_flow(client, admin_headers, manager_headers, employee_factory, timesheet_factory):
    alice = employee_factory(name="Alice", hourly_rate="25")
    carol = employee_factory(name="Carol", hourly_rate="30")
    timesheet_factory(alice.id, date(2024, 1, 1), total_hours="4")

    gen = client.post("/payroll/weekly/generate", headers=admin_headers, json={"week_start_date": "2024-01-04"})
    assert gen.status_code == 200, gen.text
    body = gen.json()
    assert body["week_start_date"] == "2024-01-01"
    assert body["records_created"] == 2
    assert [(r["employee"]["name"], r["total_pay"], r["status"]) for r in body["records"]] == [
        ("Alice", 100.0, "pending"),
        ("Carol", 0.0, "paid"),
    ]
    record_id = body["records"][0]["id"]

    rejected = client.post(f"/payroll/{record_id}/transactions", headers=admin_headers, json={"amount": 0})
    assert rejected.status_code == 400

    paid = client.post(
        f"/payroll/{record_id}/transactions",
        headers=admin_headers,
        json={"amount": 40, "method": "check"},
    )
    assert paid.status_code == 200, paid.text
    assert paid.json()["record"]["status"] == "partial"
    assert paid.json()["transaction"]["amount"] == 40.0

    record = client.get(f"/payroll/{record_id}", headers=manager_headers).json()
    assert [t["amount"] for t in record["transactions"]] == [40.0]

    weeks = client.get("/payroll/weeks", headers=manager_headers).json()
    assert weeks == [{"week_id": "Week of 2024-01-01", "week_start": "2024-01-01", "week_end": "2024-01-07", "record_count": 2}]

    weekly = client.get("/payroll/weekly/2024-01-01", headers=manager_headers).json()
    assert [r["employee_id"] for r in weekly] == [alice.id, carol.id]

    report = client.get("/reports/weekly", headers=manager_headers, params={"from": "2024-01-01"}).json()
    assert report == [
        {
            "week_start": "2024-01-01",
            "week_end": "2024-01-07",
            "total_hours": 4.0,
            "total_pay": 100.0,
            "pending_pay": 0.0,
            "partial_pay": 100.0,
            "paid_pay": 0.0,
        }
    ]


def test_generate_without_active_employees_is_400(client, admin_headers):
    resp = client.post("/payroll/weekly/generate", headers=admin_headers, json={"week_start_date": "2024-01-01"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No active employees found"


def test_status_override_and_record_edits(client, admin_headers, employee_factory, payroll_record_factory):
    alice = employee_factory(name="Alice", hourly_rate="10")
    record = payroll_record_factory(alice.id, date(2024, 1, 1), hours_worked="2", total_pay="20")

    bad = client.post(f"/payroll/{record.id}/status", headers=admin_headers, json={"status": "refunded"})
    assert bad.status_code == 422

    ok = client.post(f"/payroll/{record.id}/status", headers=admin_headers, json={"status": "paid"})
    assert ok.status_code == 200
    assert ok.json()["status"] == "paid"
    assert ok.json()["status_overridden_at"] is not None

    edited = client.patch(f"/payroll/{record.id}", headers=admin_headers, json={"notes": "bonus week"})
    assert edited.json()["notes"] == "bonus week"
    assert edited.json()["total_pay"] == 20.0

    hours = client.patch(
        "/payroll/weekly/2024-01-01",
        headers=admin_headers,
        json={"record_id": record.id, "hours": 3},
    )
    assert hours.status_code == 200
    assert hours.json()["total_pay"] == 30.0

    wrong_week = client.patch(
        "/payroll/weekly/2024-01-08",
        headers=admin_headers,
        json={"record_id": record.id, "hours": 3},
    )
    assert wrong_week.status_code == 400

    assert client.get("/payroll/999", headers=admin_headers).status_code == 404
    assert client.post("/payroll/999/transactions", headers=admin_headers, json={"amount": 5}).status_code == 404


def test_non_finite_payment_amount_is_400(client, admin_headers, manager_headers, employee_factory, payroll_record_factory):
    alice = employee_factory(name="Alice")
    record = payroll_record_factory(alice.id, date(2024, 1, 1), total_pay="20")

    for amount in ("NaN", "Infinity"):
        resp = client.post(f"/payroll/{record.id}/transactions", headers=admin_headers, json={"amount": amount})
        assert resp.status_code == 400, resp.text

    body = client.get(f"/payroll/{record.id}", headers=manager_headers).json()
    assert body["transactions"] == []
    assert body["status"] == "pending"


def test_create_record_and_list_filters(client, admin_headers, employee_factory):
    alice = employee_factory(name="Alice")

    created = client.post(
        "/payroll",
        headers=admin_headers,
        json={"employee_id": alice.id, "date": "2024-01-01", "hours_worked": 2, "hourly_rate": 15},
    )
    assert created.status_code == 200, created.text
    assert created.json()["total_pay"] == 30.0
    assert created.json()["status"] == "pending"

    assert len(client.get("/payroll", headers=admin_headers, params={"status": "pending"}).json()) == 1
    assert client.get("/payroll", headers=admin_headers, params={"status": "paid"}).json() == []
    assert client.get("/payroll", headers=admin_headers, params={"status": "bogus"}).status_code == 400


def test_sync_from_timesheets_endpoint(client, admin_headers, employee_factory, timesheet_factory):
    alice = employee_factory(name="Alice")
    timesheet_factory(alice.id, date(2024, 1, 1), total_hours="5")

    resp = client.post("/payroll/weekly/2024-01-01/sync-from-timesheets", headers=admin_headers)
    assert resp.status_code == 400
    assert "Generate the week first" in resp.json()["detail"]
