from datetime import date


def test_employees_create_list_get_update_delete(client, admin_headers, manager_headers):
    create = client.post(
        "/employees",
        headers=admin_headers,
        json={"name": "  Alice Smith ", "hourly_rate": 21.5, "email": " ", "connecteam_id": "101"},
    )
    assert create.status_code == 200, create.text
    created = create.json()
    employee_id = created["id"]
    assert created["name"] == "Alice Smith"
    assert created["email"] is None
    assert created["hourly_rate"] == 21.5
    assert created["current_week_hours"] == 0
    assert created["is_active"] is True

    listing = client.get("/employees", headers=manager_headers)
    assert listing.status_code == 200
    assert [row["id"] for row in listing.json()] == [employee_id]

    got = client.get(f"/employees/{employee_id}", headers=manager_headers)
    assert got.status_code == 200
    assert got.json()["connecteam_id"] == "101"

    patched = client.patch(
        f"/employees/{employee_id}",
        headers=admin_headers,
        json={"is_active": False, "job_title": "Lead"},
    )
    assert patched.status_code == 200
    assert patched.json()["is_active"] is False
    assert patched.json()["job_title"] == "Lead"
    assert patched.json()["hourly_rate"] == 21.5

    active = client.get("/employees", headers=manager_headers, params={"active_only": "true"})
    assert active.json() == []

    deleted = client.delete(f"/employees/{employee_id}", headers=admin_headers)
    assert deleted.status_code == 204
    assert client.get(f"/employees/{employee_id}", headers=manager_headers).status_code == 404


def test_employee_validation_and_missing_rows(client, admin_headers):
    assert client.post("/employees", headers=admin_headers, json={"name": ""}).status_code == 422
    assert client.post("/employees", headers=admin_headers, json={"name": "X", "hourly_rate": -1}).status_code == 422
    assert client.patch("/employees/999", headers=admin_headers, json={"name": "Y"}).status_code == 404
    assert client.delete("/employees/999", headers=admin_headers).status_code == 404


def test_employee_with_payroll_history_cannot_be_deleted(client, admin_headers, employee_factory, payroll_record_factory):
    alice = employee_factory(name="Alice")
    payroll_record_factory(alice.id, date(2024, 1, 1))

    resp = client.delete(f"/employees/{alice.id}", headers=admin_headers)
    assert resp.status_code == 400
    assert "deactivate" in resp.json()["detail"]


def test_managers_cannot_write(client, manager_headers):
    resp = client.post("/employees", headers=manager_headers, json={"name": "Nope"})
    assert resp.status_code == 403
