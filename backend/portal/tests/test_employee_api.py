import pytest


@pytest.fixture
def admin_headers(register):
    return {"Authorization": f"Bearer {register('boss@example.com')['token']}"}


@pytest.fixture
def staff(client, admin_headers):
    r = client.post(
        "/api/admin/employees",
        json={
            "email": "worker@example.com",
            "password": "pw123456",
            "name": "Worker",
            "position": "Developer",
            "department": "Engineering",
        },
        headers=admin_headers,
    )
    employee_id = r.json()["id"]
    token = client.post(
        "/api/auth", json={"action": "employee-login", "email": "worker@example.com", "password": "pw123456"}
    ).json()["token"]
    return employee_id, {"Authorization": f"Bearer {token}"}


def test_employee_portal_requires_employee(client, register):
    token = register("customer@example.com")["token"]
    r = client.get("/api/employee/dashboard", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.json() == {"error": "Employee access required"}
    assert client.get("/api/employee/dashboard").status_code == 401


def test_role_marker_without_record_has_no_profile(client, register, db):
    from portal.models.user import User

    body = register("marker@example.com")
    db.query(User).filter(User.id == body["user"]["id"]).update({User.role: "employee"})
    db.commit()
    r = client.get("/api/employee/profile", headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 403
    assert r.json() == {"error": "Employee profile not found"}


def test_profile(client, staff):
    employee_id, headers = staff
    body = client.get("/api/employee/profile", headers=headers).json()
    assert body["id"] == employee_id
    assert body["email"] == "worker@example.com"
    assert body["position"] == "Developer"
    assert "hireDate" in body


def test_dashboard_lists_only_own_work(client, admin_headers, staff):
    employee_id, headers = staff
    mine = client.post("/api/admin/projects", json={"name": "Mine", "description": "D", "status": "in-progress"}, headers=admin_headers).json()["id"]
    client.post("/api/admin/projects", json={"name": "Other", "description": "D"}, headers=admin_headers)
    client.put(f"/api/admin/projects/{mine}/assignments", json={"employeeIds": [employee_id]}, headers=admin_headers)
    ticket = client.post("/api/admin/tickets", json={"title": "Fix", "description": "D"}, headers=admin_headers).json()["id"]
    client.post("/api/admin/tickets", json={"title": "Unassigned", "description": "D"}, headers=admin_headers)
    client.put(f"/api/admin/tickets/{ticket}/assignment", json={"employeeId": employee_id}, headers=admin_headers)

    body = client.get("/api/employee/dashboard", headers=headers).json()
    assert body["employee"]["name"] == "Worker"
    assert [p["name"] for p in body["projects"]] == ["Mine"]
    assert [t["title"] for t in body["tickets"]] == ["Fix"]
    assert body["stats"] == {
        "totalProjects": 1,
        "activeProjects": 1,
        "totalTickets": 1,
        "openTickets": 1,
        "inProgressTickets": 0,
    }


def test_update_own_ticket_status(client, admin_headers, staff):
    employee_id, headers = staff
    mine = client.post("/api/admin/tickets", json={"title": "Mine", "description": "D"}, headers=admin_headers).json()["id"]
    other = client.post("/api/admin/tickets", json={"title": "Other", "description": "D"}, headers=admin_headers).json()["id"]
    client.put(f"/api/admin/tickets/{mine}/assignment", json={"employeeId": employee_id}, headers=admin_headers)

    r = client.put(f"/api/employee/tickets/{mine}/status", json={"status": "in-progress"}, headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "ticketId": mine, "status": "in-progress"}

    r = client.put(f"/api/employee/tickets/{other}/status", json={"status": "closed"}, headers=headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Ticket not found or not assigned to you"}

    r = client.put(f"/api/employee/tickets/{mine}/status", json={"status": "done-ish"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid status"}
