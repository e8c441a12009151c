from models import AuditLog


def _create(client, headers, **overrides):
    payload = {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": "asha@example.com",
        "department": "Engineering",
        "role": "Developer",
        "dateOfJoining": "2023-06-01",
        "salary": {"basic": 50000, "allowances": 5000, "deductions": 2000},
    }
    payload.update(overrides)
    return client.post("/employees", json=payload, headers=headers)


def test_create_and_read_employee(client, headers_for):
    headers = headers_for("hr")
    r = _create(client, headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["name"] == "Asha Rao"
    assert body["job_role"] == "Developer"
    assert body["leave_allocation"] == 12
    assert body["salary"] == {"basic": 50000, "allowances": 5000, "deductions": 2000}

    r = client.get(f"/employees/{body['id']}", headers=headers_for("employee"))
    assert r.status_code == 200
    assert r.json()["email"] == "asha@example.com"


def test_salary_as_plain_number(client, headers_for):
    r = _create(client, headers_for("admin"), salary=42000)
    assert r.status_code == 201, r.text
    assert r.json()["salary"] == {"basic": 42000, "allowances": 0, "deductions": 0}


def test_create_is_admin_hr_only(client, headers_for):
    assert _create(client, headers_for("manager")).status_code == 403
    assert _create(client, headers_for("employee")).status_code == 403


def test_duplicate_email_rejected(client, headers_for):
    headers = headers_for("hr")
    _create(client, headers)
    r = _create(client, headers, firstName="Other")
    assert r.status_code == 400
    assert r.json()["error"] == "Email already exists"


def test_missing_employee_is_404(client, headers_for):
    r = client.get("/employees/999", headers=headers_for("employee"))
    assert r.status_code == 404


def test_list_filters_and_pagination(client, headers_for, make_employee):
    make_employee("Asha", "Rao", department="Engineering", job_role="Developer")
    make_employee("Ravi", "Kumar", department="Sales", job_role="Lead", status="inactive")
    make_employee("Meera", "Iyer", department="Engineering", job_role="Lead")
    headers = headers_for("employee")

    r = client.get("/employees", params={"department": "Engineering"}, headers=headers)
    body = r.json()
    assert body["total"] == 2
    assert {e["first_name"] for e in body["data"]} == {"Asha", "Meera"}

    r = client.get("/employees", params={"q": "rav"}, headers=headers)
    assert [e["first_name"] for e in r.json()["data"]] == ["Ravi"]

    r = client.get("/employees", params={"role": "Lead", "status": "active"}, headers=headers)
    assert [e["first_name"] for e in r.json()["data"]] == ["Meera"]

    r = client.get("/employees", params={"page": 2, "limit": 2}, headers=headers)
    body = r.json()
    assert body["total"] == 3
    assert body["page"] == 2
    assert len(body["data"]) == 1


def test_update_employee_patches_fields_and_salary(db, client, headers_for, make_employee):
    emp = make_employee(salary_basic=1000, salary_allowances=100)
    r = client.put(f"/employees/{emp.id}", json={
        "department": "Finance",
        "leaveAllocation": 20,
        "salary": {"deductions": 50},
    }, headers=headers_for("hr"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["department"] == "Finance"
    assert body["leave_allocation"] == 20
    assert body["salary"] == {"basic": 1000, "allowances": 100, "deductions": 50}

    entry = db.query(AuditLog).filter(AuditLog.action == "update").one()
    assert entry.entity == "Employee"
    assert entry.details["department"] == "Finance"
    assert entry.details["salary.deductions"] == 50


def test_update_duplicate_email(client, headers_for, make_employee):
    make_employee("Asha", "Rao", email="asha@example.com")
    other = make_employee("Ravi", "Kumar", email="ravi@example.com")
    r = client.put(f"/employees/{other.id}", json={"email": "asha@example.com"}, headers=headers_for("admin"))
    assert r.status_code == 400
    assert r.json()["error_code"] == "ConflictError"


def test_delete_employee_keeps_history_out_of_lists(client, headers_for, make_employee):
    emp = make_employee()
    headers = headers_for("admin")
    client.post("/attendance/checkin", json={"employeeId": emp.id}, headers=headers)

    r = client.delete(f"/employees/{emp.id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["email"] == emp.email

    assert client.get(f"/employees/{emp.id}", headers=headers).status_code == 404
    assert client.get("/attendance", headers=headers).json() == []


def test_update_ignores_null_email_and_status(db, client, headers_for, make_employee):
    emp = make_employee(email="asha@example.com")
    r = client.put(f"/employees/{emp.id}", json={
        "email": None,
        "status": None,
        "department": "Ops",
        "salary": {"basic": None, "allowances": 300},
    }, headers=headers_for("hr"))
    assert r.status_code == 200, r.text
    assert r.json()["email"] == "asha@example.com"
    assert r.json()["status"] == "active"

    entry = db.query(AuditLog).filter(AuditLog.action == "update").one()
    assert entry.details == {"department": "Ops", "salary.allowances": 300}
