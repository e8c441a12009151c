import csv
import io
from datetime import timedelta

from models import Attendance, AuditLog
from services.timezone_utils import local_date


def test_payroll_csv(db, client, headers_for, make_employee):
    make_employee("Asha", "Rao", department="Engineering",
                  salary_basic=50000, salary_allowances=5000, salary_deductions=2000)
    make_employee("Ravi", "Kumar")

    r = client.post("/payroll/generate", json={"month": 3, "year": 2024}, headers=headers_for("hr"))
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="payslip-3-2024.csv"' in r.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(r.text)))
    assert rows[0]["Name"] == "Asha Rao"
    assert float(rows[0]["Gross"]) == 55000
    assert float(rows[0]["Net"]) == 53000
    assert rows[1]["Department"] == ""

    entry = db.query(AuditLog).filter(AuditLog.action == "generate_payroll").one()
    assert entry.details == {"month": 3, "year": 2024}


def test_payroll_rejects_bad_month_and_roles(client, headers_for):
    r = client.post("/payroll/generate", json={"month": 13, "year": 2024}, headers=headers_for("admin"))
    assert r.status_code == 400
    r = client.post("/payroll/generate", json={"month": 1, "year": 2024}, headers=headers_for("manager"))
    assert r.status_code == 403


def test_headcount(client, headers_for, make_employee):
    make_employee("Asha", "Rao")
    make_employee("Ravi", "Kumar", status="inactive")
    r = client.get("/reports/headcount", headers=headers_for("employee"))
    assert r.json() == {"total": 2, "active": 1}


def test_attendance_summary_last_thirty_days(db, client, headers_for, make_employee):
    a = make_employee("Asha", "Rao")
    b = make_employee("Ravi", "Kumar")
    today = local_date()
    yesterday = today - timedelta(days=1)
    db.add_all([
        Attendance(employee_id=a.id, date=today),
        Attendance(employee_id=b.id, date=today),
        Attendance(employee_id=a.id, date=yesterday),
        Attendance(employee_id=a.id, date=today - timedelta(days=45)),
    ])
    db.commit()

    r = client.get("/reports/attendance-summary", headers=headers_for("employee"))
    assert r.status_code == 200
    assert r.json() == [
        {"date": yesterday.isoformat(), "count": 1},
        {"date": today.isoformat(), "count": 2},
    ]
