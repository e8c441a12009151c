import csv
import io

from sqlalchemy.orm import Session

from models import Employee

PAYROLL_COLUMNS = ("Name", "Email", "Department", "Gross", "Net")


def payroll_rows(db: Session) -> list[dict]:
    rows = []
    for emp in db.query(Employee).order_by(Employee.id).all():
        gross = (emp.salary_basic or 0) + (emp.salary_allowances or 0)
        net = gross - (emp.salary_deductions or 0)
        rows.append({
            "Name": emp.name,
            "Email": emp.email,
            "Department": emp.department or "",
            "Gross": gross,
            "Net": net,
        })
    return rows


def render_payroll_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=PAYROLL_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def payslip_filename(month: int, year: int) -> str:
    return f"payslip-{month}-{year}.csv"
