"""
Leave balances, recomputed from scratch on every call (reporting view).

    used      = sum(days) of approved requests
    remaining = max(0, allocation - used)
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Employee, LeaveRequest, DEFAULT_LEAVE_ALLOCATION


def used_days_by_employee(db: Session) -> dict[int, int]:
    rows = (
        db.query(LeaveRequest.employee_id, func.sum(LeaveRequest.days))
        .filter(LeaveRequest.status == "approved")
        .group_by(LeaveRequest.employee_id)
        .all()
    )
    return {employee_id: int(total or 0) for employee_id, total in rows}


def employee_balance(employee: Employee, used_days: int) -> dict:
    allocation = employee.leave_allocation
    if allocation is None:
        allocation = DEFAULT_LEAVE_ALLOCATION
    return {
        "employee_id": employee.id,
        "name": employee.name,
        "allocation": allocation,
        "used_days": used_days,
        "remaining": max(0, allocation - used_days),
    }


def compute_leave_balances(db: Session) -> list[dict]:
    used = used_days_by_employee(db)
    employees = db.query(Employee).order_by(Employee.id).all()
    return [employee_balance(e, used.get(e.id, 0)) for e in employees]
