from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from models import User
from schemas import AttendanceAction, AttendanceUpdate, AttendanceOut
from db import get_db
from dependencies import get_current_user, allow_approvers
from services.attendance_service import check_in, check_out, adjust_attendance, query_attendance
from services.audit_service import record_audit
from typing import List, Optional
from datetime import date

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.post("/checkin", response_model=AttendanceOut)
def attendance_checkin(
    body: AttendanceAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open today's attendance record. 400 DuplicateCheckIn when one exists."""
    record = check_in(db, body.employee_id)
    record_audit(db, current_user.id, "checkin", "Attendance", record.id, {"employeeId": body.employee_id})
    return record


@router.post("/checkout", response_model=AttendanceOut)
def attendance_checkout(
    body: AttendanceAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Close today's record and compute total_hours."""
    record = check_out(db, body.employee_id)
    record_audit(
        db, current_user.id, "checkout", "Attendance", record.id,
        {"employeeId": body.employee_id, "totalHours": record.total_hours}
    )
    return record


# Manual corrections (admin/hr/manager). total_hours is written as sent.
@router.put("/{attendance_id}", response_model=AttendanceOut, dependencies=[Depends(allow_approvers)])
def update_attendance(
    attendance_id: int,
    update: AttendanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    patch = update.model_dump(exclude_unset=True)
    if "work_date" in patch:
        patch["date"] = patch.pop("work_date")

    record = adjust_attendance(db, attendance_id, patch)
    record_audit(db, current_user.id, "update", "Attendance", record.id, patch)
    return record


@router.get("", response_model=List[AttendanceOut])
def list_attendance(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    employee_id: Optional[int] = Query(None),
    employeeId: Optional[int] = Query(None, include_in_schema=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Attendance records, newest day first.

    - **from** / **to**: inclusive calendar-day bounds
    - **employee_id**: restrict to one employee
    """
    return query_attendance(
        db,
        employee_id=employee_id if employee_id is not None else employeeId,
        date_from=date_from,
        date_to=date_to,
    )
