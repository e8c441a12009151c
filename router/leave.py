"""
Leave Router
============
Apply, decide and list leave requests; leave balances.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from models import User
from schemas import LeaveRequestCreate, LeaveRequestOut, LeaveBalanceOut, LeaveStatus
from db import get_db
from dependencies import get_current_user, allow_approvers
from services.audit_service import record_audit
from services.balance_service import compute_leave_balances
from services.leave_service import apply_leave, approve_leave, reject_leave, list_leaves, list_pending


router = APIRouter(prefix="/leaves", tags=["Leaves"])


@router.post("", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def request_leave(
    leave: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Apply leave on behalf of an employee.

    Days are counted inclusively. The request starts pending; remaining
    balance is not checked here.
    """
    db_leave = apply_leave(
        db=db,
        employee_id=leave.employee_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
        applied_by=current_user.id,
        leave_type=leave.leave_type,
        reason=leave.reason,
    )
    record_audit(db, current_user.id, "apply_leave", "Leave", db_leave.id, {
        "employee": db_leave.employee_id,
        "type": db_leave.leave_type,
        "startDate": db_leave.start_date,
        "endDate": db_leave.end_date,
        "days": db_leave.days,
        "reason": db_leave.reason,
        "status": db_leave.status,
        "appliedBy": current_user.id,
    })
    return db_leave


@router.get("", response_model=List[LeaveRequestOut])
def read_leaves(
    status: Optional[LeaveStatus] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return list_leaves(db, status=status)


@router.get("/pending", response_model=List[LeaveRequestOut], dependencies=[Depends(allow_approvers)])
def read_pending_leaves(db: Session = Depends(get_db)):
    """Pending requests with employee and applicant, newest first."""
    return list_pending(db)


@router.get("/balances", response_model=List[LeaveBalanceOut])
def read_leave_balances(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Allocation, used and remaining days for every employee."""
    return compute_leave_balances(db)


@router.put("/{leave_id}/approve", response_model=LeaveRequestOut, dependencies=[Depends(allow_approvers)])
def approve(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    db_leave = approve_leave(db, leave_id, current_user.id)
    record_audit(db, current_user.id, "approve_leave", "Leave", db_leave.id, {})
    return db_leave


@router.put("/{leave_id}/reject", response_model=LeaveRequestOut, dependencies=[Depends(allow_approvers)])
def reject(leave_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    db_leave = reject_leave(db, leave_id, current_user.id)
    record_audit(db, current_user.id, "reject_leave", "Leave", db_leave.id, {})
    return db_leave
