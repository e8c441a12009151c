"""
Leave Service
=============
Leave requests are created ``pending`` and decided by admin/hr/manager.

Decision policy (LEAVE_DECISION_MODE):
    loose  - approve/reject overwrite the status whatever it currently is
             (behaviour of the existing portal, the default)
    strict - only pending -> approved/rejected; anything else raises
             LeaveAlreadyDecided
No balance check is done at apply time; balances are informational.
"""

import os
from datetime import datetime, date
from typing import Optional
import logging

from dotenv import load_dotenv
from sqlalchemy.orm import Session, joinedload

from errors import EmployeeNotFound, InvalidDateRange, LeaveAlreadyDecided, LeaveNotFound, ValidationError
from models import Employee, LeaveRequest, LEAVE_STATUSES
from services.timezone_utils import inclusive_day_count, truncate_to_date, utc_now

load_dotenv()

logger = logging.getLogger(__name__)

LOOSE = "loose"
STRICT = "strict"


def decision_mode() -> str:
    mode = os.getenv("LEAVE_DECISION_MODE", LOOSE).strip().lower()
    return STRICT if mode == STRICT else LOOSE


def calculate_leave_days(start_date: datetime | date, end_date: datetime | date) -> int:
    """
    Inclusive whole-day count; both ends truncated to midnight.

    2024-01-10 .. 2024-01-12 -> 3, same day -> 1.
    """
    if truncate_to_date(end_date) < truncate_to_date(start_date):
        raise InvalidDateRange()
    return inclusive_day_count(start_date, end_date)


def apply_leave(
    db: Session,
    employee_id: int,
    start_date: datetime | date,
    end_date: datetime | date,
    applied_by: Optional[int],
    leave_type: str = "casual",
    reason: Optional[str] = None,
) -> LeaveRequest:
    """
    Create a pending leave request on behalf of an employee.

    Raises:
        EmployeeNotFound: unknown employee
        InvalidDateRange: end_date before start_date
    """
    emp = db.query(Employee).filter(Employee.id == employee_id).first()
    if not emp:
        raise EmployeeNotFound()

    days = calculate_leave_days(start_date, end_date)

    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type=leave_type,
        start_date=truncate_to_date(start_date),
        end_date=truncate_to_date(end_date),
        days=days,
        reason=reason,
        status="pending",
        applied_by=applied_by,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)

    logger.info(f"Leave applied: id={leave.id} employee={employee_id} days={days}")
    return leave


def decide_leave(
    db: Session,
    leave_id: int,
    status: str,
    decided_by: Optional[int],
    strict: Optional[bool] = None,
) -> LeaveRequest:
    """
    Set a leave request to approved/rejected.

    Args:
        strict: override the configured decision mode (None = use config)
    """
    if status not in ("approved", "rejected"):
        raise ValidationError(f"Invalid decision '{status}'")

    leave = db.query(LeaveRequest).filter(LeaveRequest.id == leave_id).first()
    if not leave:
        raise LeaveNotFound()

    if strict is None:
        strict = decision_mode() == STRICT
    if strict and leave.status != "pending":
        logger.warning(f"Leave {leave_id} already {leave.status}; refusing to set {status}")
        raise LeaveAlreadyDecided(f"Leave request is already {leave.status}")

    previous = leave.status
    leave.status = status
    leave.decided_by = decided_by
    leave.decided_at = utc_now()
    db.commit()
    db.refresh(leave)

    logger.info(f"Leave {leave_id}: {previous} -> {status} by user={decided_by}")
    return leave


def approve_leave(db: Session, leave_id: int, decided_by: Optional[int], strict: Optional[bool] = None) -> LeaveRequest:
    return decide_leave(db, leave_id, "approved", decided_by, strict=strict)


def reject_leave(db: Session, leave_id: int, decided_by: Optional[int], strict: Optional[bool] = None) -> LeaveRequest:
    return decide_leave(db, leave_id, "rejected", decided_by, strict=strict)


def _leave_query(db: Session):
    # Inner join skips orphans (employee deleted)
    return (
        db.query(LeaveRequest)
        .join(Employee, Employee.id == LeaveRequest.employee_id)
        .options(joinedload(LeaveRequest.employee), joinedload(LeaveRequest.applicant))
    )


def list_leaves(db: Session, status: Optional[str] = None) -> list[LeaveRequest]:
    query = _leave_query(db)
    if status:
        if status not in LEAVE_STATUSES:
            raise ValidationError(f"Unknown leave status '{status}'")
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()


def list_pending(db: Session) -> list[LeaveRequest]:
    return list_leaves(db, status="pending")
