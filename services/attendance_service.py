"""
Attendance Service
==================
One record per (employee, calendar day).

    open   -> check_in set, check_out NULL (created by check_in)
    closed -> both set (check_out fills total_hours once)

Manual adjustments may overwrite any field afterwards; nothing is re-derived.
"""

from datetime import datetime, date
from typing import Optional
import logging

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError

from errors import AlreadyCheckedOut, AttendanceNotFound, DuplicateCheckIn, EmployeeNotFound, NoCheckInFound, ValidationError
from models import Attendance, Employee
from services.timezone_utils import ensure_utc_naive, local_date, utc_now

logger = logging.getLogger(__name__)

ADJUSTABLE_FIELDS = ("date", "check_in", "check_out", "total_hours", "note")


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours, unrounded."""
    return (end - start).total_seconds() / 3600


def _get_employee(db: Session, employee_id: int) -> Employee:
    emp = db.query(Employee).filter(Employee.id == employee_id).first()
    if not emp:
        raise EmployeeNotFound()
    return emp


def _record_for_day(db: Session, employee_id: int, day: date) -> Optional[Attendance]:
    return db.query(Attendance).filter(
        Attendance.employee_id == employee_id,
        Attendance.date == day
    ).first()


def check_in(db: Session, employee_id: int, now: datetime | None = None) -> Attendance:
    """
    Open today's record for an employee.

    Raises:
        EmployeeNotFound: unknown employee
        DuplicateCheckIn: a record already exists for (employee, today)
    """
    _get_employee(db, employee_id)
    now = ensure_utc_naive(now) or utc_now()
    today = local_date(now)

    if _record_for_day(db, employee_id, today):
        raise DuplicateCheckIn()

    record = Attendance(employee_id=employee_id, date=today, check_in=now)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent check-in for the same day
        db.rollback()
        raise DuplicateCheckIn()
    db.refresh(record)

    logger.info(f"Check-in: employee={employee_id} date={today}")
    return record


def check_out(db: Session, employee_id: int, now: datetime | None = None) -> Attendance:
    """
    Close today's record and compute total_hours.

    Raises:
        NoCheckInFound: no record for (employee, today)
        AlreadyCheckedOut: check_out already set
    """
    now = ensure_utc_naive(now) or utc_now()
    today = local_date(now)

    record = _record_for_day(db, employee_id, today)
    if not record:
        raise NoCheckInFound()
    if record.check_out is not None:
        raise AlreadyCheckedOut()

    record.check_out = now
    record.total_hours = hours_between(record.check_in, now) if record.check_in else None
    db.commit()
    db.refresh(record)

    logger.info(f"Check-out: employee={employee_id} date={today} hours={record.total_hours}")
    return record


def adjust_attendance(db: Session, attendance_id: int, patch: dict) -> Attendance:
    """
    Apply a manual correction. Fields are written as given; total_hours is
    not recomputed, so callers keep the record consistent themselves.
    """
    record = db.query(Attendance).filter(Attendance.id == attendance_id).first()
    if not record:
        raise AttendanceNotFound()

    # the calendar day may be moved but never cleared
    if "date" in patch and patch["date"] is None:
        raise ValidationError("date cannot be null")

    for field, value in patch.items():
        if field not in ADJUSTABLE_FIELDS:
            continue
        if field in ("check_in", "check_out"):
            value = ensure_utc_naive(value)
        setattr(record, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateCheckIn("Another attendance record exists for this employee and date")
    db.refresh(record)
    return record


def query_attendance(
    db: Session,
    employee_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[Attendance]:
    """
    Records sorted by date descending, with their employee loaded.
    Orphans (employee deleted) are skipped.
    """
    query = (
        db.query(Attendance)
        .join(Employee, Employee.id == Attendance.employee_id)
        .options(joinedload(Attendance.employee))
    )
    if employee_id is not None:
        query = query.filter(Attendance.employee_id == employee_id)
    if date_from is not None:
        query = query.filter(Attendance.date >= date_from)
    if date_to is not None:
        query = query.filter(Attendance.date <= date_to)
    return query.order_by(Attendance.date.desc(), Attendance.id.desc()).all()
