from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import timedelta
from typing import List
from models import Attendance, Employee, User
from schemas import HeadcountOut, AttendanceSummaryRow
from db import get_db
from dependencies import get_current_user
from services.timezone_utils import local_date

router = APIRouter(prefix="/reports", tags=["Reports"])

SUMMARY_DAYS = 30


@router.get("/headcount", response_model=HeadcountOut)
def headcount(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    total = db.query(Employee).count()
    active = db.query(Employee).filter(Employee.status == "active").count()
    return {"total": total, "active": active}


@router.get("/attendance-summary", response_model=List[AttendanceSummaryRow])
def attendance_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Attendance records per day over the last 30 days, oldest first."""
    since = local_date() - timedelta(days=SUMMARY_DAYS)
    rows = (
        db.query(Attendance.date, func.count(Attendance.id))
        .filter(Attendance.date >= since)
        .group_by(Attendance.date)
        .order_by(Attendance.date)
        .all()
    )
    return [{"date": day, "count": count} for day, count in rows]
