from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Index,
    String,
    Text,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship, DeclarativeBase
from datetime import datetime, timezone

# TIMEZONE NOTES:
# - DateTime columns store UTC as naive datetime
# - Date columns (attendance day, leave range) are local calendar days,
#   see services.timezone_utils

ROLES = ("admin", "hr", "manager", "employee")
LEAVE_STATUSES = ("pending", "approved", "rejected")
DEFAULT_LEAVE_ALLOCATION = 12


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


# ============================================================================
# USER MODEL
# ============================================================================

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="employee")
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    blacklisted_tokens = relationship("TokenBlacklist", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'hr', 'manager', 'employee')", name="CHK_user_role"),
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class TokenBlacklist(Base):
    __tablename__ = 'token_blacklist'

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(50), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    blacklisted_at = Column(DateTime, default=_utcnow)
    token_exp = Column(DateTime, nullable=False)
    reason = Column(String(50), default="user_logout")

    user = relationship("User", back_populates="blacklisted_tokens")

    __table_args__ = (
        Index('idx_blacklist_exp', 'token_exp'),
    )


# ============================================================================
# EMPLOYEE MODEL
# ============================================================================

class Employee(Base):
    __tablename__ = 'employees'

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    department = Column(String(100), nullable=True, index=True)
    job_role = Column(String(100), nullable=True)
    date_of_joining = Column(Date, nullable=True)

    # Salary structure
    salary_basic = Column(Float, nullable=False, default=0)
    salary_allowances = Column(Float, nullable=False, default=0)
    salary_deductions = Column(Float, nullable=False, default=0)

    photo = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    # Leave days per policy period; NULL means the default allocation
    leave_allocation = Column(Integer, nullable=True, default=DEFAULT_LEAVE_ALLOCATION)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="CHK_employee_status"),
    )

    @property
    def name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def salary(self) -> dict:
        return {
            "basic": self.salary_basic or 0,
            "allowances": self.salary_allowances or 0,
            "deductions": self.salary_deductions or 0,
        }

    def __repr__(self):
        return f"<Employee {self.name} ({self.email})>"


# ============================================================================
# ATTENDANCE
# ============================================================================
# employee_id is a weak reference: no FK constraint, no cascade. Rows whose
# employee was deleted stay behind and are skipped by list queries.

class Attendance(Base):
    __tablename__ = 'attendance'

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False)
    check_in = Column(DateTime, nullable=True)
    check_out = Column(DateTime, nullable=True)
    total_hours = Column(Float, nullable=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    employee = relationship(
        "Employee",
        primaryjoin="foreign(Attendance.employee_id) == Employee.id",
        viewonly=True,
    )

    __table_args__ = (
        UniqueConstraint('employee_id', 'date', name='unique_employee_date'),
        Index('idx_attendance_date', 'date'),
    )

    @property
    def state(self) -> str:
        return "closed" if self.check_out is not None else "open"

    def __repr__(self):
        return f"<Attendance(id={self.id}, emp_id={self.employee_id}, date={self.date})>"


# ============================================================================
# LEAVE
# ============================================================================

class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)  # weak reference

    leave_type = Column(String(50), nullable=False, default="casual")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    reason = Column(String(500), nullable=True)

    status = Column(String(20), nullable=False, default="pending")
    applied_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    employee = relationship(
        "Employee",
        primaryjoin="foreign(LeaveRequest.employee_id) == Employee.id",
        viewonly=True,
    )
    applicant = relationship("User", foreign_keys=[applied_by])
    decider = relationship("User", foreign_keys=[decided_by])

    __table_args__ = (
        CheckConstraint("days >= 1", name="CHK_leave_days_positive"),
        CheckConstraint("end_date >= start_date", name="CHK_leave_date_range"),
        Index("idx_leave_requests_status", "status", "created_at"),
    )

    def __repr__(self):
        return f"<LeaveRequest(id={self.id}, emp_id={self.employee_id}, days={self.days}, status={self.status})>"


# ============================================================================
# AUDIT LOG (append-only)
# ============================================================================

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), nullable=False)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    user = relationship("User")

    __table_args__ = (
        Index("idx_audit_created", "created_at"),
        Index("idx_audit_entity", "entity", "entity_id"),
    )

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity}:{self.entity_id}>"
