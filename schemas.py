from pydantic import BaseModel, AliasChoices, EmailStr, Field, computed_field, field_serializer, field_validator
from typing import Optional, Literal, List
from datetime import datetime, date
from services.timezone_utils import utc_to_local

RoleName = Literal["admin", "hr", "manager", "employee"]
LeaveStatus = Literal["pending", "approved", "rejected"]


def _coerce_date(v):
    # Accept full timestamps and keep the calendar day only
    if isinstance(v, str) and len(v) > 10:
        v = datetime.fromisoformat(v.replace("Z", "+00:00"))
    if isinstance(v, datetime):
        return v.date()
    return v


# User schemas
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    role: RoleName = "employee"

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jane Doe",
                "email": "jane@company.com",
                "password": "SecurePass123!",
                "role": "hr",
            }
        }

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: Optional[datetime] = None

    @field_serializer("created_at")
    def serialize_created_at(self, value):
        return utc_to_local(value)

    class Config:
        from_attributes = True

class UserBrief(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True

class LoginRequest(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int  # Seconds until expiry
    email: str
    name: str
    role: str

class LogoutResponse(BaseModel):
    """Response after successful logout"""
    message: str
    success: bool
    email: str


# Employee schemas
class SalaryIn(BaseModel):
    basic: float = 0
    allowances: float = 0
    deductions: float = 0

class SalaryUpdate(BaseModel):
    basic: Optional[float] = None
    allowances: Optional[float] = None
    deductions: Optional[float] = None

class SalaryOut(BaseModel):
    basic: float
    allowances: float
    deductions: float


def _coerce_salary(v):
    # A bare number (or numeric string) means the basic salary
    if isinstance(v, (int, float)):
        return {"basic": v}
    if isinstance(v, str):
        try:
            return {"basic": float(v)}
        except ValueError:
            return {"basic": 0}
    return v


class EmployeeCreate(BaseModel):
    first_name: Optional[str] = Field(None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(None, validation_alias=AliasChoices("last_name", "lastName"))
    email: EmailStr
    phone: Optional[str] = None
    department: Optional[str] = None
    job_role: Optional[str] = Field(None, validation_alias=AliasChoices("job_role", "role"))
    date_of_joining: Optional[date] = Field(None, validation_alias=AliasChoices("date_of_joining", "dateOfJoining"))
    salary: SalaryIn = Field(default_factory=SalaryIn)
    photo: Optional[str] = None
    status: Literal["active", "inactive"] = "active"
    leave_allocation: Optional[int] = Field(12, ge=0, validation_alias=AliasChoices("leave_allocation", "leaveAllocation"))

    coerce_salary = field_validator("salary", mode="before")(_coerce_salary)
    coerce_joining_date = field_validator("date_of_joining", mode="before")(_coerce_date)


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(None, validation_alias=AliasChoices("last_name", "lastName"))
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    job_role: Optional[str] = Field(None, validation_alias=AliasChoices("job_role", "role"))
    date_of_joining: Optional[date] = Field(None, validation_alias=AliasChoices("date_of_joining", "dateOfJoining"))
    salary: Optional[SalaryUpdate] = None
    photo: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    leave_allocation: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("leave_allocation", "leaveAllocation"))

    coerce_salary = field_validator("salary", mode="before")(_coerce_salary)
    coerce_joining_date = field_validator("date_of_joining", mode="before")(_coerce_date)


class EmployeeOut(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    job_role: Optional[str] = None
    date_of_joining: Optional[date] = None
    salary: SalaryOut
    photo: Optional[str] = None
    status: str
    leave_allocation: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("created_at", "updated_at")
    def serialize_dates(self, value):
        return utc_to_local(value) if value else None

    class Config:
        from_attributes = True

class EmployeeBrief(BaseModel):
    id: int
    name: str
    email: str
    department: Optional[str] = None

    class Config:
        from_attributes = True

class EmployeePage(BaseModel):
    data: List[EmployeeOut]
    total: int
    page: int
    limit: int


# Attendance
class AttendanceAction(BaseModel):
    employee_id: int = Field(..., validation_alias=AliasChoices("employee_id", "employeeId"))

class AttendanceUpdate(BaseModel):
    """Manual correction. total_hours is NOT recomputed from check_in/check_out."""
    work_date: Optional[date] = Field(None, validation_alias=AliasChoices("date", "work_date"))
    check_in: Optional[datetime] = Field(None, validation_alias=AliasChoices("check_in", "checkIn"))
    check_out: Optional[datetime] = Field(None, validation_alias=AliasChoices("check_out", "checkOut"))
    total_hours: Optional[float] = Field(None, validation_alias=AliasChoices("total_hours", "totalHours"))
    note: Optional[str] = None

    coerce_work_date = field_validator("work_date", mode="before")(_coerce_date)

class AttendanceOut(BaseModel):
    id: int
    employee_id: int
    date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None
    note: Optional[str] = None
    state: str
    employee: Optional[EmployeeBrief] = None

    @field_serializer("check_in", "check_out")
    def serialize_times(self, value):
        return utc_to_local(value)

    @computed_field
    @property
    def work_duration(self) -> Optional[str]:
        if self.total_hours is None:
            return None
        hours = int(self.total_hours)
        minutes = int((self.total_hours * 60) % 60)
        return f"{hours}h {minutes}m"

    class Config:
        from_attributes = True


# Leave request
class LeaveRequestCreate(BaseModel):
    """
    Schema for applying leave on behalf of an employee.
    Days are computed server-side (inclusive of both dates).
    """
    employee_id: int = Field(..., validation_alias=AliasChoices("employee_id", "employee", "employeeId"))
    leave_type: str = Field("casual", min_length=1, max_length=50, validation_alias=AliasChoices("leave_type", "type"))
    start_date: date = Field(..., validation_alias=AliasChoices("start_date", "startDate"))
    end_date: date = Field(..., validation_alias=AliasChoices("end_date", "endDate"))
    reason: Optional[str] = Field(None, max_length=500)

    coerce_dates = field_validator("start_date", "end_date", mode="before")(_coerce_date)

    class Config:
        json_schema_extra = {
            "example": {
                "employee_id": 1,
                "leave_type": "casual",
                "start_date": "2024-01-10",
                "end_date": "2024-01-12",
                "reason": "Family function"
            }
        }

class LeaveRequestOut(BaseModel):
    id: int
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    status: str
    applied_by: Optional[int] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee: Optional[EmployeeBrief] = None
    applicant: Optional[UserBrief] = None

    @field_serializer("decided_at", "created_at", "updated_at")
    def serialize_dates(self, value):
        return utc_to_local(value) if value else None

    class Config:
        from_attributes = True

class LeaveBalanceOut(BaseModel):
    employee_id: int
    name: str
    allocation: int
    used_days: int
    remaining: int


# Audit
class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity: str
    entity_id: Optional[str] = None
    details: Optional[dict] = None
    created_at: datetime
    user: Optional[UserBrief] = None

    @field_serializer("created_at")
    def serialize_created_at(self, value):
        return utc_to_local(value)

    class Config:
        from_attributes = True


# Payroll & reports
class PayrollRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1970, le=9999)

class HeadcountOut(BaseModel):
    total: int
    active: int

class AttendanceSummaryRow(BaseModel):
    date: date
    count: int


class ErrorResponse(BaseModel):
    """
    Schema for error responses.

    Example:
        {
            "success": false,
            "error": "Already checked in",
            "error_code": "DuplicateCheckIn",
            "detail": "Already checked in"
        }
    """
    success: bool = Field(False, description="Operation failed")
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
    detail: Optional[str] = None
