# employees.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models import Employee, User
from schemas import EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeePage
from db import get_db
from dependencies import get_current_user, allow_admin_hr
from errors import ConflictError, NotFoundError
from services.audit_service import record_audit


router = APIRouter(prefix="/employees", tags=["Employees"])

SALARY_COLUMNS = {"basic": "salary_basic", "allowances": "salary_allowances", "deductions": "salary_deductions"}


def _employee_snapshot(emp: Employee) -> dict:
    return EmployeeOut.model_validate(emp).model_dump(exclude={"created_at", "updated_at"})


def _get_employee_or_404(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def _commit_unique_email(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already exists")


@router.get("", response_model=EmployeePage)
def read_employees(
    q: str = Query("", description="Search first name, last name or email"),
    department: str = "",
    role: str = Query("", description="Job role label"),
    status: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Employee)
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.email.ilike(pattern),
        ))
    if department:
        query = query.filter(Employee.department == department)
    if role:
        query = query.filter(Employee.job_role == role)
    if status:
        query = query.filter(Employee.status == status)

    total = query.count()
    employees = (
        query.order_by(Employee.created_at.desc(), Employee.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"data": employees, "total": total, "page": page, "limit": limit}


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(allow_admin_hr)])
def create_employee(employee: EmployeeCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    exists = db.query(Employee).filter(Employee.email == employee.email).first()
    if exists:
        raise ConflictError("Email already exists")

    data = employee.model_dump(exclude={"salary"})
    db_employee = Employee(
        **data,
        salary_basic=employee.salary.basic,
        salary_allowances=employee.salary.allowances,
        salary_deductions=employee.salary.deductions,
    )
    db.add(db_employee)
    _commit_unique_email(db)
    db.refresh(db_employee)

    record_audit(db, current_user.id, "create", "Employee", db_employee.id, _employee_snapshot(db_employee))
    return db_employee


@router.get("/{employee_id}", response_model=EmployeeOut)
def read_employee(employee_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_employee_or_404(db, employee_id)


@router.put("/{employee_id}", response_model=EmployeeOut, dependencies=[Depends(allow_admin_hr)])
def update_employee(
    employee_id: int,
    update: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    employee = _get_employee_or_404(db, employee_id)

    patch = update.model_dump(exclude_unset=True)
    salary = {k: v for k, v in (patch.pop("salary", None) or {}).items() if v is not None}
    # email and status are required columns; a null here means "leave as is"
    for field in ("email", "status"):
        if field in patch and patch[field] is None:
            patch.pop(field)
    for field, value in patch.items():
        setattr(employee, field, value)
    for key, value in salary.items():
        setattr(employee, SALARY_COLUMNS[key], value)

    _commit_unique_email(db)
    db.refresh(employee)

    if salary:
        patch["salary"] = salary
    record_audit(db, current_user.id, "update", "Employee", employee.id, patch)
    return employee


@router.delete("/{employee_id}", response_model=EmployeeOut, dependencies=[Depends(allow_admin_hr)])
def delete_employee(employee_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Delete an employee. Attendance and leave rows are kept (no cascade)
    and drop out of list views.
    """
    employee = _get_employee_or_404(db, employee_id)
    snapshot = _employee_snapshot(employee)
    db.delete(employee)
    db.commit()

    record_audit(db, current_user.id, "delete", "Employee", employee_id, snapshot)
    return snapshot
