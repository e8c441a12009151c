from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session
from models import User
from schemas import PayrollRequest
from db import get_db
from dependencies import get_current_user, allow_admin_hr
from services.audit_service import record_audit
from services.payroll_service import payroll_rows, render_payroll_csv, payslip_filename

router = APIRouter(prefix="/payroll", tags=["Payroll"])


@router.post("/generate", dependencies=[Depends(allow_admin_hr)])
def generate_payroll(body: PayrollRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Monthly payslip CSV: Name, Email, Department, Gross, Net.

    Gross = basic + allowances, Net = gross - deductions.
    """
    content = render_payroll_csv(payroll_rows(db))
    record_audit(db, current_user.id, "generate_payroll", "Payroll", "", {"month": body.month, "year": body.year})

    filename = payslip_filename(body.month, body.year)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
