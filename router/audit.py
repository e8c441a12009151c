from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from schemas import AuditLogOut
from db import get_db
from dependencies import allow_admin_hr
from services.audit_service import list_audit_logs, MAX_AUDIT_LIMIT

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", response_model=List[AuditLogOut], dependencies=[Depends(allow_admin_hr)])
def read_audit_log(
    limit: int = Query(MAX_AUDIT_LIMIT, ge=1, description=f"Capped at {MAX_AUDIT_LIMIT}"),
    db: Session = Depends(get_db)
):
    """Most recent audit entries first, with the acting user."""
    return list_audit_logs(db, limit)
