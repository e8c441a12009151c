from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from models import User
from schemas import UserCreate, UserOut
from db import get_db
from auth import hash_password
from dependencies import get_current_user, allow_admin_hr
from errors import ConflictError
from services.audit_service import record_audit
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(allow_admin_hr)])
def register_user(user: UserCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Create a login account (admin/hr only).

    Accounts have no update endpoint; emails are unique.
    """
    existing = db.query(User).filter(User.email == user.email).first()
    if existing:
        raise ConflictError("Email already registered")

    db_user = User(
        name=user.name,
        email=user.email,
        hashed_password=hash_password(user.password),
        role=user.role,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info(f"User {db_user.email} ({db_user.role}) created by {current_user.email}")
    record_audit(db, current_user.id, "create_user", "User", db_user.id, {
        "name": db_user.name,
        "email": db_user.email,
        "role": db_user.role,
    })
    return db_user


@router.get("/users", response_model=List[UserOut], dependencies=[Depends(allow_admin_hr)])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.get("/users/me", response_model=UserOut)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user's profile"""
    return current_user
