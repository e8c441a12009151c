"""
Default admin bootstrap.

Only runs when BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD are set;
nothing is created from hard-coded credentials.
"""
import os
import logging
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from auth import hash_password
from models import User

load_dotenv()

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session, email: str, password: str, name: str = "Administrator") -> tuple[User, bool]:
    """
    Create an admin account unless a user with this email already exists.

    Returns:
        (user, created)
    """
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        logger.info(f"Default admin already exists: {email}")
        return existing, False

    user = User(name=name, email=email, hashed_password=hash_password(password), role="admin")
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Default admin created: {email}")
    return user, True


def bootstrap_from_env(db: Session) -> Optional[User]:
    email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    if not email or not password:
        logger.debug("Admin bootstrap not configured; skipping")
        return None
    user, _ = ensure_default_admin(db, email, password, os.getenv("BOOTSTRAP_ADMIN_NAME", "Administrator"))
    return user
