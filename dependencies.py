from fastapi.security import OAuth2PasswordBearer
from fastapi import Depends
from sqlalchemy.orm import Session
from db import get_db
from models import User
from auth import decode_access_token
from errors import ForbiddenError, UnauthorizedError
from services.token_blacklist import is_token_blacklisted
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Validate the bearer token and return the current user.

    Rejects expired, malformed and revoked (logged out) tokens, and tokens
    whose role claim no longer matches the stored role.
    """
    payload = decode_access_token(token)
    email: str = payload.get("sub")
    role: str = payload.get("role")
    jti: str = payload.get("jti")

    if email is None or role is None:
        logger.warning("Invalid token payload: missing sub or role")
        raise UnauthorizedError()

    if jti and is_token_blacklisted(jti, db):
        logger.warning(f"User {email} attempted access with revoked token")
        raise UnauthorizedError("Token has been revoked. Please login again.")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        logger.warning(f"User not found: {email}")
        raise UnauthorizedError()

    if user.role != role:
        logger.warning(f"Role mismatch for user {email}: token={role}, db={user.role}")
        raise UnauthorizedError()

    return user


class RoleChecker:
    def __init__(self, allowed_roles):
        self.allowed_roles = set(allowed_roles)

    def __call__(self, user: User = Depends(get_current_user)):
        if user.role not in self.allowed_roles:
            logger.warning(f"Unauthorized access attempt: {user.email} ({user.role}) needs one of {sorted(self.allowed_roles)}")
            raise ForbiddenError()
        return True

allow_admin_hr = RoleChecker(["admin", "hr"])
allow_approvers = RoleChecker(["admin", "hr", "manager"])
