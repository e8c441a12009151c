"""
Password hashing and access tokens.

Tokens are HS256 JWTs carrying ``sub`` (user email), ``role`` and the
``exp``/``iat``/``jti`` claims; ``jti`` is what logout revokes.
"""
import os
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from dotenv import load_dotenv
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from errors import UnauthorizedError

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY environment variable not set")

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 8 * 60))


def hash_password(password: str) -> str:
    """bcrypt hash with a fresh salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for accounts without a stored hash."""
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Sign ``data`` into a bearer token.

    Args:
        data: Claims, normally {"sub": email, "role": role}
        expires_delta: Lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = dict(data)
    claims.update({
        "exp": issued_at + lifetime,
        "iat": issued_at,
        "jti": str(uuid.uuid4()),
    })
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises:
        UnauthorizedError: expired or malformed token
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired. Please login again.")
    except JWTError:
        raise UnauthorizedError("Invalid token")
