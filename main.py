from fastapi import APIRouter, FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
import os

from sqlalchemy.orm import Session
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from dotenv import load_dotenv
import logging

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Database imports
from db import get_db, engine, SessionLocal

# Model imports
from models import User, Base

# Schema imports
from schemas import Token, LoginRequest, LogoutResponse

# Auth imports
from auth import verify_password, create_access_token, decode_access_token, ACCESS_TOKEN_EXPIRE_MINUTES

# Error imports
from errors import PortalError, UnauthorizedError

# Dependency imports
from dependencies import get_current_user, oauth2_scheme

# Router imports
from router import attendance, audit, employees, leave, payroll, reports, users

# Service imports
from services.bootstrap import bootstrap_from_env
from services.timezone_utils import LOCAL_TZ
from services.token_blacklist import blacklist_token, cleanup_expired_blacklist

scheduler = BackgroundScheduler(timezone=LOCAL_TZ)


def cleanup_blacklist_job():
    db = SessionLocal()
    try:
        cleanup_expired_blacklist(db)
    except Exception:
        db.rollback()
        logger.exception("Token blacklist cleanup failed")
    finally:
        db.close()


def bootstrap_admin():
    db = SessionLocal()
    try:
        bootstrap_from_env(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    Base.metadata.create_all(bind=engine)
    bootstrap_admin()

    scheduler.add_job(
        cleanup_blacklist_job,
        CronTrigger(hour=2, minute=30, timezone=LOCAL_TZ),
        id='cleanup_token_blacklist',
        name='Clean up expired token blacklist entries',
        replace_existing=True
    )
    scheduler.start()
    try:
        yield
    finally:
        # shutdown
        scheduler.shutdown()


app = FastAPI(
    title="Employee Portal API",
    version="1.0.0",
    lifespan=lifespan
)

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ERROR HANDLERS
def _error_response(status_code: int, message: str, error_code: str, headers: dict | None = None):
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "error_code": error_code, "detail": message},
        headers=headers,
    )


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")
    return _error_response(exc.status_code, exc.message, exc.error_code, headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed/missing input is a plain 400 ValidationError
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in errors
    ) or "Invalid request"
    return _error_response(400, message, "ValidationError")


router = APIRouter(tags=["Auth"])


def _issue_token(user: User) -> dict:
    access_token = create_access_token(
        data={"sub": user.email, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login for {email}")
        raise UnauthorizedError("Incorrect email or password")
    return user


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    # OAuth2 form login; the username field carries the email
    return _issue_token(_authenticate(db, form_data.username, form_data.password))


@router.post("/auth/login", response_model=Token)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return _issue_token(_authenticate(db, payload.email, payload.password))


@router.post("/logout", response_model=LogoutResponse)
def logout(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Revoke the current token (idempotent)."""
    payload = decode_access_token(token)
    jti = payload.get("jti")
    if not jti:
        raise UnauthorizedError("Token does not contain required tracking ID")

    token_exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
    revoked = blacklist_token(db, jti, current_user.id, token_exp)
    if not revoked:
        return LogoutResponse(message="Already logged out", success=True, email=current_user.email)

    logger.info(f"User {current_user.email} logged out")
    return LogoutResponse(message="Logged out successfully", success=True, email=current_user.email)


@router.get("/health")
def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# Routers
app.include_router(router)
app.include_router(users.router)
app.include_router(employees.router)
app.include_router(attendance.router)
app.include_router(leave.router)
app.include_router(audit.router)
app.include_router(payroll.router)
app.include_router(reports.router)

# uvicorn main:app --reload
# http://127.0.0.1:8000/docs
# for tests run: python -m pytest -q
