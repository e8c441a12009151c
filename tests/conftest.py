import os
import tempfile

# db.py and auth.py read these at import time
_DB_DIR = tempfile.mkdtemp(prefix="emp-portal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'portal.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LEAVE_DECISION_MODE"] = "loose"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient

from main import app
from db import engine, SessionLocal
from models import Base, User, Employee
from auth import hash_password
from services.token_blacklist import blacklist_cache

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    blacklist_cache.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(role="employee", email=None, password=PASSWORD, name=None):
        user = User(
            name=name or f"{role.title()} User",
            email=email or f"{role}@example.com",
            hashed_password=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        r = client.post("/token", data={"username": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}
    return _login


@pytest.fixture
def headers_for(make_user, login):
    """Auth headers for a freshly created user of the given role (one per role)."""
    cache = {}

    def _headers(role):
        if role not in cache:
            user = make_user(role)
            cache[role] = login(user.email)
        return cache[role]
    return _headers


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _make(first_name="Asha", last_name="Rao", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("email", f"{first_name.lower()}.{counter['n']}@example.com")
        emp = Employee(first_name=first_name, last_name=last_name, **kwargs)
        db.add(emp)
        db.commit()
        db.refresh(emp)
        return emp
    return _make
