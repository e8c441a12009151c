from datetime import timedelta

from auth import create_access_token
from models import TokenBlacklist
from services.token_blacklist import cleanup_expired_blacklist, blacklist_token
from services.timezone_utils import utc_now


def test_token_login_and_me(client, make_user):
    make_user("employee", email="e2e@example.com", name="E2E User")
    r = client.post("/token", data={"username": "e2e@example.com", "password": "secret123"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "employee"
    assert body["expires_in"] == 480 * 60

    r = client.get("/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert r.status_code == 200
    assert r.json()["email"] == "e2e@example.com"
    assert r.json()["name"] == "E2E User"


def test_json_login(client, make_user):
    make_user("hr")
    r = client.post("/auth/login", json={"email": "hr@example.com", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["role"] == "hr"


def test_wrong_password_is_401(client, make_user):
    make_user("hr")
    r = client.post("/auth/login", json={"email": "hr@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["error_code"] == "UnauthorizedError"
    assert r.headers["www-authenticate"] == "Bearer"


def test_garbage_and_expired_tokens(client, make_user):
    make_user("employee")
    r = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

    expired = create_access_token(
        {"sub": "employee@example.com", "role": "employee"}, expires_delta=timedelta(minutes=-5)
    )
    r = client.get("/users/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


def test_role_claim_must_match_stored_role(client, make_user):
    make_user("employee")
    forged = create_access_token({"sub": "employee@example.com", "role": "admin"})
    r = client.get("/users/me", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401


def test_logout_revokes_token(client, headers_for):
    headers = headers_for("employee")
    r = client.post("/logout", headers=headers)
    assert r.status_code == 200
    assert r.json()["success"] is True

    r = client.get("/users/me", headers=headers)
    assert r.status_code == 401
    assert "revoked" in r.json()["error"]


def test_register_is_admin_hr_only(client, headers_for):
    payload = {"name": "New Hire", "email": "new@example.com", "password": "pw123456", "role": "employee"}

    r = client.post("/auth/register", json=payload, headers=headers_for("manager"))
    assert r.status_code == 403

    r = client.post("/auth/register", json=payload, headers=headers_for("hr"))
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "employee"

    r = client.post("/auth/register", json=payload, headers=headers_for("hr"))
    assert r.status_code == 400
    assert r.json()["error"] == "Email already registered"

    r = client.post("/auth/login", json={"email": "new@example.com", "password": "pw123456"})
    assert r.status_code == 200


def test_register_rejects_unknown_role(client, headers_for):
    r = client.post("/auth/register", json={
        "name": "X", "email": "x@example.com", "password": "pw", "role": "super_admin",
    }, headers=headers_for("admin"))
    assert r.status_code == 400


def test_users_list_gated(client, headers_for):
    assert client.get("/users", headers=headers_for("employee")).status_code == 403
    r = client.get("/users", headers=headers_for("admin"))
    assert r.status_code == 200
    assert {u["role"] for u in r.json()} == {"employee", "admin"}


def test_blacklist_cleanup_removes_expired(db, make_user):
    user = make_user("employee")
    blacklist_token(db, "expired-jti", user.id, utc_now() - timedelta(hours=1))
    blacklist_token(db, "live-jti", user.id, utc_now() + timedelta(hours=1))
    assert blacklist_token(db, "live-jti", user.id, utc_now() + timedelta(hours=1)) is False

    assert cleanup_expired_blacklist(db) == 1
    assert [row.jti for row in db.query(TokenBlacklist).all()] == ["live-jti"]
