"""Tests for login, logout and the session guard"""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import DEFAULT_PASSWORD


def test_login_with_username_sets_session_cookie(client: TestClient, admin_a):
    response = client.post("/admin/login", json={"identifier": "alice", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200

    body = response.json()
    assert body["requestId"]
    assert body["data"]["id"] == admin_a.id
    assert body["data"]["center_id"] == admin_a.center_id
    assert body["data"]["is_superadmin"] is False

    cookie_header = response.headers["set-cookie"].lower()
    assert "admin_session=" in cookie_header
    assert "httponly" in cookie_header
    assert "samesite=lax" in cookie_header
    assert "path=/" in cookie_header
    assert f"max-age={60 * 60 * 24 * 7}" in cookie_header
    assert "; secure" not in cookie_header  # development

    me = client.get("/admin/me")
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "alice"


def test_login_with_email(client: TestClient, make_user, center_a):
    make_user("carol", center_a, email="carol@example.com")

    response = client.post("/admin/login", json={"identifier": "carol@example.com", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "carol@example.com"


def test_login_remember_me_extends_cookie(client: TestClient, admin_a):
    response = client.post(
        "/admin/login",
        json={"identifier": "alice", "password": DEFAULT_PASSWORD, "remember": True},
    )
    assert response.status_code == 200
    assert f"max-age={60 * 60 * 24 * 30}" in response.headers["set-cookie"].lower()


def test_login_failures_are_indistinguishable(client: TestClient, admin_a, make_user, center_a):
    make_user("dave", center_a, is_active=False)

    wrong_password = client.post("/admin/login", json={"identifier": "alice", "password": "nope"})
    unknown_user = client.post("/admin/login", json={"identifier": "nobody", "password": "nope"})
    inactive_user = client.post("/admin/login", json={"identifier": "dave", "password": DEFAULT_PASSWORD})

    for response in (wrong_password, unknown_user, inactive_user):
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert response.json()["message"] == "Invalid username or password."
        assert "set-cookie" not in response.headers


def test_login_requires_both_fields(client: TestClient):
    response = client.post("/admin/login", json={"identifier": "", "password": ""})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_logout_expires_cookie(client: TestClient, admin_a, login_as):
    login_as(admin_a)

    response = client.post("/admin/logout")
    assert response.status_code == 200

    cookie_header = response.headers["set-cookie"].lower()
    assert "admin_session=" in cookie_header
    assert "max-age=0" in cookie_header


def test_me_requires_session(client: TestClient):
    response = client.get("/admin/me")
    assert response.status_code == 401

    body = response.json()
    assert body["error"] == "unauthenticated"
    assert body["requestId"] == response.headers["X-Request-ID"]


def test_tampered_cookie_is_unauthenticated(client: TestClient, admin_a, login_as):
    token = login_as(admin_a)
    client.cookies.clear()
    client.cookies.set("admin_session", token[:-4] + "AAAA")

    assert client.get("/admin/me").status_code == 401


def test_deactivation_applies_to_next_request(client: TestClient, db: Session, admin_a, login_as):
    login_as(admin_a)
    assert client.get("/admin/me").status_code == 200

    admin_a.is_active = False
    db.commit()

    assert client.get("/admin/me").status_code == 401


def test_superadmin_flag_read_from_store_each_request(client: TestClient, db: Session, superadmin, login_as):
    login_as(superadmin)
    assert client.get("/admin/centers/all").status_code == 200

    superadmin.is_superadmin = False
    db.commit()

    response = client.get("/admin/centers/all")
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_superadmin_route_anonymous_is_401(client: TestClient):
    assert client.get("/admin/centers/all").status_code == 401


def test_superadmin_route_tenant_admin_is_403(client: TestClient, admin_a, login_as):
    login_as(admin_a)
    assert client.get("/admin/requests").status_code == 403


def test_code_login_issues_legacy_session(client: TestClient):
    response = client.post("/admin/auth", json={"code": "legacy-shared-code"})
    assert response.status_code == 200
    assert "admin_session=" in response.headers["set-cookie"]

    me = client.get("/admin/me")
    assert me.status_code == 200
    assert me.json()["data"]["id"] is None
    assert me.json()["data"]["center_id"] is None


def test_code_login_wrong_code(client: TestClient):
    response = client.post("/admin/auth", json={"code": "guess"})
    assert response.status_code == 401
    assert "set-cookie" not in response.headers


def test_request_id_is_server_generated(client: TestClient):
    response = client.get("/admin/me", headers={"X-Request-ID": "client-chosen"})
    assert response.headers["X-Request-ID"] != "client-chosen"
    assert response.json()["requestId"] == response.headers["X-Request-ID"]
