"""Tests for engine configuration and datastore failure handling"""
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from shopdesk.config import settings
from shopdesk.database import _engine_kwargs, get_db
from shopdesk.main import app


def test_postgres_engine_has_connect_and_statement_timeouts(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_CONNECT_TIMEOUT", 7)
    monkeypatch.setattr(settings, "DATABASE_STATEMENT_TIMEOUT_MS", 4500)

    kwargs = _engine_kwargs("postgresql://shopdesk:pw@db:5432/shopdesk")

    assert kwargs["connect_args"] == {"connect_timeout": 7, "options": "-c statement_timeout=4500"}
    assert kwargs["pool_timeout"] == settings.DATABASE_POOL_TIMEOUT
    assert kwargs["pool_pre_ping"] is True


def test_sqlite_engine_has_no_server_timeouts():
    kwargs = _engine_kwargs("sqlite:///./test.db")
    assert kwargs == {"connect_args": {"check_same_thread": False}}


class _TimedOutSession:
    """Session whose every statement fails like a cancelled query"""

    def _fail(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))

    query = execute = _fail

    def rollback(self):
        pass

    def close(self):
        pass


def test_statement_timeout_is_reported_as_generic_500(client: TestClient):
    def timed_out_db():
        yield _TimedOutSession()

    app.dependency_overrides[get_db] = timed_out_db
    response = client.post(
        "/inquiries",
        json={"customer_name": "Lee", "phone": "010-1234-5678", "content": "Engine light is on"},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "upstream_failure"
    assert body["requestId"] == response.headers["X-Request-ID"]
    assert "statement timeout" not in body["message"]


def test_readiness_reports_database_timeout(client: TestClient):
    def timed_out_db():
        yield _TimedOutSession()

    app.dependency_overrides[get_db] = timed_out_db
    response = client.get("/health/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "unhealthy"
    assert body["requestId"] == response.headers["X-Request-ID"]
