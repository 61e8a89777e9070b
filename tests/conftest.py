"""Pytest configuration and fixtures"""
import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-do-not-use-in-production")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_CODE", "legacy-shared-code")

from typing import Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from shopdesk.config import settings
from shopdesk.database import Base, get_db
from shopdesk.errors import SigningError, StorageError
from shopdesk.main import app
from shopdesk.models.admin_user import AdminUser
from shopdesk.models.center import Center
from shopdesk.utils.passwords import hash_password
from shopdesk.utils.session_tokens import TokenService, get_token_service
from shopdesk.utils.storage import get_storage_client

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "correct-horse-battery"


def media_url(bucket: str, path: str) -> str:
    return f"https://proj.supabase.co/storage/v1/object/{bucket}/{path}"


class FakeStorageClient:
    """Stands in for the storage backend; records every call"""

    def __init__(self):
        self.fail = False
        self.signed: List[Tuple[str, str, int]] = []
        self.removed: List[Tuple[str, List[str]]] = []
        self.uploaded: List[Tuple[str, str, bytes]] = []

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        if self.fail:
            raise SigningError("storage backend returned 403")
        self.signed.append((bucket, path, expires_in))
        return f"https://storage.test/signed/{bucket}/{path}?token=t&expires={expires_in}"

    def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        if self.fail:
            raise StorageError("storage backend returned 500")
        self.uploaded.append((bucket, path, content))
        return media_url(bucket, path)

    def remove(self, bucket: str, paths: List[str]) -> None:
        if self.fail:
            raise StorageError("storage backend returned 500")
        self.removed.append((bucket, list(paths)))


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def tokens() -> TokenService:
    return get_token_service()


@pytest.fixture(scope="function")
def client(db: Session, storage: FakeStorageClient) -> Generator[TestClient, None, None]:
    """Create test client with database and storage overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_center(db: Session):
    def _make(code: str, name: Optional[str] = None) -> Center:
        center = Center(code=code, name=name or code.title())
        db.add(center)
        db.commit()
        db.refresh(center)
        return center
    return _make


@pytest.fixture
def make_user(db: Session):
    def _make(
        username: str,
        center: Center,
        password: str = DEFAULT_PASSWORD,
        is_superadmin: bool = False,
        is_active: bool = True,
        email: Optional[str] = None,
    ) -> AdminUser:
        user = AdminUser(
            username=username,
            email=email,
            password_hash=hash_password(password),
            center_id=center.id,
            is_superadmin=is_superadmin,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def center_a(make_center) -> Center:
    return make_center("gangnam", "Gangnam Center")


@pytest.fixture
def center_b(make_center) -> Center:
    return make_center("busan", "Busan Center")


@pytest.fixture
def admin_a(make_user, center_a) -> AdminUser:
    return make_user("alice", center_a)


@pytest.fixture
def admin_b(make_user, center_b) -> AdminUser:
    return make_user("bob", center_b)


@pytest.fixture
def superadmin(make_user, center_a) -> AdminUser:
    return make_user("root", center_a, is_superadmin=True)


@pytest.fixture
def login_as(client: TestClient, tokens: TokenService):
    """Put a session cookie for ``user`` (or a legacy session for None) on the client"""

    def _login(user: Optional[AdminUser]) -> str:
        if user is None:
            token = tokens.issue_legacy()
        else:
            token = tokens.issue(user_id=user.id, center_id=user.center_id)
        client.cookies.clear()
        client.cookies.set(settings.SESSION_COOKIE_NAME, token)
        return token
    return _login
