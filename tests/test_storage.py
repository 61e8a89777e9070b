"""Tests for storage references, signing and the signed URL endpoint"""
import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shopdesk.errors import SigningError, StorageError
from shopdesk.models.receipt import Receipt
from shopdesk.utils.storage import (
    StorageClient,
    StorageRef,
    owned_storage_ref,
    parse_expires_in,
    resolve_storage_ref,
    sign_or_fallback,
)

OWN = "https://proj.supabase.co/storage/v1/object/vin-engine/center-1/vin/1.jpg"


# ---------------------------------------------------------------------------
# Reference parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("url, expected", [
    (
        "https://proj.supabase.co/storage/v1/object/public/receipts/2024/vin.jpg",
        StorageRef("receipts", "2024/vin.jpg"),
    ),
    (
        "https://proj.supabase.co/storage/v1/object/receipts/2024/vin.jpg?download=1",
        StorageRef("receipts", "2024/vin.jpg"),
    ),
    (
        "https://proj.supabase.co/storage/v1/object/public/receipts/%EC%B0%A8%EB%9F%89/a%20b.png",
        StorageRef("receipts", "차량/a b.png"),
    ),
    ("https://cdn.example.com/images/vin.jpg", None),
    ("https://proj.supabase.co/storage/v1/object/sign/receipts/vin.jpg?token=abc", None),
    ("", None),
    (None, None),
])
def test_resolve_storage_ref(url, expected):
    assert resolve_storage_ref(url) == expected


@pytest.mark.parametrize("raw, expected", [
    (None, 180),
    ("", 180),
    ("abc", 180),
    ("0", 180),
    ("-5", 180),
    ("60", 60),
    ("999999", 3600),
])
def test_parse_expires_in(raw, expected):
    assert parse_expires_in(raw) == expected


def test_sign_or_fallback(storage):
    signed = sign_or_fallback(storage, OWN, "center-1")
    assert signed.startswith("https://storage.test/signed/vin-engine/center-1/vin/1.jpg")

    assert sign_or_fallback(storage, "https://cdn.example.com/x.jpg", "center-1") == "https://cdn.example.com/x.jpg"
    assert sign_or_fallback(storage, None, "center-1") is None

    storage.fail = True
    assert sign_or_fallback(storage, OWN, "center-1") == OWN


def test_sign_or_fallback_never_signs_another_centers_object(storage):
    assert sign_or_fallback(storage, OWN, "center-2") == OWN
    assert storage.signed == []


@pytest.mark.parametrize("url, owned", [
    (OWN, True),
    ("https://proj.supabase.co/storage/v1/object/public/vin-engine/center-1/as/engine/2.jpg", True),
    ("https://proj.supabase.co/storage/v1/object/vin-engine/center-2/vin/1.jpg", False),
    ("https://proj.supabase.co/storage/v1/object/receipts/center-1/vin/1.jpg", False),
    ("https://proj.supabase.co/storage/v1/object/vin-engine/center-1", False),
    ("https://proj.supabase.co/storage/v1/object/vin-engine/center-1/../center-2/x.jpg", False),
    ("https://proj.supabase.co/storage/v1/object/vin-engine/center-10/vin/1.jpg", False),
    ("https://cdn.example.com/center-1/vin.jpg", False),
])
def test_owned_storage_ref(url, owned):
    ref = owned_storage_ref(url, "center-1")
    assert (ref is not None) is owned


# ---------------------------------------------------------------------------
# StorageClient against a stubbed HTTP session
# ---------------------------------------------------------------------------

class _Response:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


def _client_returning(monkeypatch, response=None, error=None):
    client = StorageClient("https://proj.supabase.co/", "service-key", timeout=2.0)
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(client.session, "post", fake_post)
    return client, calls


def test_create_signed_url_relative_path(monkeypatch):
    client, calls = _client_returning(
        monkeypatch, _Response(200, {"signedURL": "/object/sign/receipts/a%20b.jpg?token=t"})
    )

    url = client.create_signed_url("receipts", "a b.jpg", 180)

    assert url == "https://proj.supabase.co/storage/v1/object/sign/receipts/a%20b.jpg?token=t"
    assert calls[0]["url"] == "https://proj.supabase.co/storage/v1/object/sign/receipts/a%20b.jpg"
    assert calls[0]["json"] == {"expiresIn": 180}
    assert calls[0]["headers"]["Authorization"] == "Bearer service-key"
    assert calls[0]["timeout"] == 2.0


@pytest.mark.parametrize("response, error", [
    (_Response(403, {"error": "denied"}), None),
    (_Response(200, {}), None),
    (_Response(200, ValueError("not json")), None),
    (None, requests.Timeout("timed out")),
    (None, requests.ConnectionError("refused")),
])
def test_create_signed_url_failures(monkeypatch, response, error):
    client, _ = _client_returning(monkeypatch, response, error)
    with pytest.raises(SigningError):
        client.create_signed_url("receipts", "vin.jpg", 180)


def test_upload_posts_object_and_returns_its_url(monkeypatch):
    client = StorageClient("https://proj.supabase.co/", "service-key", timeout=2.0)
    calls = []

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return _Response(200, {"Key": "vin-engine/c1/vin/a b.jpg"})

    monkeypatch.setattr(client.session, "post", fake_post)
    url = client.upload("vin-engine", "c1/vin/a b.jpg", b"jpeg", "image/jpeg")

    assert url == "https://proj.supabase.co/storage/v1/object/vin-engine/c1/vin/a%20b.jpg"
    assert calls[0]["url"] == url
    assert calls[0]["data"] == b"jpeg"
    assert calls[0]["headers"]["Content-Type"] == "image/jpeg"
    assert resolve_storage_ref(url) == StorageRef("vin-engine", "c1/vin/a b.jpg")


def test_upload_failure_raises_storage_error(monkeypatch):
    client = StorageClient("https://proj.supabase.co", "service-key")
    monkeypatch.setattr(client.session, "post", lambda *args, **kwargs: _Response(400, {"error": "Duplicate"}))
    with pytest.raises(StorageError):
        client.upload("vin-engine", "c1/vin/a.jpg", b"jpeg")


def test_unconfigured_client_refuses_to_sign():
    with pytest.raises(SigningError):
        StorageClient(None, None).create_signed_url("receipts", "vin.jpg", 180)


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

def test_signed_url_requires_session(client: TestClient):
    response = client.get("/storage/signed-url", params={"bucket": "receipts", "path": "vin.jpg"})
    assert response.status_code == 401


def test_signed_url_issued(client: TestClient, storage, admin_a, login_as):
    login_as(admin_a)
    response = client.get(
        "/storage/signed-url",
        params={"bucket": "receipts", "path": "2024/vin.jpg", "expiresIn": "60"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["requestId"]
    assert body["signedUrl"].startswith("https://storage.test/signed/receipts/2024/vin.jpg")
    assert storage.signed == [("receipts", "2024/vin.jpg", 60)]


def test_signed_url_defaults_expiry(client: TestClient, storage, admin_a, login_as):
    login_as(admin_a)
    client.get("/storage/signed-url", params={"bucket": "receipts", "path": "vin.jpg", "expiresIn": "soon"})
    assert storage.signed == [("receipts", "vin.jpg", 180)]


@pytest.mark.parametrize("params", [
    {"path": "vin.jpg"},
    {"bucket": "receipts"},
    {"bucket": "  ", "path": "vin.jpg"},
])
def test_signed_url_requires_bucket_and_path(client: TestClient, admin_a, login_as, params):
    login_as(admin_a)
    response = client.get("/storage/signed-url", params=params)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_signed_url_failure_is_generic_500(client: TestClient, storage, admin_a, login_as):
    login_as(admin_a)
    storage.fail = True

    response = client.get("/storage/signed-url", params={"bucket": "receipts", "path": "vin.jpg"})
    assert response.status_code == 500

    body = response.json()
    assert body["error"] == "signing_failed"
    assert body["requestId"] == response.headers["X-Request-ID"]
    assert "403" not in body["message"]


def test_receipt_detail_signs_image_urls(client: TestClient, db: Session, storage, center_a, admin_a, login_as):
    vin_url = f"https://proj.supabase.co/storage/v1/object/public/vin-engine/{center_a.id}/vin/1.jpg"
    receipt = Receipt(
        center_id=center_a.id,
        vehicle_name="Porter II",
        vehicle_number="12GA3456",
        mileage_km=1,
        vin_image_url=vin_url,
        engine_image_url="https://cdn.example.com/engine.jpg",
    )
    db.add(receipt)
    db.commit()
    login_as(admin_a)

    data = client.get(f"/receipts/{receipt.id}").json()["data"]
    assert data["vin_image_url"].startswith(f"https://storage.test/signed/vin-engine/{center_a.id}/vin/1.jpg")
    assert data["engine_image_url"] == "https://cdn.example.com/engine.jpg"

    storage.fail = True
    data = client.get(f"/receipts/{receipt.id}").json()["data"]
    assert data["vin_image_url"] == vin_url
