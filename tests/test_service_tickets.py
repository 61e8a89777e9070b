"""Tests for after-sales (A/S) tickets"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import media_url
from shopdesk.models.service_ticket import ServiceTicket


@pytest.fixture
def make_ticket(db: Session):
    def _make(center, vehicle_number="12GA3456", **fields) -> ServiceTicket:
        ticket = ServiceTicket(
            center_id=center.id,
            vehicle_name=fields.pop("vehicle_name", "Porter II"),
            vehicle_number=vehicle_number,
            mileage_km=fields.pop("mileage_km", 120000),
            **fields,
        )
        db.add(ticket)
        db.commit()
        db.refresh(ticket)
        return ticket
    return _make


def test_public_submission(client: TestClient, center_a, center_b):
    response = client.post(
        "/service-tickets",
        params={"center": "busan"},
        data={"vehicle_name": "Bongo III", "vehicle_number": "34 ra 5678", "mileage_km": "80000", "symptom": "Rattle"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["center_id"] == center_b.id
    assert data["vehicle_number"] == "34RA5678"
    assert data["symptom"] == "Rattle"


def test_list_is_scoped(client: TestClient, center_a, center_b, admin_a, make_ticket, login_as):
    mine = make_ticket(center_a)
    make_ticket(center_b)
    login_as(admin_a)

    rows = client.get("/service-tickets").json()["data"]
    assert [r["id"] for r in rows] == [mine.id]


def test_cross_center_ticket_is_not_found(client: TestClient, db: Session, storage, center_b, admin_a, make_ticket, login_as):
    ticket = make_ticket(center_b, mileage_km=5000, vin_image_url=media_url("vin-engine", f"{center_b.id}/as/vin/1.jpg"))
    login_as(admin_a)

    assert client.get(f"/service-tickets/{ticket.id}").status_code == 404
    assert client.patch(f"/service-tickets/{ticket.id}", json={"mileage_km": 1}).status_code == 404
    assert client.delete(f"/service-tickets/{ticket.id}").status_code == 404

    db.expire_all()
    assert db.query(ServiceTicket).filter(ServiceTicket.id == ticket.id).one().mileage_km == 5000
    assert storage.signed == []
    assert storage.removed == []


def test_update_own_ticket_and_drop_image(client: TestClient, storage, center_a, admin_a, make_ticket, login_as):
    path = f"{center_a.id}/as/vin/1.jpg"
    ticket = make_ticket(center_a, vin_image_url=media_url("vin-engine", path))
    login_as(admin_a)

    response = client.patch(
        f"/service-tickets/{ticket.id}",
        json={"service_detail": "Replaced belt", "delete_vin_image": True},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["service_detail"] == "Replaced belt"
    assert data["vin_image_url"] is None
    assert storage.removed == [("vin-engine", [path])]


def test_delete_own_ticket(client: TestClient, db: Session, storage, center_a, admin_a, make_ticket, login_as):
    path = f"{center_a.id}/as/engine/2.jpg"
    ticket = make_ticket(center_a, engine_image_url=media_url("vin-engine", path))
    login_as(admin_a)

    assert client.delete(f"/service-tickets/{ticket.id}").status_code == 204
    assert storage.removed == [("vin-engine", [path])]
    assert db.query(ServiceTicket).count() == 0


def test_superadmin_sees_every_center(client: TestClient, center_a, center_b, superadmin, make_ticket, login_as):
    make_ticket(center_a)
    other = make_ticket(center_b)
    login_as(superadmin)

    assert len(client.get("/service-tickets").json()["data"]) == 2
    assert client.get(f"/service-tickets/{other.id}").status_code == 200
