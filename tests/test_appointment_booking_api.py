from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient

import database
import models
from app.services import booking_rules
from conftest import auth, book, booking_payload, days_from_today, register


def test_create_appointment_snapshots_package(client_base: TestClient):
    token, user = register(client_base)
    resp = client_base.post("/api/appointments", json=booking_payload(), headers=auth(token))
    assert resp.status_code == 201, resp.text
    appointment = resp.json()["data"]["appointment"]

    assert appointment["user_id"] == user["id"]
    assert appointment["status"] == "pending"
    assert appointment["payment_status"] == "pending"
    assert appointment["amount"] == 1499
    assert appointment["currency"] == "INR"
    assert appointment["package"] == {"id": "premium", "name": "Premium Consultation", "duration": 45, "price": 1499}
    assert appointment["consultation_type_name"] == "Career Guidance"
    assert appointment["time_label"] == "6:00 PM - 6:30 PM"


def test_booking_same_slot_twice_returns_409(client_base: TestClient):
    first_token, _ = register(client_base, email="first@example.com")
    second_token, _ = register(client_base, email="second@example.com")

    book(client_base, first_token)
    resp = client_base.post("/api/appointments", json=booking_payload(), headers=auth(second_token))
    assert resp.status_code == 409, resp.text
    assert resp.json()["message"] == "This time slot has just been booked. Please choose another slot"

    db = database.SessionLocal()
    try:
        assert db.query(models.Appointment).count() == 1
    finally:
        db.close()


def test_cancelled_booking_allows_rebooking(client_base: TestClient):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    resp = client_base.put(f"/api/appointments/{appointment['id']}/cancel", headers=auth(token))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["appointment"]["status"] == "cancelled"

    rebooked = book(client_base, token)
    assert rebooked["id"] != appointment["id"]


@pytest.mark.parametrize(
    "target_date",
    [
        date(2025, 4, 6),  # yesterday
        date(2025, 4, 13),  # Sunday
        days_from_today(31),  # beyond horizon
    ],
)
def test_booking_outside_rules_is_rejected(client_base: TestClient, target_date: date):
    token, _ = register(client_base)
    resp = client_base.post("/api/appointments", json=booking_payload(target_date=target_date), headers=auth(token))
    assert resp.status_code == 400, resp.text


def test_booking_with_invalid_time_slot(client_base: TestClient):
    token, _ = register(client_base)
    resp = client_base.post("/api/appointments", json=booking_payload(time_slot="20:00"), headers=auth(token))
    assert resp.status_code == 400, resp.text
    assert resp.json()["message"] == "Selected time slot is not available"


def test_tampered_package_price_is_rejected(client_base: TestClient):
    token, _ = register(client_base)
    payload = booking_payload()
    payload["package"]["price"] = 1
    resp = client_base.post("/api/appointments", json=payload, headers=auth(token))
    assert resp.status_code == 422, resp.text
    assert resp.json()["message"] == "Package details have changed. Please review your selection"


def test_unknown_consultation_type_is_rejected(client_base: TestClient):
    token, _ = register(client_base)
    resp = client_base.post(
        "/api/appointments", json=booking_payload(consultation_type="lottery"), headers=auth(token)
    )
    assert resp.status_code == 422, resp.text


@pytest.mark.parametrize(
    "questions",
    [
        [],
        [{"question": "  ", "detail": "something"}],
        [{"question": "q", "detail": "d"}] * 6,
    ],
)
def test_client_questions_are_validated(client_base: TestClient, questions):
    token, _ = register(client_base)
    payload = booking_payload()
    payload["client_questions"] = questions
    resp = client_base.post("/api/appointments", json=payload, headers=auth(token))
    assert resp.status_code == 422, resp.text
    assert resp.json()["success"] is False
    assert resp.json()["data"]["errors"]


def test_booking_requires_authentication(client_base: TestClient):
    resp = client_base.post("/api/appointments", json=booking_payload())
    assert resp.status_code == 401, resp.text
    assert resp.json()["message"] == "Access denied. No token provided."


def test_other_users_cannot_read_or_cancel(client_base: TestClient):
    owner_token, _ = register(client_base, email="owner@example.com")
    other_token, _ = register(client_base, email="other@example.com")
    appointment = book(client_base, owner_token)

    assert client_base.get(f"/api/appointments/{appointment['id']}", headers=auth(other_token)).status_code == 403
    resp = client_base.put(f"/api/appointments/{appointment['id']}/cancel", headers=auth(other_token))
    assert resp.status_code == 403, resp.text
    assert client_base.get(f"/api/appointments/{appointment['id']}", headers=auth(owner_token)).status_code == 200


def test_cancel_is_refused_inside_cutoff(monkeypatch, client_base: TestClient):
    token, _ = register(client_base)
    appointment = book(client_base, token, time_slot="18:00")
    monkeypatch.setattr(booking_rules, "get_ist_now", lambda: datetime(2025, 4, 10, 16, 30))

    resp = client_base.put(f"/api/appointments/{appointment['id']}/cancel", headers=auth(token))
    assert resp.status_code == 400, resp.text
    assert "2 hours" in resp.json()["message"]


def test_review_only_after_completion(client_base: TestClient):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    review = {"rating": 5, "review": "Very insightful"}

    resp = client_base.post(f"/api/appointments/{appointment['id']}/review", json=review, headers=auth(token))
    assert resp.status_code == 400, resp.text

    db = database.SessionLocal()
    try:
        row = db.query(models.Appointment).filter(models.Appointment.id == appointment["id"]).one()
        row.status = models.AppointmentStatus.COMPLETED.value
        db.commit()
    finally:
        db.close()

    resp = client_base.post(f"/api/appointments/{appointment['id']}/review", json=review, headers=auth(token))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["appointment"]["rating"] == 5

    again = client_base.post(f"/api/appointments/{appointment['id']}/review", json=review, headers=auth(token))
    assert again.status_code == 409, again.text
