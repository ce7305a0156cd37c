from datetime import datetime, timedelta

from fastapi.testclient import TestClient

import database
import models
from conftest import KEY_ID, auth, book, pay, register, sign


def _create_order(client: TestClient, token: str, appointment_id: str):
    return client.post("/api/payment/create-order", json={"appointment_id": appointment_id}, headers=auth(token))


def _verify(client: TestClient, token: str, appointment_id: str, order_id: str, payment_id: str, signature: str):
    return client.post(
        "/api/payment/verify",
        json={
            "appointment_id": appointment_id,
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        },
        headers=auth(token),
    )


def _appointment_row(appointment_id: str) -> models.Appointment:
    db = database.SessionLocal()
    try:
        return db.query(models.Appointment).filter(models.Appointment.id == appointment_id).one()
    finally:
        db.close()


def test_create_order_uses_minor_units(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)

    resp = _create_order(client_base, token, appointment["id"])
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["amount"] == 149900
    assert data["currency"] == "INR"
    assert data["key_id"] == KEY_ID
    assert data["appointment_id"] == appointment["id"]
    assert razorpay[0]["receipt"] == appointment["id"]


def test_create_order_reuses_active_order(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)

    first = _create_order(client_base, token, appointment["id"]).json()["data"]
    second = _create_order(client_base, token, appointment["id"]).json()["data"]
    assert first["order_id"] == second["order_id"]
    assert len(razorpay) == 1


def test_expired_order_is_replaced(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    first = _create_order(client_base, token, appointment["id"]).json()["data"]

    db = database.SessionLocal()
    try:
        order = db.query(models.PaymentOrder).filter(models.PaymentOrder.gateway_order_id == first["order_id"]).one()
        order.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
    finally:
        db.close()

    second = _create_order(client_base, token, appointment["id"]).json()["data"]
    assert second["order_id"] != first["order_id"]


def test_create_order_without_gateway_config_returns_503(client_base: TestClient):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    resp = _create_order(client_base, token, appointment["id"])
    assert resp.status_code == 503, resp.text
    assert resp.json()["message"] == "Payment gateway is currently unavailable"


def test_create_order_for_someone_elses_appointment(client_base: TestClient, razorpay):
    owner_token, _ = register(client_base, email="owner@example.com")
    other_token, _ = register(client_base, email="other@example.com")
    appointment = book(client_base, owner_token)
    assert _create_order(client_base, other_token, appointment["id"]).status_code == 403


def test_bad_signature_keeps_appointment_pending(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    order_id = _create_order(client_base, token, appointment["id"]).json()["data"]["order_id"]

    resp = _verify(client_base, token, appointment["id"], order_id, "pay_1", "not-a-signature")
    assert resp.status_code == 400, resp.text
    assert resp.json()["message"] == "Payment verification failed"

    row = _appointment_row(appointment["id"])
    assert row.status == "pending"
    assert row.payment_status == "pending"

    # The failed order is spent; a new attempt gets a fresh one.
    retry = _create_order(client_base, token, appointment["id"]).json()["data"]
    assert retry["order_id"] != order_id


def test_verify_confirms_appointment(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    data = pay(client_base, token, appointment["id"])

    assert data["already_confirmed"] is False
    assert data["appointment"]["status"] == "confirmed"
    assert data["appointment"]["payment_status"] == "paid"
    assert data["appointment"]["confirmed_at"]


def test_verify_replay_is_idempotent(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    order_id = _create_order(client_base, token, appointment["id"]).json()["data"]["order_id"]
    signature = sign(order_id, "pay_once")

    first = _verify(client_base, token, appointment["id"], order_id, "pay_once", signature)
    second = _verify(client_base, token, appointment["id"], order_id, "pay_once", signature)
    assert first.status_code == 200, first.text
    assert second.status_code == 200, second.text
    assert second.json()["data"]["already_confirmed"] is True
    confirmed_at = first.json()["data"]["appointment"]["confirmed_at"]
    assert second.json()["data"]["appointment"]["confirmed_at"] == confirmed_at

    # A different payment against the same paid order is refused.
    other = _verify(client_base, token, appointment["id"], order_id, "pay_twice", sign(order_id, "pay_twice"))
    assert other.status_code == 409, other.text


def test_verify_unknown_order_fails(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    resp = _verify(client_base, token, appointment["id"], "order_unknown", "pay_1", sign("order_unknown", "pay_1"))
    assert resp.status_code == 400, resp.text


def test_verify_expired_order_fails(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    order_id = _create_order(client_base, token, appointment["id"]).json()["data"]["order_id"]

    db = database.SessionLocal()
    try:
        order = db.query(models.PaymentOrder).filter(models.PaymentOrder.gateway_order_id == order_id).one()
        order.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.commit()
    finally:
        db.close()

    resp = _verify(client_base, token, appointment["id"], order_id, "pay_1", sign(order_id, "pay_1"))
    assert resp.status_code == 400, resp.text
    assert _appointment_row(appointment["id"]).status == "pending"


def test_paid_or_cancelled_appointments_cannot_order(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    paid = book(client_base, token, time_slot="17:00")
    pay(client_base, token, paid["id"])
    assert _create_order(client_base, token, paid["id"]).status_code == 409

    cancelled = book(client_base, token, time_slot="17:30")
    client_base.put(f"/api/appointments/{cancelled['id']}/cancel", headers=auth(token))
    assert _create_order(client_base, token, cancelled["id"]).status_code == 409


def test_cancel_expires_open_orders(client_base: TestClient, razorpay):
    token, _ = register(client_base)
    appointment = book(client_base, token)
    order_id = _create_order(client_base, token, appointment["id"]).json()["data"]["order_id"]
    client_base.put(f"/api/appointments/{appointment['id']}/cancel", headers=auth(token))

    resp = _verify(client_base, token, appointment["id"], order_id, "pay_1", sign(order_id, "pay_1"))
    assert resp.status_code == 409, resp.text
    assert _appointment_row(appointment["id"]).status == "cancelled"
