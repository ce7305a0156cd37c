import os
import sys
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_astro_consult.db")
os.environ.setdefault("DISABLE_ADMIN_SEED", "1")

import models  # noqa: E402
import database  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.services import booking_rules, catalog, payment_gateway  # noqa: E402

# Monday; 2025-04-10 is the Thursday used by the booking scenarios.
TODAY = date(2025, 4, 7)
NOW = datetime(2025, 4, 7, 10, 0)
KEY_ID = "rzp_test_key"
KEY_SECRET = "rzp_test_secret"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _reset_tables():
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    yield
    db = database.SessionLocal()
    try:
        for model in [models.PaymentOrder, models.Appointment, models.User]:
            db.query(model).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture(autouse=True)
def ist_today(monkeypatch) -> date:
    monkeypatch.setattr(booking_rules, "get_ist_today", lambda: TODAY)
    monkeypatch.setattr(booking_rules, "get_ist_now", lambda: NOW)
    return TODAY


@pytest.fixture
def client_base() -> TestClient:
    sys.modules["models"] = models
    sys.modules["database"] = database
    from main import app  # noqa: E402

    return TestClient(app)


@pytest.fixture
def razorpay(monkeypatch):
    """Configure fake gateway credentials and mint order ids locally."""
    monkeypatch.setattr(settings, "razorpay_key_id", KEY_ID)
    monkeypatch.setattr(settings, "razorpay_key_secret", KEY_SECRET)
    minted = []

    def _create_order(amount_minor, currency, receipt, notes=None):
        order_id = f"order_{uuid.uuid4().hex[:14]}"
        minted.append({"id": order_id, "amount": amount_minor, "currency": currency, "receipt": receipt})
        return order_id

    monkeypatch.setattr(payment_gateway, "create_gateway_order", _create_order)
    return minted


def sign(order_id: str, payment_id: str) -> str:
    return payment_gateway.compute_signature(order_id, payment_id, KEY_SECRET)


def register(client: TestClient, email: str = "asha@example.com", **extra) -> tuple[str, dict]:
    payload = {"email": email, "password": PASSWORD, "first_name": "Asha", "last_name": "Rao", "phone": "9876543210"}
    payload.update(extra)
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return data["token"], data["user"]


def create_admin(client: TestClient, email: str = "admin@example.com") -> str:
    db = database.SessionLocal()
    try:
        db.add(
            models.User(
                email=email,
                password_hash=hash_password(PASSWORD),
                first_name="Admin",
                last_name="User",
                role=models.UserRole.ADMIN.value,
            )
        )
        db.commit()
    finally:
        db.close()
    resp = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def booking_payload(
    target_date: date = date(2025, 4, 10),
    time_slot: str = "18:00",
    package_id: str = "premium",
    consultation_type: str = "career",
) -> dict:
    package = catalog.get_package(package_id)
    return {
        "appointment_date": target_date.isoformat(),
        "appointment_time": time_slot,
        "consultation_type": consultation_type,
        "package": package.snapshot(),
        "client_questions": [{"question": "Will I change jobs?", "detail": "Working in IT for 5 years"}],
    }


def book(client: TestClient, token: str, **kwargs) -> dict:
    resp = client.post("/api/appointments", json=booking_payload(**kwargs), headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["appointment"]


def pay(client: TestClient, token: str, appointment_id: str) -> dict:
    """Drive an appointment through create-order and a correctly signed verify."""
    order = client.post("/api/payment/create-order", json={"appointment_id": appointment_id}, headers=auth(token))
    assert order.status_code == 200, order.text
    order_id = order.json()["data"]["order_id"]
    payment_id = f"pay_{uuid.uuid4().hex[:14]}"
    resp = client.post(
        "/api/payment/verify",
        json={
            "appointment_id": appointment_id,
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": sign(order_id, payment_id),
        },
        headers=auth(token),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def days_from_today(days: int) -> date:
    return TODAY + timedelta(days=days)
