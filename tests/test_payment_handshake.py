from datetime import date

import pytest
from fastapi.testclient import TestClient

import database
import models
from app.client import ApiClient, BookingWizard, PaymentHandshake, PaymentOutcome, SessionContext, WizardStep
from app.client.checkout import CheckoutDismissed, CheckoutRequest, PaymentProof
from app.client.errors import CheckoutUnavailable, InvalidTransition
from app.client.submission import AppointmentDraft, DraftSubmitter, QuestionEntry
from conftest import KEY_ID, PASSWORD, pay, register, sign


class SigningCheckout:
    """Completes payment like the hosted widget would, signing with the test secret."""

    def __init__(self, payment_id: str = "pay_test_001", forge: bool = False):
        self.payment_id = payment_id
        self.forge = forge
        self.requests: list[CheckoutRequest] = []

    def open(self, request: CheckoutRequest):
        self.requests.append(request)
        signature = "forged" if self.forge else sign(request.order_id, self.payment_id)
        return PaymentProof.from_callback(
            {
                "razorpay_order_id": request.order_id,
                "razorpay_payment_id": self.payment_id,
                "razorpay_signature": signature,
            }
        )


class DismissingCheckout:
    def __init__(self):
        self.opened = 0

    def open(self, request: CheckoutRequest):
        self.opened += 1
        return CheckoutDismissed(reason="modal closed")


class BrokenCheckout:
    def open(self, request: CheckoutRequest):
        raise CheckoutUnavailable("Failed to load payment gateway")


def _server_status(appointment_id: str) -> str:
    db = database.SessionLocal()
    try:
        return db.query(models.Appointment).filter(models.Appointment.id == appointment_id).one().status
    finally:
        db.close()


def _session(client: TestClient) -> tuple[SessionContext, ApiClient]:
    register(client)
    session = SessionContext()
    api = ApiClient(client, session)
    session.login(api, "asha@example.com", PASSWORD)
    return session, api


def _pending(api: ApiClient):
    draft = AppointmentDraft(
        date=date(2025, 4, 10),
        time_slot="18:00",
        consultation_type="career",
        package_id="premium",
        questions=[QuestionEntry("Will I change jobs?", "Working in IT for 5 years")],
    )
    return DraftSubmitter(api).submit(draft)


def test_verified_payment_confirms(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)
    checkout = SigningCheckout()

    result = PaymentHandshake(api, checkout, session).pay(pending)
    assert result.outcome == PaymentOutcome.CONFIRMED
    assert result.appointment_status == "confirmed"
    assert pending.status == "confirmed"
    assert _server_status(pending.id) == "confirmed"

    options = checkout.requests[0].to_options()
    assert options["key"] == KEY_ID
    assert options["amount"] == 149900
    assert options["currency"] == "INR"
    assert options["prefill"] == {"name": "Asha Rao", "email": "asha@example.com", "contact": "9876543210"}
    assert options["notes"]["appointment_id"] == pending.id
    assert options["theme"] == {"color": "#6366f1"}


def test_forged_proof_never_confirms(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)

    result = PaymentHandshake(api, SigningCheckout(forge=True), session).pay(pending)
    assert result.outcome == PaymentOutcome.VERIFICATION_FAILED
    assert result.appointment_status == "pending"
    assert pending.status == "pending"
    assert _server_status(pending.id) == "pending"


def test_verification_success_flag_is_required():
    class LyingApi:
        def post(self, path, json=None):
            if path == "/payment/create-order":
                return {"order_id": "order_1", "amount": 149900, "currency": "INR", "key_id": KEY_ID}
            return {"appointment": {"status": "pending"}}

    from app.client.submission import PendingAppointment

    pending = PendingAppointment(
        id="a1",
        date=date(2025, 4, 10),
        time_slot="18:00",
        consultation_type="career",
        consultation_type_name="Career Guidance",
        package={"id": "premium", "name": "Premium Consultation", "duration": 45, "price": 1499},
        questions=[],
        amount=1499,
        currency="INR",
        status="pending",
        payment_status="pending",
    )
    result = PaymentHandshake(LyingApi(), SigningCheckout()).pay(pending)
    assert result.outcome == PaymentOutcome.VERIFICATION_FAILED
    assert pending.status == "pending"


def test_dismissal_leaves_appointment_pending(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)
    checkout = DismissingCheckout()

    result = PaymentHandshake(api, checkout, session).pay(pending)
    assert result.outcome == PaymentOutcome.DISMISSED
    assert result.message is None
    assert result.appointment_status == "pending"
    assert _server_status(pending.id) == "pending"

    # Re-attempting reuses the same order without re-entering booking details.
    second = PaymentHandshake(api, SigningCheckout(), session).pay(pending)
    assert second.outcome == PaymentOutcome.CONFIRMED
    assert second.order.order_id == result.order.order_id
    assert len(razorpay) == 1


def test_checkout_load_failure_is_distinct(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)

    result = PaymentHandshake(api, BrokenCheckout(), session).pay(pending)
    assert result.outcome == PaymentOutcome.CHECKOUT_UNAVAILABLE
    assert result.retryable is True
    assert _server_status(pending.id) == "pending"


def test_gateway_not_configured_fails_before_checkout(client_base: TestClient):
    session, api = _session(client_base)
    pending = _pending(api)
    checkout = DismissingCheckout()

    result = PaymentHandshake(api, checkout, session).pay(pending)
    assert result.outcome == PaymentOutcome.FAILED
    assert result.retryable is True
    assert checkout.opened == 0


def test_replayed_proof_is_a_success_terminal_state(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)
    handshake = PaymentHandshake(api, SigningCheckout(), session)
    first = handshake.pay(pending)
    order = first.order

    proof = PaymentProof(order.order_id, "pay_test_001", sign(order.order_id, "pay_test_001"))
    replay = handshake.verify(pending, proof, order)
    assert replay.outcome == PaymentOutcome.CONFIRMED
    assert replay.already_confirmed is True


def test_booking_to_dashboard_scenario(client_base: TestClient, razorpay):
    """2025-04-10 18:00, premium, career: 1499 due, confirmed after verification, handed to the dashboard."""
    register(client_base)
    session = SessionContext()
    api = ApiClient(client_base, session)
    assert session.guard("/booking") == "/login"
    session.login(api, "asha@example.com", PASSWORD)
    assert session.guard("/booking") == "/booking"

    wizard = BookingWizard(api, session=session)
    lookup = wizard.select_date(date(2025, 4, 10))
    assert [slot.time for slot in lookup.slots] == ["17:00", "17:30", "18:00", "18:30", "19:00", "19:30"]
    wizard.select_slot("18:00")
    wizard.next()
    wizard.select_consultation_type("career")
    wizard.select_package("premium")
    wizard.next()
    wizard.draft.update_question(0, question="Will I change jobs this year?", detail="Software engineer, 5 years")
    wizard.next()
    assert wizard.summary()["total"] == 1499

    pending = wizard.submit()
    assert wizard.step == WizardStep.AWAITING_PAYMENT
    assert pending.amount == 1499
    assert pending.status == "pending"

    dismissed = wizard.pay(DismissingCheckout())
    assert dismissed.outcome == PaymentOutcome.DISMISSED
    assert wizard.step == WizardStep.AWAITING_PAYMENT
    assert wizard.error is None and wizard.notice is None

    failed = wizard.pay(SigningCheckout(forge=True))
    assert failed.outcome == PaymentOutcome.VERIFICATION_FAILED
    assert wizard.step == WizardStep.AWAITING_PAYMENT
    assert wizard.error
    assert _server_status(pending.id) == "pending"

    confirmed = wizard.pay(SigningCheckout())
    assert confirmed.outcome == PaymentOutcome.CONFIRMED
    assert wizard.step == WizardStep.CONFIRMED
    assert wizard.navigation_target == "/dashboard"
    assert _server_status(pending.id) == "confirmed"

    with pytest.raises(InvalidTransition):
        wizard.pay(SigningCheckout())

    appointments = api.get("/user/appointments")["appointments"]
    assert [(a["id"], a["status"], a["amount"]) for a in appointments] == [(pending.id, "confirmed", 1499)]
    dashboard = api.get("/user/dashboard")
    assert dashboard["next_appointment"]["id"] == pending.id
    assert dashboard["stats"]["total_spent"] == 1499


def test_lost_verify_response_settles_as_confirmed(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)
    # The server confirms the payment but the client never sees the verify response.
    pay(client_base, session.token, pending.id)
    assert pending.status == "pending"

    checkout = DismissingCheckout()
    result = PaymentHandshake(api, checkout, session).pay(pending)
    assert result.outcome == PaymentOutcome.CONFIRMED
    assert result.already_confirmed is True
    assert result.appointment_status == "confirmed"
    assert pending.status == "confirmed"
    assert pending.payment_status == "paid"
    assert checkout.opened == 0


def test_wizard_reaches_dashboard_after_lost_verify_response(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    wizard = BookingWizard(api, session=session)
    wizard.select_date(date(2025, 4, 10))
    wizard.select_slot("18:00")
    wizard.next()
    wizard.select_consultation_type("career")
    wizard.select_package("premium")
    wizard.next()
    wizard.draft.update_question(0, question="Will I change jobs?", detail="Working in IT for 5 years")
    wizard.next()
    pending = wizard.submit()
    pay(client_base, session.token, pending.id)

    result = wizard.pay(SigningCheckout())
    assert result.outcome == PaymentOutcome.CONFIRMED
    assert wizard.step == WizardStep.CONFIRMED
    assert wizard.navigation_target == "/dashboard"
    assert wizard.error is None


def test_cancelled_appointment_still_fails_to_pay(client_base: TestClient, razorpay):
    session, api = _session(client_base)
    pending = _pending(api)
    api.put(f"/appointments/{pending.id}/cancel")

    result = PaymentHandshake(api, DismissingCheckout(), session).pay(pending)
    assert result.outcome == PaymentOutcome.FAILED
    assert result.appointment_status == "cancelled"
    assert result.message == "This appointment has been cancelled"
