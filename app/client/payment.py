from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.client.checkout import Checkout, CheckoutDismissed, CheckoutRequest, PaymentProof
from app.client.errors import (
    AuthenticationRequired,
    BookingClientError,
    CheckoutUnavailable,
    NotFound,
    RequestInFlight,
    SlotConflict,
    ValidationFailed,
)
from app.client.session import SessionContext
from app.client.submission import PendingAppointment

logger = logging.getLogger(__name__)


class PaymentOutcome(str, Enum):
    CONFIRMED = "confirmed"
    DISMISSED = "dismissed"
    VERIFICATION_FAILED = "verification_failed"
    CHECKOUT_UNAVAILABLE = "checkout_unavailable"
    AUTH_REQUIRED = "auth_required"
    FAILED = "failed"


@dataclass
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    key_id: str


@dataclass
class PaymentResult:
    outcome: PaymentOutcome
    appointment_status: str
    message: Optional[str] = None
    retryable: bool = False
    order: Optional[PaymentOrder] = None
    already_confirmed: bool = False

    @property
    def confirmed(self) -> bool:
        return self.outcome == PaymentOutcome.CONFIRMED


class PaymentHandshake:
    """Create order -> hosted checkout -> server verification.

    The checkout widget's success callback is only a claim; the appointment is
    reported as confirmed solely when the verify endpoint returns success.
    """

    def __init__(self, api, checkout: Checkout, session: Optional[SessionContext] = None) -> None:
        self.api = api
        self.checkout = checkout
        self.session = session
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def pay(self, appointment: PendingAppointment) -> PaymentResult:
        if not self._lock.acquire(blocking=False):
            raise RequestInFlight("Payment is already in progress")
        try:
            return self._pay(appointment)
        finally:
            self._lock.release()

    def _pay(self, appointment: PendingAppointment) -> PaymentResult:
        pending = appointment.status
        try:
            order = self.create_order(appointment)
        except AuthenticationRequired as exc:
            return PaymentResult(PaymentOutcome.AUTH_REQUIRED, pending, exc.message)
        except SlotConflict as exc:
            return self._settle_conflict(appointment, exc)
        except BookingClientError as exc:
            return PaymentResult(PaymentOutcome.FAILED, pending, exc.message, retryable=exc.retryable)

        request = self._checkout_request(appointment, order)
        try:
            result = self.checkout.open(request)
        except CheckoutUnavailable as exc:
            logger.warning("Checkout failed to load for order %s: %s", order.order_id, exc)
            return PaymentResult(PaymentOutcome.CHECKOUT_UNAVAILABLE, pending, exc.message, retryable=True, order=order)

        if isinstance(result, CheckoutDismissed):
            logger.info("Checkout dismissed for appointment %s", appointment.id)
            return PaymentResult(PaymentOutcome.DISMISSED, pending, order=order)

        return self.verify(appointment, result, order)

    def _settle_conflict(self, appointment: PendingAppointment, conflict: SlotConflict) -> PaymentResult:
        """A refused order may mean an earlier verify landed but its response was lost."""
        try:
            data = self.api.get(f"/appointments/{appointment.id}")
        except BookingClientError as exc:
            logger.warning("Could not re-read appointment %s after order conflict: %s", appointment.id, exc)
            return PaymentResult(PaymentOutcome.FAILED, appointment.status, conflict.message)

        current = (data or {}).get("appointment") or {}
        status = current.get("status")
        if status != "confirmed":
            if status:
                appointment.status = status
            return PaymentResult(PaymentOutcome.FAILED, appointment.status, conflict.message)

        logger.info("Appointment %s was already confirmed on the server", appointment.id)
        appointment.status = status
        appointment.payment_status = current.get("payment_status") or "paid"
        return PaymentResult(
            PaymentOutcome.CONFIRMED,
            status,
            "Payment successful! Your appointment is confirmed.",
            already_confirmed=True,
        )

    def create_order(self, appointment: PendingAppointment) -> PaymentOrder:
        data = self.api.post("/payment/create-order", json={"appointment_id": appointment.id})
        return PaymentOrder(
            order_id=data["order_id"],
            amount=data["amount"],
            currency=data["currency"],
            key_id=data["key_id"],
        )

    def _checkout_request(self, appointment: PendingAppointment, order: PaymentOrder) -> CheckoutRequest:
        user = (self.session.user if self.session else None) or {}
        return CheckoutRequest(
            key_id=order.key_id,
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            description=appointment.description,
            prefill={
                "name": self.session.display_name if self.session else "Customer",
                "email": user.get("email") or "",
                "contact": user.get("phone") or "",
            },
            notes={"appointment_id": appointment.id, "consultation_type": appointment.consultation_type},
        )

    def verify(self, appointment: PendingAppointment, proof: PaymentProof, order: PaymentOrder) -> PaymentResult:
        pending = appointment.status
        body = {
            "appointment_id": appointment.id,
            "razorpay_order_id": proof.order_id,
            "razorpay_payment_id": proof.payment_id,
            "razorpay_signature": proof.signature,
        }
        try:
            data = self.api.post("/payment/verify", json=body)
        except (ValidationFailed, SlotConflict, NotFound) as exc:
            logger.warning("Payment verification failed for appointment %s: %s", appointment.id, exc)
            return PaymentResult(PaymentOutcome.VERIFICATION_FAILED, pending, exc.message, order=order)
        except AuthenticationRequired as exc:
            return PaymentResult(PaymentOutcome.AUTH_REQUIRED, pending, exc.message, order=order)
        except BookingClientError as exc:
            # No answer means no confirmation; the server still owns the real status.
            return PaymentResult(PaymentOutcome.FAILED, pending, exc.message, retryable=exc.retryable, order=order)

        status = ((data or {}).get("appointment") or {}).get("status")
        if status != "confirmed":
            return PaymentResult(
                PaymentOutcome.VERIFICATION_FAILED, pending, "Payment verification failed", order=order
            )

        appointment.status = status
        appointment.payment_status = "paid"
        return PaymentResult(
            PaymentOutcome.CONFIRMED,
            status,
            "Payment successful! Your appointment is confirmed.",
            order=order,
            already_confirmed=bool(data.get("already_confirmed")),
        )
