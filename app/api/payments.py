from datetime import datetime, timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.envelope import ok
from app.core.security import get_current_user
from app.models import Appointment, PaymentOrder, User
from app.models.enums import AppointmentStatus, OrderStatus, PaymentStatus
from app.schemas.payment import CreateOrderRequest, PaymentOrderOut, VerifyPaymentRequest
from app.services import payment_gateway
from app.services.appointments import get_appointment_or_404, to_appointment_out
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

ALREADY_PAID_ERROR = "This appointment has already been paid"
CANCELLED_ERROR = "This appointment has been cancelled"
VERIFICATION_FAILED = "Payment verification failed"
GATEWAY_UNAVAILABLE = "Payment gateway is currently unavailable"


def _owned_appointment(db: Session, appointment_id: str, user: User) -> Appointment:
    appointment = get_appointment_or_404(db, appointment_id)
    if appointment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to pay for this appointment")
    return appointment


def _active_order(db: Session, appointment: Appointment) -> PaymentOrder | None:
    """Return the single unexpired order for the appointment, expiring stale ones on the way."""
    now = datetime.utcnow()
    active = None
    for order in appointment.payment_orders:
        if order.status != OrderStatus.CREATED.value:
            continue
        if order.expires_at <= now:
            order.status = OrderStatus.EXPIRED.value
            continue
        active = order
    db.flush()
    return active


def _order_out(order: PaymentOrder, key_id: str) -> PaymentOrderOut:
    return PaymentOrderOut(
        order_id=order.gateway_order_id,
        appointment_id=order.appointment_id,
        amount=order.amount,
        currency=order.currency,
        key_id=key_id,
    )


@router.post("/payment/create-order")
def create_order(
    payload: CreateOrderRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = _owned_appointment(db, payload.appointment_id, user)
    if appointment.payment_status == PaymentStatus.PAID.value:
        raise HTTPException(status_code=409, detail=ALREADY_PAID_ERROR)
    if appointment.status == AppointmentStatus.CANCELLED.value:
        raise HTTPException(status_code=409, detail=CANCELLED_ERROR)

    try:
        creds = payment_gateway.get_credentials()
    except payment_gateway.GatewayNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=GATEWAY_UNAVAILABLE) from exc

    existing = _active_order(db, appointment)
    if existing:
        db.commit()
        return ok(_order_out(existing, creds.key_id))

    amount_minor = payment_gateway.to_minor_units(appointment.amount)
    try:
        gateway_order_id = payment_gateway.create_gateway_order(
            amount_minor,
            appointment.currency,
            receipt=appointment.id,
            notes={"appointment_id": appointment.id, "consultation_type": appointment.consultation_type},
        )
    except payment_gateway.GatewayError as exc:
        db.rollback()
        raise HTTPException(status_code=503, detail=GATEWAY_UNAVAILABLE) from exc

    now = datetime.utcnow()
    order = PaymentOrder(
        appointment_id=appointment.id,
        gateway_order_id=gateway_order_id,
        amount=amount_minor,
        currency=appointment.currency,
        status=OrderStatus.CREATED.value,
        created_at=now,
        expires_at=now + timedelta(minutes=settings.payment_order_ttl_minutes),
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("Minted payment order %s for appointment %s", order.gateway_order_id, appointment.id)
    return ok(_order_out(order, creds.key_id))


def _reject(db: Session, order: PaymentOrder | None, reason: str) -> None:
    if order is not None and order.status == OrderStatus.CREATED.value:
        order.status = OrderStatus.FAILED.value
        order.failure_reason = reason
        db.commit()
    logger.warning("Payment verification rejected: %s", reason)
    raise HTTPException(status_code=400, detail=VERIFICATION_FAILED)


@router.post("/payment/verify")
def verify_payment(
    payload: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = _owned_appointment(db, payload.appointment_id, user)
    order = (
        db.query(PaymentOrder)
        .filter(
            PaymentOrder.gateway_order_id == payload.razorpay_order_id,
            PaymentOrder.appointment_id == appointment.id,
        )
        .first()
    )
    if order is None:
        _reject(db, None, "unknown order")

    try:
        signature_ok = payment_gateway.verify_signature(
            payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
        )
    except payment_gateway.GatewayNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=GATEWAY_UNAVAILABLE) from exc

    if order.status == OrderStatus.PAID.value:
        # Replays of the accepted proof are a success terminal state without new side effects.
        if signature_ok and order.gateway_payment_id == payload.razorpay_payment_id:
            return ok(
                {"appointment": to_appointment_out(appointment), "already_confirmed": True},
                message="Payment already verified",
            )
        raise HTTPException(status_code=409, detail=ALREADY_PAID_ERROR)

    if order.status != OrderStatus.CREATED.value:
        raise HTTPException(status_code=409, detail="This payment order is no longer active")
    if not signature_ok:
        _reject(db, order, "signature mismatch")
    if order.amount != payment_gateway.to_minor_units(appointment.amount):
        _reject(db, order, "amount mismatch")
    if order.expires_at <= datetime.utcnow():
        _reject(db, order, "order expired")
    if appointment.status != AppointmentStatus.PENDING.value:
        _reject(db, order, f"appointment is {appointment.status}")

    now = datetime.utcnow()
    order.status = OrderStatus.PAID.value
    order.gateway_payment_id = payload.razorpay_payment_id
    order.gateway_signature = payload.razorpay_signature
    order.paid_at = now
    appointment.status = AppointmentStatus.CONFIRMED.value
    appointment.payment_status = PaymentStatus.PAID.value
    appointment.confirmed_at = now
    db.commit()
    db.refresh(appointment)
    logger.info("Appointment %s confirmed by payment %s", appointment.id, order.gateway_payment_id)

    return ok(
        {"appointment": to_appointment_out(appointment), "already_confirmed": False},
        message="Payment successful! Your appointment is confirmed.",
    )
