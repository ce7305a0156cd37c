from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from app.models.base import GUID_TYPE, GuidPrimaryKeyMixin, TimestampMixin, utcnow
from app.models.enums import AppointmentStatus, OrderStatus, PaymentStatus


def make_slot_key(appointment_date, appointment_time: str) -> str:
    return f"{appointment_date.isoformat()} {appointment_time}"


class Appointment(GuidPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "appointments"

    user_id = Column(GUID_TYPE, ForeignKey("users.id"), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(String(5), nullable=False)
    # Set while the appointment holds its slot; cleared on cancellation so the slot frees up.
    slot_key = Column(String(20), nullable=True, unique=True)
    consultation_type = Column(String(50), nullable=False)
    package_id = Column(String(50), nullable=False)
    package_name = Column(String(255), nullable=False)
    package_duration = Column(Integer, nullable=False)
    package_price = Column(Integer, nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    client_questions = Column(Text, nullable=False, default="[]")
    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    video_room_name = Column(String(255), nullable=True)
    video_room_url = Column(String(512), nullable=True)
    call_started_at = Column(DateTime, nullable=True)
    call_ended_at = Column(DateTime, nullable=True)
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="appointments")
    payment_orders = relationship(
        "PaymentOrder",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="PaymentOrder.created_at",
    )


class PaymentOrder(GuidPrimaryKeyMixin, Base):
    __tablename__ = "payment_orders"

    appointment_id = Column(GUID_TYPE, ForeignKey("appointments.id"), nullable=False, index=True)
    gateway_order_id = Column(String(100), nullable=False, unique=True)
    # Minor currency units (paise)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default=OrderStatus.CREATED.value)
    gateway_payment_id = Column(String(100), nullable=True)
    gateway_signature = Column(String(255), nullable=True)
    failure_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    appointment = relationship("Appointment", back_populates="payment_orders")


__all__ = ["Appointment", "PaymentOrder", "make_slot_key"]
