"""
Compatibility shim for top-level `models` imports.
Domain models live in `app.models.*`.
"""
from app.models import (  # noqa: F401,F403
    GUID_LENGTH,
    GUID_TYPE,
    Appointment,
    AppointmentStatus,
    CallStatus,
    OrderStatus,
    PaymentOrder,
    PaymentStatus,
    User,
    UserRole,
    default_uuid,
    make_slot_key,
    utcnow,
)
from database import Base  # noqa: F401

__all__ = [
    "Base",
    "GUID_TYPE",
    "GUID_LENGTH",
    "default_uuid",
    "utcnow",
    "AppointmentStatus",
    "CallStatus",
    "OrderStatus",
    "PaymentStatus",
    "UserRole",
    "User",
    "Appointment",
    "PaymentOrder",
    "make_slot_key",
]
