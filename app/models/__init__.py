from database import Base
from app.models.base import GUID_LENGTH, GUID_TYPE, default_uuid, utcnow
from app.models.enums import AppointmentStatus, CallStatus, OrderStatus, PaymentStatus, UserRole
from app.models.user import User
from app.models.appointment import Appointment, PaymentOrder, make_slot_key

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
