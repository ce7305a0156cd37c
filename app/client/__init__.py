"""Booking client: slot lookup, wizard, draft submission and payment handshake."""

from app.client.api import ApiClient
from app.client.session import SessionContext
from app.client.slots import SlotLookup, SlotResolver
from app.client.submission import AppointmentDraft, DraftSubmitter, PendingAppointment
from app.client.payment import PaymentHandshake, PaymentOutcome, PaymentResult
from app.client.wizard import BookingWizard, WizardStep
from app.client.video import VideoRoomClient

__all__ = [
    "ApiClient",
    "AppointmentDraft",
    "BookingWizard",
    "DraftSubmitter",
    "PaymentHandshake",
    "PaymentOutcome",
    "PaymentResult",
    "PendingAppointment",
    "SessionContext",
    "SlotLookup",
    "SlotResolver",
    "VideoRoomClient",
    "WizardStep",
]
