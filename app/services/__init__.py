from . import booking_rules, catalog, payment_gateway, video_rooms, appointments

__all__ = [
    "appointments",
    "booking_rules",
    "catalog",
    "payment_gateway",
    "video_rooms",
]
