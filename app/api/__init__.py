# FastAPI routers grouped under app.api.*
from . import (
    admin,
    appointments,
    auth,
    catalog,
    payments,
    users,
    video_calls,
)

__all__ = [
    "admin",
    "appointments",
    "auth",
    "catalog",
    "payments",
    "users",
    "video_calls",
]
