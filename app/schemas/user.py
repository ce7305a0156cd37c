from typing import List, Optional

from pydantic import BaseModel

from app.schemas.appointment import AppointmentOut


class UserDashboardStats(BaseModel):
    total_appointments: int
    upcoming_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    total_spent: int


class UserDashboardResponse(BaseModel):
    stats: UserDashboardStats
    recent_appointments: List[AppointmentOut]
    next_appointment: Optional[AppointmentOut] = None
