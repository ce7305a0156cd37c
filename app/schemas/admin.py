from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import AppointmentStatus, PaymentStatus


class AdminAppointmentItem(BaseModel):
    id: str
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None
    appointment_date: date
    appointment_time: str
    consultation_type: str
    package_name: str
    amount: int
    currency: str
    status: AppointmentStatus
    payment_status: PaymentStatus
    created_at: datetime


class AdminAppointmentListResponse(BaseModel):
    appointments: list[AdminAppointmentItem]
    total: int


class AdminStatusUpdateRequest(BaseModel):
    status: AppointmentStatus = Field(description="completed/cancelled")


class DashboardStats(BaseModel):
    total_appointments: int
    pending_appointments: int
    confirmed_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    todays_appointments: int
    monthly_revenue: int
    total_revenue: int
    total_users: int
