from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import AppointmentStatus, PaymentStatus

MAX_QUESTIONS = 5


class SlotOut(BaseModel):
    time: str
    label: str
    duration: int


class AvailableSlotsResponse(BaseModel):
    date: date
    available_slots: List[SlotOut]
    booked_slots: List[str]
    is_closed: bool = False


class QuestionEntry(BaseModel):
    question: str
    detail: str

    @field_validator("question", "detail")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PackageSnapshot(BaseModel):
    id: str
    name: str
    duration: int = Field(gt=0)
    price: int = Field(ge=0)


class AppointmentCreateRequest(BaseModel):
    appointment_date: date
    appointment_time: str
    consultation_type: str
    package: PackageSnapshot
    client_questions: List[QuestionEntry] = Field(min_length=1, max_length=MAX_QUESTIONS)


class AppointmentOut(BaseModel):
    id: str
    user_id: str
    appointment_date: date
    appointment_time: str
    time_label: Optional[str] = None
    consultation_type: str
    consultation_type_name: Optional[str] = None
    package: PackageSnapshot
    client_questions: List[QuestionEntry]
    amount: int
    currency: str
    status: AppointmentStatus
    payment_status: PaymentStatus
    video_room_url: Optional[str] = None
    rating: Optional[int] = None
    review: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)
