from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from app.client.errors import ValidationFailed
from app.services import catalog

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 5


@dataclass
class QuestionEntry:
    question: str = ""
    detail: str = ""

    def is_complete(self) -> bool:
        return bool(self.question.strip()) and bool(self.detail.strip())


@dataclass
class AppointmentDraft:
    """Client-held booking selection; discarded once submitted."""

    date: Optional[date] = None
    time_slot: Optional[str] = None
    consultation_type: Optional[str] = None
    package_id: Optional[str] = None
    questions: list[QuestionEntry] = field(default_factory=lambda: [QuestionEntry()])

    def add_question(self) -> bool:
        if len(self.questions) >= MAX_QUESTIONS:
            return False
        self.questions.append(QuestionEntry())
        return True

    def remove_question(self, index: int) -> bool:
        if len(self.questions) <= 1:
            return False
        del self.questions[index]
        return True

    def update_question(self, index: int, question: Optional[str] = None, detail: Optional[str] = None) -> None:
        entry = self.questions[index]
        if question is not None:
            entry.question = question
        if detail is not None:
            entry.detail = detail


@dataclass
class PendingAppointment:
    """Read-mostly projection of a server-created appointment awaiting payment."""

    id: str
    date: date
    time_slot: str
    consultation_type: str
    consultation_type_name: Optional[str]
    package: dict[str, Any]
    questions: list[dict[str, str]]
    amount: int
    currency: str
    status: str
    payment_status: str

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "PendingAppointment":
        return cls(
            id=data["id"],
            date=date.fromisoformat(data["appointment_date"]),
            time_slot=data["appointment_time"],
            consultation_type=data["consultation_type"],
            consultation_type_name=data.get("consultation_type_name"),
            package=data["package"],
            questions=data.get("client_questions", []),
            amount=data["amount"],
            currency=data["currency"],
            status=data["status"],
            payment_status=data["payment_status"],
        )

    @property
    def description(self) -> str:
        return f"{self.consultation_type_name or self.consultation_type} - {self.package.get('name', '')}"


def build_booking_request(draft: AppointmentDraft) -> dict[str, Any]:
    """Normalize a draft into the create-appointment body, embedding the package by value."""
    package = catalog.get_package(draft.package_id or "")
    if package is None:
        raise ValidationFailed("Please choose a package")
    if draft.date is None or not draft.time_slot:
        raise ValidationFailed("Please select a date and time slot")
    if not draft.consultation_type:
        raise ValidationFailed("Please choose a consultation type")
    if not draft.questions or not all(q.is_complete() for q in draft.questions):
        raise ValidationFailed("Please complete all questions")

    return {
        "appointment_date": draft.date.isoformat(),
        "appointment_time": draft.time_slot,
        "consultation_type": draft.consultation_type,
        "package": package.snapshot(),
        "client_questions": [
            {"question": q.question.strip(), "detail": q.detail.strip()} for q in draft.questions
        ],
    }


class DraftSubmitter:
    def __init__(self, api) -> None:
        self.api = api

    def submit(self, draft: AppointmentDraft) -> PendingAppointment:
        data = self.api.post("/appointments", json=build_booking_request(draft))
        pending = PendingAppointment.from_payload(data["appointment"])
        logger.info("Draft submitted; pending appointment %s (amount %s)", pending.id, pending.amount)
        return pending
