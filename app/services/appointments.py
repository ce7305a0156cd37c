from __future__ import annotations

import json
from datetime import date, datetime
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Appointment, User
from app.models.enums import AppointmentStatus, OrderStatus
from app.schemas.appointment import AppointmentOut, PackageSnapshot, QuestionEntry
from app.schemas.auth import PlaceOfBirth, UserOut
from app.services import booking_rules, catalog

ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


def _questions_from_json(raw: str | None) -> List[QuestionEntry]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(data, list):
        return []
    return [
        QuestionEntry(question=item["question"], detail=item["detail"])
        for item in data
        if isinstance(item, dict) and item.get("question") and item.get("detail")
    ]


def questions_to_json(questions: List[QuestionEntry]) -> str:
    return json.dumps([q.model_dump() for q in questions], ensure_ascii=False)


def to_appointment_out(appointment: Appointment) -> AppointmentOut:
    slot = booking_rules.SLOTS_BY_TIME.get(appointment.appointment_time)
    consultation = catalog.get_consultation_type(appointment.consultation_type)
    return AppointmentOut(
        id=appointment.id,
        user_id=appointment.user_id,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        time_label=slot.label if slot else None,
        consultation_type=appointment.consultation_type,
        consultation_type_name=consultation.name if consultation else None,
        package=PackageSnapshot(
            id=appointment.package_id,
            name=appointment.package_name,
            duration=appointment.package_duration,
            price=appointment.package_price,
        ),
        client_questions=_questions_from_json(appointment.client_questions),
        amount=appointment.amount,
        currency=appointment.currency,
        status=appointment.status,
        payment_status=appointment.payment_status,
        video_room_url=appointment.video_room_url,
        rating=appointment.rating,
        review=appointment.review,
        created_at=appointment.created_at,
        confirmed_at=appointment.confirmed_at,
        cancelled_at=appointment.cancelled_at,
    )


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        role=user.role,
        date_of_birth=user.date_of_birth,
        time_of_birth=user.time_of_birth,
        gender=user.gender,
        place_of_birth=PlaceOfBirth(city=user.birth_city, state=user.birth_state, country=user.birth_country),
    )


def get_appointment_or_404(db: Session, appointment_id: str) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


def booked_slot_times(db: Session, target: date) -> set[str]:
    rows = (
        db.query(Appointment.appointment_time)
        .filter(
            Appointment.appointment_date == target,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
        .all()
    )
    return {row[0] for row in rows}


def is_upcoming(appointment: Appointment, today: date) -> bool:
    return appointment.appointment_date >= today and appointment.status in ACTIVE_STATUSES


def release_slot(appointment: Appointment) -> None:
    """Cancel the appointment, free its slot and expire any unpaid orders."""
    appointment.status = AppointmentStatus.CANCELLED.value
    appointment.slot_key = None
    appointment.cancelled_at = datetime.utcnow()
    for order in appointment.payment_orders:
        if order.status == OrderStatus.CREATED.value:
            order.status = OrderStatus.EXPIRED.value
