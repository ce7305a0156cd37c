from datetime import date, timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.envelope import ok
from app.core.security import ensure_owner_or_admin, get_current_user
from app.models import Appointment, User, make_slot_key
from app.models.enums import AppointmentStatus
from app.schemas.appointment import AppointmentCreateRequest, AvailableSlotsResponse, ReviewRequest, SlotOut
from app.services import booking_rules, catalog
from app.services.appointments import (
    booked_slot_times,
    get_appointment_or_404,
    questions_to_json,
    release_slot,
    to_appointment_out,
)
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

# Error messages shared between API and client
BOOKING_DATE_ERROR = "Selected date is not available for booking"
BOOKING_SLOT_ERROR = "Selected time slot is not available"
BOOKING_CONFLICT_ERROR = "This time slot has just been booked. Please choose another slot"
PACKAGE_ERROR = "Selected package is not available"
PACKAGE_CHANGED_ERROR = "Package details have changed. Please review your selection"
CONSULTATION_TYPE_ERROR = "Unknown consultation type"


@router.get("/appointments/available-slots/{target_date}")
def get_available_slots(target_date: date, db: Session = Depends(get_db)) -> dict:
    if not booking_rules.is_within_booking_window(target_date, booking_rules.get_ist_today()):
        raise HTTPException(status_code=400, detail=BOOKING_DATE_ERROR)

    is_closed = booking_rules.is_closed_day(target_date)
    booked = booked_slot_times(db, target_date)
    slots = booking_rules.slots_for_date(target_date, booking_rules.get_ist_now())
    response = AvailableSlotsResponse(
        date=target_date,
        available_slots=[SlotOut(**slot.as_dict()) for slot in slots if slot.time not in booked],
        booked_slots=sorted(time for time in booked if booking_rules.is_valid_slot(time)),
        is_closed=is_closed,
    )
    message = "Sessions are not available on Sundays" if is_closed else None
    return ok(response, message=message)


@router.post("/appointments", status_code=201)
def create_appointment(
    payload: AppointmentCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    today = booking_rules.get_ist_today()
    if not booking_rules.is_within_booking_window(payload.appointment_date, today) or booking_rules.is_closed_day(
        payload.appointment_date
    ):
        raise HTTPException(status_code=400, detail=BOOKING_DATE_ERROR)

    if not booking_rules.is_valid_slot(payload.appointment_time):
        raise HTTPException(status_code=400, detail=BOOKING_SLOT_ERROR)
    if booking_rules.has_started(payload.appointment_date, payload.appointment_time, booking_rules.get_ist_now()):
        raise HTTPException(status_code=400, detail=BOOKING_SLOT_ERROR)

    if not catalog.get_consultation_type(payload.consultation_type):
        raise HTTPException(status_code=422, detail=CONSULTATION_TYPE_ERROR)

    package = catalog.get_package(payload.package.id)
    if not package:
        raise HTTPException(status_code=422, detail=PACKAGE_ERROR)
    if package.snapshot() != payload.package.model_dump():
        raise HTTPException(status_code=422, detail=PACKAGE_CHANGED_ERROR)

    slot_key = make_slot_key(payload.appointment_date, payload.appointment_time)
    existing = db.query(Appointment).filter(Appointment.slot_key == slot_key).first()
    if existing:
        raise HTTPException(status_code=409, detail=BOOKING_CONFLICT_ERROR)

    appointment = Appointment(
        user_id=user.id,
        appointment_date=payload.appointment_date,
        appointment_time=payload.appointment_time,
        slot_key=slot_key,
        consultation_type=payload.consultation_type,
        package_id=payload.package.id,
        package_name=payload.package.name,
        package_duration=payload.package.duration,
        package_price=payload.package.price,
        amount=payload.package.price,
        currency=settings.currency,
        client_questions=questions_to_json(payload.client_questions),
        status=AppointmentStatus.PENDING.value,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=BOOKING_CONFLICT_ERROR)
    db.refresh(appointment)
    logger.info("Created pending appointment %s for %s", appointment.id, slot_key)

    return ok(
        {"appointment": to_appointment_out(appointment)},
        message="Appointment created. Please complete payment.",
    )


@router.get("/appointments/{appointment_id}")
def get_appointment(
    appointment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = get_appointment_or_404(db, appointment_id)
    ensure_owner_or_admin(appointment.user_id, user)
    return ok({"appointment": to_appointment_out(appointment)})


@router.put("/appointments/{appointment_id}/cancel")
def cancel_appointment(
    appointment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = get_appointment_or_404(db, appointment_id)
    if appointment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to cancel this appointment")
    if appointment.status not in (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value):
        raise HTTPException(status_code=400, detail=f"Cannot cancel a {appointment.status} appointment")

    starts_at = booking_rules.slot_start(appointment.appointment_date, appointment.appointment_time)
    cutoff = starts_at - timedelta(hours=settings.cancellation_cutoff_hours)
    if booking_rules.get_ist_now() > cutoff:
        raise HTTPException(
            status_code=400,
            detail=f"Appointments can only be cancelled up to {settings.cancellation_cutoff_hours} hours before the session",
        )

    release_slot(appointment)
    db.commit()
    db.refresh(appointment)
    logger.info("Appointment %s cancelled by user %s", appointment.id, user.id)
    return ok({"appointment": to_appointment_out(appointment)}, message="Appointment cancelled successfully")


@router.post("/appointments/{appointment_id}/review")
def review_appointment(
    appointment_id: str,
    payload: ReviewRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = get_appointment_or_404(db, appointment_id)
    if appointment.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed to review this appointment")
    if appointment.status != AppointmentStatus.COMPLETED.value:
        raise HTTPException(status_code=400, detail="Only completed appointments can be reviewed")
    if appointment.rating is not None:
        raise HTTPException(status_code=409, detail="This appointment has already been reviewed")

    appointment.rating = payload.rating
    appointment.review = (payload.review or "").strip() or None
    db.commit()
    db.refresh(appointment)
    return ok({"appointment": to_appointment_out(appointment)}, message="Thank you for your feedback!")

