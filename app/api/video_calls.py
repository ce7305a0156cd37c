from datetime import datetime, timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.envelope import ok
from app.core.security import ensure_owner_or_admin, get_current_user
from app.models import Appointment, User
from app.models.enums import AppointmentStatus, CallStatus, UserRole
from app.schemas.video import CallStatusRequest, MeetingTokenOut, VideoRoomOut
from app.services import booking_rules, video_rooms
from app.services.appointments import get_appointment_or_404
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

VIDEO_UNAVAILABLE = "Video service is currently unavailable"
ROOM_GRACE_HOURS = 2


def _confirmed_appointment(db: Session, appointment_id: str, user: User) -> Appointment:
    appointment = get_appointment_or_404(db, appointment_id)
    ensure_owner_or_admin(appointment.user_id, user)
    if appointment.status != AppointmentStatus.CONFIRMED.value:
        raise HTTPException(status_code=409, detail="Video consultations are only available for confirmed appointments")
    return appointment


def _room_expiry(appointment: Appointment) -> int:
    starts_at = booking_rules.slot_start(appointment.appointment_date, appointment.appointment_time)
    ends_at = starts_at + timedelta(minutes=appointment.package_duration, hours=ROOM_GRACE_HOURS)
    # Slot times are IST wall-clock; the room API expects a unix timestamp.
    return int((ends_at - booking_rules.IST_OFFSET - datetime(1970, 1, 1)).total_seconds())


def _ensure_room(db: Session, appointment: Appointment) -> VideoRoomOut:
    if appointment.video_room_name and appointment.video_room_url:
        return VideoRoomOut(room_name=appointment.video_room_name, room_url=appointment.video_room_url)
    try:
        room = video_rooms.create_room(appointment.id, _room_expiry(appointment))
    except (video_rooms.VideoNotConfiguredError, video_rooms.VideoServiceError) as exc:
        raise HTTPException(status_code=503, detail=VIDEO_UNAVAILABLE) from exc
    appointment.video_room_name = room.name
    appointment.video_room_url = room.url
    db.commit()
    logger.info("Created video room %s for appointment %s", room.name, appointment.id)
    return VideoRoomOut(room_name=room.name, room_url=room.url)


@router.post("/video-call/create-room/{appointment_id}")
def create_room(appointment_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    appointment = _confirmed_appointment(db, appointment_id, user)
    return ok(_ensure_room(db, appointment))


@router.get("/video-call/meeting-token/{appointment_id}")
def meeting_token(appointment_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    appointment = _confirmed_appointment(db, appointment_id, user)
    room = _ensure_room(db, appointment)
    is_owner = user.role == UserRole.ADMIN.value
    try:
        token = video_rooms.create_meeting_token(room.room_name, user.full_name or user.email, is_owner)
    except (video_rooms.VideoNotConfiguredError, video_rooms.VideoServiceError) as exc:
        raise HTTPException(status_code=503, detail=VIDEO_UNAVAILABLE) from exc
    return ok(MeetingTokenOut(token=token, room_name=room.room_name, room_url=room.room_url, is_owner=is_owner))


@router.put("/video-call/call-status/{appointment_id}")
def update_call_status(
    appointment_id: str,
    payload: CallStatusRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    appointment = _confirmed_appointment(db, appointment_id, user)
    now = datetime.utcnow()
    if payload.status == CallStatus.STARTED:
        appointment.call_started_at = appointment.call_started_at or now
    else:
        appointment.call_ended_at = now
    db.commit()
    logger.info("Call %s for appointment %s by %s", payload.status.value, appointment.id, user.id)
    return ok(
        {
            "appointment_id": appointment.id,
            "call_started_at": appointment.call_started_at,
            "call_ended_at": appointment.call_ended_at,
        }
    )
