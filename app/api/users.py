from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.envelope import ok
from app.core.security import get_current_user
from app.models import Appointment, User
from app.models.enums import AppointmentStatus, PaymentStatus
from app.schemas.auth import ProfileUpdateRequest
from app.schemas.user import UserDashboardResponse, UserDashboardStats
from app.services import booking_rules
from app.services.appointments import is_upcoming, to_appointment_out, to_user_out
from database import get_db

router = APIRouter()

RECENT_LIMIT = 5


def _user_appointments(db: Session, user: User) -> list[Appointment]:
    return (
        db.query(Appointment)
        .filter(Appointment.user_id == user.id)
        .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        .all()
    )


@router.get("/user/appointments")
def list_my_appointments(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    appointments = _user_appointments(db, user)
    return ok({"appointments": [to_appointment_out(item) for item in appointments]})


@router.get("/user/profile")
def get_profile(user: User = Depends(get_current_user)) -> dict:
    return ok({"user": to_user_out(user)})


@router.put("/user/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    place = updates.pop("place_of_birth", None)
    for field, value in updates.items():
        if field in {"first_name", "last_name"}:
            if value is None:
                continue
            value = value.strip()
        setattr(user, field, value)
    if place is not None:
        user.birth_city = place.get("city")
        user.birth_state = place.get("state")
        user.birth_country = place.get("country")

    db.commit()
    db.refresh(user)
    return ok({"user": to_user_out(user)}, message="Profile updated successfully")


@router.get("/user/dashboard")
def get_dashboard(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> dict:
    """Summary cards plus the next upcoming session for the signed-in user."""
    appointments = _user_appointments(db, user)
    today = booking_rules.get_ist_today()

    upcoming = sorted(
        (item for item in appointments if is_upcoming(item, today)),
        key=lambda item: (item.appointment_date, item.appointment_time),
    )
    stats = UserDashboardStats(
        total_appointments=len(appointments),
        upcoming_appointments=len(upcoming),
        completed_appointments=sum(1 for item in appointments if item.status == AppointmentStatus.COMPLETED.value),
        cancelled_appointments=sum(1 for item in appointments if item.status == AppointmentStatus.CANCELLED.value),
        total_spent=sum(item.amount for item in appointments if item.payment_status == PaymentStatus.PAID.value),
    )
    response = UserDashboardResponse(
        stats=stats,
        recent_appointments=[to_appointment_out(item) for item in appointments[:RECENT_LIMIT]],
        next_appointment=to_appointment_out(upcoming[0]) if upcoming else None,
    )
    return ok(response)
