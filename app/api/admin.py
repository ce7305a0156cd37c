from __future__ import annotations

from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.envelope import ok
from app.core.security import require_admin
from app.models import Appointment, User
from app.models.enums import AppointmentStatus, PaymentStatus
from app.schemas.admin import (
    AdminAppointmentItem,
    AdminAppointmentListResponse,
    AdminStatusUpdateRequest,
    DashboardStats,
)
from app.services import booking_rules
from app.services.appointments import get_appointment_or_404, release_slot, to_appointment_out
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

# Confirmation only ever comes from payment verification.
ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING.value: {AppointmentStatus.CANCELLED.value},
    AppointmentStatus.CONFIRMED.value: {AppointmentStatus.COMPLETED.value, AppointmentStatus.CANCELLED.value},
}


def _to_item(appointment: Appointment) -> AdminAppointmentItem:
    user = appointment.user
    return AdminAppointmentItem(
        id=appointment.id,
        user_id=appointment.user_id,
        user_name=user.full_name if user else None,
        user_email=user.email if user else None,
        user_phone=user.phone if user else None,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        consultation_type=appointment.consultation_type,
        package_name=appointment.package_name,
        amount=appointment.amount,
        currency=appointment.currency,
        status=appointment.status,
        payment_status=appointment.payment_status,
        created_at=appointment.created_at,
    )


@router.get("/admin/appointments")
def list_appointments(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status: Optional[AppointmentStatus] = Query(None, description="Filter by status"),
    date_from: Optional[date] = Query(None, description="Start date (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="End date (YYYY-MM-DD, inclusive)"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = db.query(Appointment)
    if status:
        query = query.filter(Appointment.status == status.value)
    if date_from:
        query = query.filter(Appointment.appointment_date >= date_from)
    if date_to:
        query = query.filter(Appointment.appointment_date <= date_to)

    total = query.count()
    appointments = (
        query.options(joinedload(Appointment.user))
        .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    response = AdminAppointmentListResponse(appointments=[_to_item(item) for item in appointments], total=total)
    return ok(response)


@router.get("/admin/appointments/{appointment_id}")
def get_appointment_detail(
    appointment_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    appointment = get_appointment_or_404(db, appointment_id)
    return ok({"appointment": to_appointment_out(appointment), "summary": _to_item(appointment)})


@router.put("/admin/appointments/{appointment_id}/status")
def update_appointment_status(
    appointment_id: str,
    payload: AdminStatusUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    appointment = get_appointment_or_404(db, appointment_id)
    target = payload.status.value
    if target not in ALLOWED_TRANSITIONS.get(appointment.status, set()):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change appointment from {appointment.status} to {target}",
        )

    if target == AppointmentStatus.CANCELLED.value:
        release_slot(appointment)
    else:
        appointment.status = target
    db.commit()
    db.refresh(appointment)
    logger.info("Admin %s moved appointment %s to %s", admin.id, appointment.id, target)
    return ok({"appointment": to_appointment_out(appointment)}, message=f"Appointment {target} successfully")


@router.get("/admin/dashboard-stats")
def dashboard_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    today = booking_rules.get_ist_today()
    month_start = today.replace(day=1)

    counts = dict(db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all())
    paid = db.query(Appointment).filter(Appointment.payment_status == PaymentStatus.PAID.value)
    total_revenue = paid.with_entities(func.coalesce(func.sum(Appointment.amount), 0)).scalar()
    monthly_revenue = (
        paid.filter(Appointment.appointment_date >= month_start)
        .with_entities(func.coalesce(func.sum(Appointment.amount), 0))
        .scalar()
    )
    todays = (
        db.query(func.count(Appointment.id))
        .filter(
            Appointment.appointment_date == today,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        .scalar()
    )

    stats = DashboardStats(
        total_appointments=sum(counts.values()),
        pending_appointments=counts.get(AppointmentStatus.PENDING.value, 0),
        confirmed_appointments=counts.get(AppointmentStatus.CONFIRMED.value, 0),
        completed_appointments=counts.get(AppointmentStatus.COMPLETED.value, 0),
        cancelled_appointments=counts.get(AppointmentStatus.CANCELLED.value, 0),
        todays_appointments=todays or 0,
        monthly_revenue=int(monthly_revenue or 0),
        total_revenue=int(total_revenue or 0),
        total_users=db.query(func.count(User.id)).scalar() or 0,
    )
    return ok(stats)
