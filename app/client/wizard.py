"""Booking wizard state machine.

Steps are an explicit enum with forward/backward transition tables; only
``SUMMARY -> SUBMITTING`` creates server-side state. Each network boundary
classifies its failure before it lands on the wizard:

* validation  -> stay on SUMMARY with an inline error
* auth        -> draft discarded, ``navigation_target`` set to the login route
* conflict    -> back to DATE_TIME with the slot cleared
* transient   -> stay on SUMMARY with a retryable notice, draft preserved
"""
from __future__ import annotations

import logging
import threading
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from app.client.checkout import Checkout
from app.client.errors import (
    AuthenticationRequired,
    BookingClientError,
    DateOutOfRange,
    InvalidTransition,
    RequestInFlight,
    SlotConflict,
    ValidationFailed,
)
from app.client.payment import PaymentHandshake, PaymentOutcome, PaymentResult
from app.client.session import LOGIN_ROUTE, SessionContext
from app.client.slots import SlotLookup, SlotResolver
from app.client.submission import AppointmentDraft, DraftSubmitter, PendingAppointment
from app.services import catalog

logger = logging.getLogger(__name__)

DASHBOARD_ROUTE = "/dashboard"
SLOT_TAKEN_MESSAGE = "This time slot was just booked. Please choose another slot."
VERIFICATION_FAILED_MESSAGE = "Payment verification failed. Your appointment is still pending; you can try paying again."


class WizardStep(str, Enum):
    DATE_TIME = "date_time"
    PACKAGE = "package"
    QUESTIONS = "questions"
    SUMMARY = "summary"
    SUBMITTING = "submitting"
    AWAITING_PAYMENT = "awaiting_payment"
    CONFIRMED = "confirmed"


NEXT_STEP = {
    WizardStep.DATE_TIME: WizardStep.PACKAGE,
    WizardStep.PACKAGE: WizardStep.QUESTIONS,
    WizardStep.QUESTIONS: WizardStep.SUMMARY,
}
PREVIOUS_STEP = {value: key for key, value in NEXT_STEP.items()}


def missing_date_time(draft: AppointmentDraft) -> list[str]:
    missing = []
    if draft.date is None:
        missing.append("date")
    if not draft.time_slot:
        missing.append("time_slot")
    return missing


def missing_package(draft: AppointmentDraft) -> list[str]:
    missing = []
    if not draft.consultation_type:
        missing.append("consultation_type")
    if not draft.package_id:
        missing.append("package")
    return missing


def missing_questions(draft: AppointmentDraft) -> list[str]:
    if not draft.questions:
        return ["questions"]
    return [f"questions[{index}]" for index, entry in enumerate(draft.questions) if not entry.is_complete()]


STEP_VALIDATORS: dict[WizardStep, Callable[[AppointmentDraft], list[str]]] = {
    WizardStep.DATE_TIME: missing_date_time,
    WizardStep.PACKAGE: missing_package,
    WizardStep.QUESTIONS: missing_questions,
}

STEP_MESSAGES = {
    WizardStep.DATE_TIME: "Please select a date and time slot",
    WizardStep.PACKAGE: "Please choose a consultation type and package",
    WizardStep.QUESTIONS: "Please fill in all questions and details",
}


class BookingWizard:
    def __init__(
        self,
        api,
        session: Optional[SessionContext] = None,
        resolver: Optional[SlotResolver] = None,
        submitter: Optional[DraftSubmitter] = None,
    ) -> None:
        self.api = api
        self.session = session
        self.resolver = resolver or SlotResolver(api)
        self.submitter = submitter or DraftSubmitter(api)
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        self.step = WizardStep.DATE_TIME
        self.draft = AppointmentDraft()
        self.lookup: Optional[SlotLookup] = None
        self.pending: Optional[PendingAppointment] = None
        self.payment_result: Optional[PaymentResult] = None
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.navigation_target: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _require_editable(self) -> None:
        if self.step not in STEP_VALIDATORS and self.step != WizardStep.SUMMARY:
            raise InvalidTransition(f"The booking can no longer be changed ({self.step.value})")

    # selection

    def select_date(self, target: date) -> SlotLookup:
        self._require_editable()
        try:
            lookup = self.resolver.get_available_slots(target)
        except DateOutOfRange as exc:
            self.error = exc.message
            raise
        self.draft.date = target
        self.draft.time_slot = None
        self.lookup = lookup
        self.error = None
        self.notice = lookup.message if lookup.service_unavailable else None
        return lookup

    def select_slot(self, slot_time: str) -> None:
        self._require_editable()
        if self.lookup is None or self.lookup.date != self.draft.date or self.lookup.find(slot_time) is None:
            raise ValidationFailed(f"{slot_time} is not an available slot for the selected date")
        self.draft.time_slot = slot_time
        self.error = None

    def select_package(self, package_id: str) -> catalog.Package:
        self._require_editable()
        package = catalog.get_package(package_id)
        if package is None:
            raise ValidationFailed(f"Unknown package: {package_id}")
        self.draft.package_id = package.id
        return package

    def select_consultation_type(self, type_id: str) -> catalog.ConsultationType:
        self._require_editable()
        consultation_type = catalog.get_consultation_type(type_id)
        if consultation_type is None:
            raise ValidationFailed(f"Unknown consultation type: {type_id}")
        self.draft.consultation_type = consultation_type.id
        return consultation_type

    # navigation

    def missing_fields(self, step: Optional[WizardStep] = None) -> list[str]:
        validator = STEP_VALIDATORS.get(step or self.step)
        return validator(self.draft) if validator else []

    def can_advance(self) -> bool:
        return self.step in NEXT_STEP and not self.missing_fields()

    def next(self) -> WizardStep:
        if self.step not in NEXT_STEP:
            raise InvalidTransition(f"Cannot advance from {self.step.value}")
        missing = self.missing_fields()
        if missing:
            self.error = STEP_MESSAGES[self.step]
            raise ValidationFailed(self.error, payload={"missing": missing})
        self.error = None
        self.step = NEXT_STEP[self.step]
        return self.step

    def back(self) -> WizardStep:
        if self.step not in PREVIOUS_STEP:
            raise InvalidTransition(f"Cannot go back from {self.step.value}")
        self.error = None
        self.step = PREVIOUS_STEP[self.step]
        return self.step

    def summary(self) -> dict[str, Any]:
        package = catalog.get_package(self.draft.package_id or "")
        consultation_type = catalog.get_consultation_type(self.draft.consultation_type or "")
        return {
            "date": self.draft.date.isoformat() if self.draft.date else None,
            "time_slot": self.draft.time_slot,
            "consultation_type": consultation_type.name if consultation_type else None,
            "package": package.snapshot() if package else None,
            "total": package.price if package else None,
            "questions": [{"question": q.question, "detail": q.detail} for q in self.draft.questions],
        }

    # commit

    def submit(self) -> Optional[PendingAppointment]:
        if not self._lock.acquire(blocking=False):
            raise RequestInFlight("Booking is already being submitted")
        try:
            return self._submit()
        finally:
            self._lock.release()

    def _submit(self) -> Optional[PendingAppointment]:
        if self.step != WizardStep.SUMMARY:
            raise InvalidTransition(f"Cannot submit from {self.step.value}")
        for step, validator in STEP_VALIDATORS.items():
            missing = validator(self.draft)
            if missing:
                self.error = STEP_MESSAGES[step]
                raise ValidationFailed(self.error, payload={"missing": missing})

        self.step = WizardStep.SUBMITTING
        self.error, self.notice = None, None
        try:
            pending = self.submitter.submit(self.draft)
        except AuthenticationRequired:
            logger.info("Session expired during submission; discarding draft")
            if self.session is not None:
                self.session.logout()
            self.reset()
            self.navigation_target = LOGIN_ROUTE
            return None
        except SlotConflict as exc:
            logger.info("Slot %s %s taken during submission", self.draft.date, self.draft.time_slot)
            self.step = WizardStep.DATE_TIME
            self.draft.time_slot = None
            self.error = exc.message or SLOT_TAKEN_MESSAGE
            self._refresh_slots()
            return None
        except ValidationFailed as exc:
            self.step = WizardStep.SUMMARY
            self.error = exc.message
            return None
        except BookingClientError as exc:
            self.step = WizardStep.SUMMARY
            if exc.retryable:
                self.notice = f"{exc.message} Your booking details are kept; please try again."
            else:
                self.error = exc.message
            return None

        self.pending = pending
        self.step = WizardStep.AWAITING_PAYMENT
        return pending

    def _refresh_slots(self) -> None:
        if self.draft.date is None:
            return
        try:
            self.lookup = self.resolver.get_available_slots(self.draft.date)
        except DateOutOfRange:
            self.lookup = None

    def pay(self, checkout: Checkout) -> PaymentResult:
        if self.step != WizardStep.AWAITING_PAYMENT or self.pending is None:
            raise InvalidTransition(f"Cannot pay from {self.step.value}")
        if not self._lock.acquire(blocking=False):
            raise RequestInFlight("Payment is already in progress")
        try:
            result = PaymentHandshake(self.api, checkout, self.session).pay(self.pending)
        finally:
            self._lock.release()

        self.payment_result = result
        self.error, self.notice = None, None
        if result.outcome == PaymentOutcome.CONFIRMED:
            self.step = WizardStep.CONFIRMED
            self.notice = result.message
            self.navigation_target = DASHBOARD_ROUTE
        elif result.outcome == PaymentOutcome.VERIFICATION_FAILED:
            self.error = VERIFICATION_FAILED_MESSAGE
        elif result.outcome == PaymentOutcome.AUTH_REQUIRED:
            if self.session is not None:
                self.session.logout()
            self.navigation_target = LOGIN_ROUTE
        elif result.outcome != PaymentOutcome.DISMISSED:
            if result.retryable:
                self.notice = result.message
            else:
                self.error = result.message
        return result
