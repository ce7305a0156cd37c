"""Error taxonomy for the booking client.

Every network boundary classifies its failure into one of these before it
reaches the wizard, so the caller can decide between re-showing a form,
sending the user to log in, returning to an earlier step, or offering a retry.
"""
from __future__ import annotations

from typing import Any, Optional


class BookingClientError(Exception):
    """Base class for classified client-side failures."""

    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ValidationFailed(BookingClientError):
    """Field-level problem; re-shown inline, never retried as-is."""


class DateOutOfRange(ValidationFailed):
    """Date lies outside the bookable horizon; raised before any request is sent."""


class AuthenticationRequired(BookingClientError):
    """The session is missing or expired; the user must log in again."""


class PermissionDenied(BookingClientError):
    """Authenticated, but the role does not allow the action."""


class NotFound(BookingClientError):
    pass


class SlotConflict(BookingClientError):
    """Server refused because a slot or order is already taken."""


class ServiceUnavailable(BookingClientError):
    """Server error, timeout or no response at all."""

    retryable = True


class CheckoutUnavailable(BookingClientError):
    """The hosted checkout could not be loaded."""

    retryable = True


class RequestInFlight(BookingClientError):
    """A request for this step is already outstanding."""


class InvalidTransition(BookingClientError):
    """The wizard cannot perform this action from its current step."""
