"""Errors raised by the scheduling engine.

Every business failure is a ``SchedulingError`` subclass carrying the HTTP
status the route layer answers with. None of them are retried.
"""


class SchedulingError(Exception):
    """Base class for user-actionable scheduling failures."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(SchedulingError):
    """Raised when no caller identity can be resolved."""

    status_code = 401


class ProfileRequired(SchedulingError):
    """Raised when the caller lacks the doctor or patient profile an action needs."""

    status_code = 403


class NotFound(SchedulingError):
    """Raised when a referenced doctor, patient, appointment or note does not exist."""

    status_code = 404


class InvalidRequest(SchedulingError):
    """Raised when a time window is malformed or violates the booking lead time."""

    status_code = 400


class Conflict(SchedulingError):
    """Raised when a booking collides with the doctor's schedule or notes already exist."""

    status_code = 409


class Forbidden(SchedulingError):
    """Raised when the caller is not allowed to act on the appointment."""

    status_code = 403


class InvalidStateTransition(SchedulingError):
    """Raised when a transition is attempted from a terminal status."""

    status_code = 409


class ServiceUnavailable(SchedulingError):
    """Raised when the database keeps failing after bounded retries."""

    status_code = 503


__all__ = [
    "SchedulingError",
    "Unauthenticated",
    "ProfileRequired",
    "NotFound",
    "InvalidRequest",
    "Conflict",
    "Forbidden",
    "InvalidStateTransition",
    "ServiceUnavailable",
]
