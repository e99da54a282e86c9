"""Appointment status state machine.

``SCHEDULED`` is the only initial status. ``CANCELLED`` and ``COMPLETED`` are
terminal: any event against them raises ``InvalidStateTransition``. Persisted
transitions go through a compare-and-set on the stored status, so of two
racing callers exactly one wins.
"""

import enum
from datetime import datetime, timedelta

from telecare.core.errors import InvalidRequest, InvalidStateTransition
from telecare.models.appointment import Appointment, AppointmentStatus
from telecare.scheduling.repository import AppointmentRepository


SLOT_DURATION = timedelta(minutes=60)
LEAD_TIME = timedelta(hours=1)

TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})


class AppointmentEvent(str, enum.Enum):
    CANCEL = "cancel"
    COMPLETE = "complete"


TRANSITIONS = {
    (AppointmentStatus.SCHEDULED, AppointmentEvent.CANCEL): AppointmentStatus.CANCELLED,
    (AppointmentStatus.SCHEDULED, AppointmentEvent.COMPLETE): AppointmentStatus.COMPLETED,
}


def slot_end(start_time: datetime) -> datetime:
    return start_time + SLOT_DURATION


def check_lead_time(start_time: datetime, now: datetime) -> None:
    if start_time <= now + LEAD_TIME:
        raise InvalidRequest('Appointments must be booked at least 1 hour in advance.')


def create_appointment(
    doctor_id: int,
    patient_id: int,
    start_time: datetime,
    meeting_link: str,
    purpose_of_consultation: str | None = None,
    initial_symptoms: str | None = None,
) -> Appointment:
    return Appointment(
        doctor_id=doctor_id,
        patient_id=patient_id,
        start_time=start_time,
        end_time=slot_end(start_time),
        status=AppointmentStatus.SCHEDULED.value,
        meeting_link=meeting_link,
        purpose_of_consultation=purpose_of_consultation,
        initial_symptoms=initial_symptoms,
    )


def next_status(current: str | AppointmentStatus, event: AppointmentEvent) -> AppointmentStatus:
    current = AppointmentStatus(current)
    if current in TERMINAL_STATUSES:
        raise InvalidStateTransition(
            f'Cannot {event.value} an appointment that is already {current.value.lower()}.'
        )

    target = TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidStateTransition(
            f'Cannot {event.value} an appointment that is {current.value.lower()}.'
        )
    return target


def apply_transition(
    repository: AppointmentRepository,
    appointment: Appointment,
    event: AppointmentEvent,
    now: datetime,
) -> AppointmentStatus:
    """Move a loaded appointment along ``event`` in the database.

    The caller owns the transaction and commits it.
    """
    current = AppointmentStatus(appointment.status)
    target = next_status(current, event)
    end_time = now if event is AppointmentEvent.COMPLETE else None

    if not repository.compare_and_set_status(appointment.id, current, target, end_time=end_time):
        # Someone else moved it first; it is terminal now.
        raise InvalidStateTransition(
            f'Cannot {event.value} this appointment; its status changed concurrently.'
        )
    return target
