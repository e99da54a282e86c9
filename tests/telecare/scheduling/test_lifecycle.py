from datetime import datetime
from types import SimpleNamespace

import pytest

from telecare.core.errors import InvalidRequest, InvalidStateTransition
from telecare.models.appointment import AppointmentStatus
from telecare.scheduling import lifecycle
from telecare.scheduling.lifecycle import AppointmentEvent


class _RecordingRepository:
    def __init__(self, succeeds: bool = True):
        self.succeeds = succeeds
        self.calls = []

    def compare_and_set_status(self, appointment_id, expected, target, end_time=None):
        self.calls.append((appointment_id, expected, target, end_time))
        return self.succeeds


def test_create_appointment_starts_scheduled_with_a_sixty_minute_slot() -> None:
    appointment = lifecycle.create_appointment(
        doctor_id=10,
        patient_id=30,
        start_time=datetime(2026, 1, 5, 10, 0),
        meeting_link='https://meet.example.test/room',
        purpose_of_consultation='Follow-up',
    )

    assert appointment.status == 'SCHEDULED'
    assert appointment.end_time == datetime(2026, 1, 5, 11, 0)
    assert appointment.purpose_of_consultation == 'Follow-up'
    assert appointment.initial_symptoms is None


@pytest.mark.parametrize(
    ('event', 'expected'),
    [
        (AppointmentEvent.CANCEL, AppointmentStatus.CANCELLED),
        (AppointmentEvent.COMPLETE, AppointmentStatus.COMPLETED),
    ],
)
def test_scheduled_appointment_moves_to_terminal_status(event, expected) -> None:
    assert lifecycle.next_status('SCHEDULED', event) is expected


@pytest.mark.parametrize('current', [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED])
@pytest.mark.parametrize('event', list(AppointmentEvent))
def test_terminal_statuses_reject_every_event(current, event) -> None:
    assert current in lifecycle.TERMINAL_STATUSES

    with pytest.raises(InvalidStateTransition, match='already'):
        lifecycle.next_status(current, event)


def test_complete_transition_stamps_end_time() -> None:
    repository = _RecordingRepository()
    appointment = SimpleNamespace(id=7, status='SCHEDULED')
    now = datetime(2026, 1, 5, 10, 42)

    target = lifecycle.apply_transition(repository, appointment, AppointmentEvent.COMPLETE, now)

    assert target is AppointmentStatus.COMPLETED
    assert repository.calls == [(7, AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED, now)]


def test_cancel_transition_keeps_end_time() -> None:
    repository = _RecordingRepository()
    appointment = SimpleNamespace(id=7, status='SCHEDULED')

    lifecycle.apply_transition(repository, appointment, AppointmentEvent.CANCEL, datetime(2026, 1, 5, 9, 0))

    assert repository.calls[0][3] is None


def test_lost_compare_and_set_is_reported_as_invalid_transition() -> None:
    repository = _RecordingRepository(succeeds=False)
    appointment = SimpleNamespace(id=7, status='SCHEDULED')

    with pytest.raises(InvalidStateTransition):
        lifecycle.apply_transition(repository, appointment, AppointmentEvent.CANCEL, datetime(2026, 1, 5, 9, 0))


def test_terminal_appointment_never_reaches_the_database() -> None:
    repository = _RecordingRepository()
    appointment = SimpleNamespace(id=7, status='CANCELLED')

    with pytest.raises(InvalidStateTransition):
        lifecycle.apply_transition(repository, appointment, AppointmentEvent.COMPLETE, datetime(2026, 1, 5, 9, 0))

    assert repository.calls == []


def test_lead_time_boundary() -> None:
    now = datetime(2026, 1, 5, 7, 0)

    with pytest.raises(InvalidRequest):
        lifecycle.check_lead_time(datetime(2026, 1, 5, 8, 0), now)

    lifecycle.check_lead_time(datetime(2026, 1, 5, 8, 0, 1), now)
