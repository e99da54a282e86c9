import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import FakeDispatcher, seed_directory
from telecare.core.clock import FixedClock
from telecare.core.errors import Conflict, InvalidStateTransition
from telecare.database import Base
from telecare.models.appointment import Appointment
from telecare.scheduling.booking import BookingService
from telecare.scheduling.locks import DoctorLockRegistry
from telecare.scheduling.transitions import TransitionService


@pytest.fixture
def threaded_sessions(tmp_path):
    engine = create_engine(
        f'sqlite:///{tmp_path / "concurrency.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


def _run_concurrently(workers: int, job):
    barrier = threading.Barrier(workers)
    results = [None] * workers

    def run(index: int) -> None:
        barrier.wait()
        try:
            results[index] = job(index)
        except Exception as exc:  # collected and asserted on by the test
            results[index] = exc

    threads = [threading.Thread(target=run, args=(index,)) for index in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


def test_concurrent_overlapping_bookings_admit_exactly_one(threaded_sessions) -> None:
    setup = threaded_sessions()
    people = seed_directory(setup)
    setup.close()

    clock = FixedClock(datetime(2026, 1, 5, 7, 0))
    locks = DoctorLockRegistry()
    workers = 8

    def book(index: int):
        db = threaded_sessions()
        try:
            start = datetime(2026, 1, 5, 10, 0) + timedelta(minutes=5 * index)
            return BookingService(db, FakeDispatcher(), clock=clock, locks=locks).book(
                people.patient, people.doctor_id, start
            ).id
        finally:
            db.close()

    results = _run_concurrently(workers, book)

    successes = [result for result in results if isinstance(result, int)]
    conflicts = [result for result in results if isinstance(result, Conflict)]
    assert len(successes) == 1
    assert len(conflicts) == workers - 1

    check = threaded_sessions()
    try:
        assert check.query(Appointment).filter(Appointment.doctor_id == people.doctor_id).count() == 1
    finally:
        check.close()


def test_bookings_for_different_doctors_are_independent(threaded_sessions) -> None:
    setup = threaded_sessions()
    people = seed_directory(setup)
    setup.close()

    clock = FixedClock(datetime(2026, 1, 5, 7, 0))
    locks = DoctorLockRegistry()
    doctor_ids = [people.doctor_id, people.other_doctor_id]

    def book(index: int):
        db = threaded_sessions()
        try:
            return BookingService(db, FakeDispatcher(), clock=clock, locks=locks).book(
                people.patient, doctor_ids[index], datetime(2026, 1, 5, 10, 0)
            ).id
        finally:
            db.close()

    results = _run_concurrently(2, book)

    assert all(isinstance(result, int) for result in results)


def test_racing_cancel_and_complete_have_one_winner(threaded_sessions) -> None:
    setup = threaded_sessions()
    people = seed_directory(setup)
    clock = FixedClock(datetime(2026, 1, 5, 7, 0))
    appointment_id = BookingService(setup, FakeDispatcher(), clock=clock, locks=DoctorLockRegistry()).book(
        people.patient, people.doctor_id, datetime(2026, 1, 5, 10, 0)
    ).id
    setup.close()

    def transition(index: int):
        db = threaded_sessions()
        try:
            service = TransitionService(db, FakeDispatcher(), clock=clock)
            if index % 2:
                return service.complete(people.doctor, appointment_id).status
            return service.cancel(people.patient, appointment_id).status
        finally:
            db.close()

    results = _run_concurrently(4, transition)

    winners = [result for result in results if isinstance(result, str)]
    losers = [result for result in results if isinstance(result, InvalidStateTransition)]
    assert len(winners) == 1
    assert len(losers) == 3
