import os
from datetime import datetime, timedelta
from itertools import count
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('NOTIFICATIONS_ENABLED', 'false')

from telecare.auth.identity import CallerIdentity  # noqa: E402
from telecare.core.clock import FixedClock  # noqa: E402
from telecare.database import Base  # noqa: E402
from telecare.models import consultation, notification  # noqa: E402,F401
from telecare.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from telecare.models.doctor import Doctor  # noqa: E402
from telecare.models.patient import Patient  # noqa: E402
from telecare.models.user import User  # noqa: E402
from telecare.scheduling.locks import DoctorLockRegistry  # noqa: E402


class FakeDispatcher:
    """Captures dispatch calls instead of delivering them."""

    def __init__(self):
        self.calls = []

    def dispatch(self, recipient, template_name, variables, user_id=None):
        self.calls.append(
            SimpleNamespace(recipient=recipient, template_name=template_name, variables=dict(variables), user_id=user_id)
        )

    def templates(self):
        return [call.template_name for call in self.calls]


class ExplodingDispatcher:
    def dispatch(self, recipient, template_name, variables, user_id=None):
        raise RuntimeError('mail queue is down')


def seed_directory(db) -> SimpleNamespace:
    users = [
        User(id=1, name='Alice Grey', email='alice@clinic.test', role='DOCTOR'),
        User(id=2, name='Bob Stone', email='bob@clinic.test', role='DOCTOR'),
        User(id=3, name='Pat Lee', email='pat@example.test', role='PATIENT'),
        User(id=4, name='Quinn Fox', email='quinn@example.test', role='PATIENT'),
        User(id=5, name='Dana Admin', email='dana@clinic.test', role='ADMIN'),
    ]
    db.add_all(users)
    db.add_all(
        [
            Doctor(id=10, user_id=1, first_name='Alice', last_name='Grey', specialization='CARDIOLOGY'),
            Doctor(id=20, user_id=2, first_name='Bob', last_name='Stone', specialization='DERMATOLOGY'),
            Patient(id=30, user_id=3, first_name='Pat', last_name='Lee'),
            Patient(id=40, user_id=4, first_name='Quinn', last_name='Fox'),
        ]
    )
    db.commit()

    return SimpleNamespace(
        doctor_id=10,
        other_doctor_id=20,
        patient_id=30,
        other_patient_id=40,
        doctor=CallerIdentity(user_id=1, roles=frozenset({'DOCTOR'})),
        other_doctor=CallerIdentity(user_id=2, roles=frozenset({'DOCTOR'})),
        patient=CallerIdentity(user_id=3, roles=frozenset({'PATIENT'})),
        other_patient=CallerIdentity(user_id=4, roles=frozenset({'PATIENT'})),
        admin=CallerIdentity(user_id=5, roles=frozenset({'ADMIN'})),
    )


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def people(db):
    return seed_directory(db)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 1, 5, 7, 0))


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def locks():
    return DoctorLockRegistry()


@pytest.fixture
def make_appointment(db):
    sequence = count(1)

    def _make(doctor_id: int, patient_id: int, start: datetime, status: AppointmentStatus = AppointmentStatus.SCHEDULED):
        record = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            start_time=start,
            end_time=start + timedelta(minutes=60),
            status=status.value,
            meeting_link=f'https://meet.example.test/seed-{next(sequence)}',
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make
