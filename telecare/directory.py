"""Read-only lookups of doctor and patient profiles.

Lookups return frozen snapshots so nothing downstream mutates a shared
object graph.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from telecare.models.doctor import Doctor
from telecare.models.patient import Patient
from telecare.models.user import User


@dataclass(frozen=True)
class DoctorProfile:
    id: int
    user_id: int
    name: str
    email: str
    last_name: str | None = None
    specialization: str | None = None


@dataclass(frozen=True)
class PatientProfile:
    id: int
    user_id: int
    name: str
    email: str


def _doctor_snapshot(doctor: Doctor, user: User) -> DoctorProfile:
    return DoctorProfile(
        id=doctor.id,
        user_id=user.id,
        name=user.name,
        email=user.email,
        last_name=doctor.last_name,
        specialization=doctor.specialization,
    )


def _patient_snapshot(patient: Patient, user: User) -> PatientProfile:
    return PatientProfile(id=patient.id, user_id=user.id, name=user.name, email=user.email)


class Directory:
    def __init__(self, db: Session):
        self.db = db

    def lookup_doctor(self, doctor_id: int) -> DoctorProfile | None:
        row = self.db.execute(
            select(Doctor, User).join(User, User.id == Doctor.user_id).where(Doctor.id == doctor_id)
        ).first()
        return _doctor_snapshot(*row) if row else None

    def lookup_doctor_by_caller(self, user_id: int) -> DoctorProfile | None:
        row = self.db.execute(
            select(Doctor, User).join(User, User.id == Doctor.user_id).where(Doctor.user_id == user_id)
        ).first()
        return _doctor_snapshot(*row) if row else None

    def lookup_patient(self, patient_id: int) -> PatientProfile | None:
        row = self.db.execute(
            select(Patient, User).join(User, User.id == Patient.user_id).where(Patient.id == patient_id)
        ).first()
        return _patient_snapshot(*row) if row else None

    def lookup_patient_by_caller(self, user_id: int) -> PatientProfile | None:
        row = self.db.execute(
            select(Patient, User).join(User, User.id == Patient.user_id).where(Patient.user_id == user_id)
        ).first()
        return _patient_snapshot(*row) if row else None
