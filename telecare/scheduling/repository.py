from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from telecare.models.appointment import Appointment, AppointmentStatus
from telecare.models.doctor import Doctor


class AppointmentRepository:
    """Persistence queries the scheduling engine depends on."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, appointment_id: int) -> Appointment | None:
        return self.db.get(Appointment, appointment_id)

    def find_overlapping(self, doctor_id: int, window_start: datetime, window_end: datetime) -> list[Appointment]:
        # Half-open intersection: [start, end) meets [window_start, window_end).
        stmt = select(Appointment).where(
            Appointment.doctor_id == doctor_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.start_time < window_end,
            Appointment.end_time > window_start,
        ).order_by(Appointment.start_time.asc())
        return list(self.db.scalars(stmt).all())

    def lock_doctor(self, doctor_id: int) -> None:
        """Take a row lock on the doctor for the rest of the transaction.

        PostgreSQL serialises concurrent bookings for the doctor on it;
        SQLite ignores ``FOR UPDATE``.
        """
        self.db.execute(select(Doctor.id).where(Doctor.id == doctor_id).with_for_update())

    def add(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def compare_and_set_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        target: AppointmentStatus,
        end_time: datetime | None = None,
    ) -> bool:
        values = {'status': target.value}
        if end_time is not None:
            values['end_time'] = end_time

        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_for_doctor(self, doctor_id: int) -> list[Appointment]:
        stmt = select(Appointment).where(Appointment.doctor_id == doctor_id).order_by(Appointment.id.desc())
        return list(self.db.scalars(stmt).all())

    def list_for_patient(self, patient_id: int) -> list[Appointment]:
        stmt = select(Appointment).where(Appointment.patient_id == patient_id).order_by(Appointment.id.desc())
        return list(self.db.scalars(stmt).all())
