from sqlalchemy.orm import Session

from telecare.auth.identity import CallerIdentity
from telecare.core.errors import Forbidden, ProfileRequired
from telecare.database import run_with_retries
from telecare.directory import Directory
from telecare.models.appointment import Appointment
from telecare.scheduling.repository import AppointmentRepository
from telecare.scheduling.transitions import load_participants


class AppointmentQueries:
    def __init__(self, db: Session, directory: Directory | None = None):
        self.db = db
        self.directory = directory or Directory(db)
        self.repository = AppointmentRepository(db)

    def list_my_appointments(self, caller: CallerIdentity) -> list[Appointment]:
        """Appointments of the caller's doctor profile, or patient profile otherwise; newest first."""

        def run():
            if caller.is_doctor:
                doctor = self.directory.lookup_doctor_by_caller(caller.user_id)
                if doctor is None:
                    raise ProfileRequired('Doctor profile not found.')
                return self.repository.list_for_doctor(doctor.id)

            patient = self.directory.lookup_patient_by_caller(caller.user_id)
            if patient is None:
                raise ProfileRequired('Patient profile not found.')
            return self.repository.list_for_patient(patient.id)

        return run_with_retries(run, session=self.db)

    def get_appointment(self, caller: CallerIdentity, appointment_id: int) -> Appointment:
        def run():
            appointment, doctor, patient = load_participants(self.repository, self.directory, appointment_id)
            if caller.user_id not in (doctor.user_id, patient.user_id):
                raise Forbidden('You do not have access to this appointment.')
            return appointment

        return run_with_retries(run, session=self.db)
