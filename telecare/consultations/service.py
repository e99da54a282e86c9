import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from telecare.auth.identity import CallerIdentity
from telecare.core.clock import SystemClock
from telecare.core.errors import Conflict, Forbidden, NotFound, ProfileRequired
from telecare.database import run_with_retries
from telecare.directory import Directory
from telecare.models.appointment import Appointment
from telecare.models.consultation import Consultation
from telecare.scheduling import lifecycle
from telecare.scheduling.lifecycle import AppointmentEvent
from telecare.scheduling.repository import AppointmentRepository
from telecare.scheduling.transitions import load_participants


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsultationNotes:
    subjective_notes: str | None = None
    objective_findings: str | None = None
    assessment: str | None = None
    plan: str | None = None


class ConsultationService:
    """Records the doctor's notes for an appointment.

    Saving notes completes the appointment, through the same lifecycle guard
    as an explicit completion.
    """

    def __init__(self, db: Session, clock=None, directory: Directory | None = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.directory = directory or Directory(db)
        self.repository = AppointmentRepository(db)

    def _find_by_appointment(self, appointment_id: int) -> Consultation | None:
        return self.db.scalars(
            select(Consultation).where(Consultation.appointment_id == appointment_id)
        ).first()

    def create_consultation(self, caller: CallerIdentity, appointment_id: int, notes: ConsultationNotes) -> Consultation:
        def run():
            appointment, doctor, _ = load_participants(self.repository, self.directory, appointment_id)

            if caller.user_id != doctor.user_id:
                raise Forbidden('You are not authorized to create notes for this consultation.')

            if self._find_by_appointment(appointment_id) is not None:
                raise Conflict('Consultation notes already exist for this appointment.')

            now = self.clock.now()
            lifecycle.apply_transition(self.repository, appointment, AppointmentEvent.COMPLETE, now)

            consultation = Consultation(
                appointment_id=appointment.id,
                consultation_date=now,
                subjective_notes=notes.subjective_notes,
                objective_findings=notes.objective_findings,
                assessment=notes.assessment,
                plan=notes.plan,
            )
            self.db.add(consultation)
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                raise Conflict('Consultation notes already exist for this appointment.') from exc
            self.db.refresh(consultation)
            return consultation

        consultation = run_with_retries(run, session=self.db)
        logger.info('Consultation notes saved for appointment %s', appointment_id)
        return consultation

    def get_consultation(self, caller: CallerIdentity, appointment_id: int) -> Consultation:
        def run():
            _, doctor, patient = load_participants(self.repository, self.directory, appointment_id)
            if caller.user_id not in (doctor.user_id, patient.user_id):
                raise Forbidden('You do not have access to these consultation notes.')

            consultation = self._find_by_appointment(appointment_id)
            if consultation is None:
                raise NotFound(f'Consultation notes not found for appointment ID: {appointment_id}')
            return consultation

        return run_with_retries(run, session=self.db)

    def consultation_history(self, caller: CallerIdentity, patient_id: int | None = None) -> list[Consultation]:
        def run():
            resolved_patient_id = patient_id
            if resolved_patient_id is None:
                own_profile = self.directory.lookup_patient_by_caller(caller.user_id)
                if own_profile is None:
                    raise ProfileRequired('Patient profile not found for the current user.')
                resolved_patient_id = own_profile.id

            patient = self.directory.lookup_patient(resolved_patient_id)
            if patient is None:
                raise NotFound('Patient not found.')
            if patient.user_id != caller.user_id and not caller.is_doctor:
                raise Forbidden('Only doctors can read another patient\'s consultation history.')

            stmt = (
                select(Consultation)
                .join(Appointment, Appointment.id == Consultation.appointment_id)
                .where(Appointment.patient_id == resolved_patient_id)
                .order_by(Consultation.consultation_date.desc())
            )
            return list(self.db.scalars(stmt).all())

        return run_with_retries(run, session=self.db)
