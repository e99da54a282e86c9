import logging

from sqlalchemy.orm import Session

from telecare.auth.identity import CallerIdentity
from telecare.core.clock import SystemClock
from telecare.core.errors import Forbidden, NotFound
from telecare.database import run_with_retries
from telecare.directory import Directory, DoctorProfile, PatientProfile
from telecare.models.appointment import Appointment
from telecare.scheduling import lifecycle
from telecare.scheduling.lifecycle import AppointmentEvent
from telecare.scheduling.notices import notify_cancellation
from telecare.scheduling.repository import AppointmentRepository


logger = logging.getLogger(__name__)


def load_participants(
    repository: AppointmentRepository,
    directory: Directory,
    appointment_id: int,
) -> tuple[Appointment, DoctorProfile, PatientProfile]:
    appointment = repository.get(appointment_id)
    if appointment is None:
        raise NotFound('Appointment not found.')

    doctor = directory.lookup_doctor(appointment.doctor_id)
    patient = directory.lookup_patient(appointment.patient_id)
    if doctor is None or patient is None:
        raise NotFound('Appointment participants not found.')
    return appointment, doctor, patient


class TransitionService:
    """Cancels or completes an existing appointment on behalf of a participant."""

    def __init__(self, db: Session, dispatcher, clock=None, directory: Directory | None = None):
        self.db = db
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.directory = directory or Directory(db)
        self.repository = AppointmentRepository(db)

    def cancel(self, caller: CallerIdentity, appointment_id: int) -> Appointment:
        def run():
            appointment, doctor, patient = load_participants(self.repository, self.directory, appointment_id)

            if caller.user_id not in (patient.user_id, doctor.user_id):
                raise Forbidden('You do not have permission to cancel this appointment.')

            lifecycle.apply_transition(self.repository, appointment, AppointmentEvent.CANCEL, self.clock.now())
            self.db.commit()
            self.db.refresh(appointment)
            return appointment, doctor, patient

        appointment, doctor, patient = run_with_retries(run, session=self.db)
        logger.info('Appointment %s cancelled by user %s', appointment.id, caller.user_id)

        notify_cancellation(self.dispatcher, appointment, patient, doctor, cancelled_by_user_id=caller.user_id)
        return appointment

    def complete(self, caller: CallerIdentity, appointment_id: int) -> Appointment:
        def run():
            appointment, doctor, _ = load_participants(self.repository, self.directory, appointment_id)

            if caller.user_id != doctor.user_id:
                raise Forbidden('Only the assigned doctor can mark this appointment as completed.')

            lifecycle.apply_transition(self.repository, appointment, AppointmentEvent.COMPLETE, self.clock.now())
            self.db.commit()
            self.db.refresh(appointment)
            return appointment

        appointment = run_with_retries(run, session=self.db)
        logger.info('Appointment %s completed by doctor user %s', appointment.id, caller.user_id)
        return appointment
