import logging
from datetime import datetime

from sqlalchemy.orm import Session

from telecare.auth.identity import CallerIdentity
from telecare.core.clock import SystemClock, to_naive_utc
from telecare.core.errors import Conflict, InvalidRequest, NotFound, ProfileRequired
from telecare.database import run_with_retries
from telecare.directory import Directory
from telecare.models.appointment import Appointment
from telecare.scheduling import lifecycle
from telecare.scheduling.conflict import ConflictDetector
from telecare.scheduling.locks import DoctorLockRegistry, doctor_locks
from telecare.scheduling.meeting import generate_meeting_link
from telecare.scheduling.notices import notify_booking
from telecare.scheduling.repository import AppointmentRepository


logger = logging.getLogger(__name__)


class BookingService:
    """Books a 60-minute consultation for the calling patient.

    The conflict check and the insert run while holding the doctor's lock
    (and, on databases that support it, a row lock on the doctor), so two
    overlapping requests for one doctor can never both commit.
    """

    def __init__(
        self,
        db: Session,
        dispatcher,
        clock=None,
        locks: DoctorLockRegistry | None = None,
        directory: Directory | None = None,
        link_factory=generate_meeting_link,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.locks = locks or doctor_locks
        self.directory = directory or Directory(db)
        self.repository = AppointmentRepository(db)
        self.detector = ConflictDetector(self.repository)
        self.link_factory = link_factory

    def book(
        self,
        caller: CallerIdentity,
        doctor_id: int,
        start_time: datetime,
        purpose_of_consultation: str | None = None,
        initial_symptoms: str | None = None,
    ) -> Appointment:
        patient = self.directory.lookup_patient_by_caller(caller.user_id)
        if patient is None:
            raise ProfileRequired('Patient profile required for booking.')

        doctor = self.directory.lookup_doctor(doctor_id)
        if doctor is None:
            raise NotFound('Doctor not found.')

        try:
            start_time = to_naive_utc(start_time)
            end_time = lifecycle.slot_end(start_time)
        except OverflowError as exc:
            raise InvalidRequest('Requested start time is out of range.') from exc
        lifecycle.check_lead_time(start_time, self.clock.now())

        def insert() -> Appointment:
            self.repository.lock_doctor(doctor.id)
            if self.detector.has_conflict(doctor.id, start_time, end_time):
                raise Conflict('Doctor is not available at the requested time. Please check their schedule.')

            appointment = lifecycle.create_appointment(
                doctor_id=doctor.id,
                patient_id=patient.id,
                start_time=start_time,
                meeting_link=self.link_factory(),
                purpose_of_consultation=purpose_of_consultation,
                initial_symptoms=initial_symptoms,
            )
            self.repository.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
            return appointment

        with self.locks.hold(doctor.id):
            appointment = run_with_retries(insert, session=self.db)

        logger.info(
            'Booked appointment %s for doctor %s and patient %s at %s',
            appointment.id,
            doctor.id,
            patient.id,
            appointment.start_time.isoformat(),
        )
        notify_booking(self.dispatcher, appointment, patient, doctor)
        return appointment
