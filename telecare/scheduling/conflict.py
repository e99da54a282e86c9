from datetime import datetime, timedelta

from telecare.core.errors import InvalidRequest
from telecare.scheduling.repository import AppointmentRepository


BUFFER = timedelta(minutes=60)


class ConflictDetector:
    """Decides whether a candidate slot collides with a doctor's schedule.

    Every appointment owns the window ``[start - BUFFER, end)``, the rest
    period before it plus the slot itself. Two appointments collide when
    their windows overlap, whichever of them was booked first; only
    ``SCHEDULED`` appointments block. Read-only.
    """

    def __init__(self, repository: AppointmentRepository):
        self.repository = repository

    def conflicting_appointments(self, doctor_id: int, candidate_start: datetime, candidate_end: datetime):
        if candidate_end <= candidate_start:
            raise InvalidRequest('Appointment end must be after its start.')

        # [s - B, e) meets [cs - B, ce)  <=>  [s, e) meets [cs - B, ce + B)
        try:
            check_start = candidate_start - BUFFER
            check_end = candidate_end + BUFFER
        except OverflowError as exc:
            raise InvalidRequest('Requested time is out of range.') from exc
        return self.repository.find_overlapping(doctor_id, check_start, check_end)

    def has_conflict(self, doctor_id: int, candidate_start: datetime, candidate_end: datetime) -> bool:
        return bool(self.conflicting_appointments(doctor_id, candidate_start, candidate_end))
