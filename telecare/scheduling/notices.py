import logging

from telecare.directory import DoctorProfile, PatientProfile
from telecare.models.appointment import Appointment


logger = logging.getLogger(__name__)

TIME_FORMAT = '%A, %b %d, %Y at %I:%M %p'


def _safe_dispatch(dispatcher, recipient: str, template_name: str, variables: dict, user_id: int) -> None:
    # The transition is committed already; a dispatch failure must not leak.
    try:
        dispatcher.dispatch(recipient, template_name, variables, user_id=user_id)
    except Exception:
        logger.exception('Could not hand %s notification for %s to the dispatcher', template_name, recipient)


def notify_booking(dispatcher, appointment: Appointment, patient: PatientProfile, doctor: DoctorProfile) -> None:
    formatted_time = appointment.start_time.strftime(TIME_FORMAT)

    patient_vars = {
        'patientName': patient.name,
        'doctorName': doctor.name,
        'appointmentTime': formatted_time,
        'isVirtual': True,
        'meetingLink': appointment.meeting_link,
        'purposeOfConsultation': appointment.purpose_of_consultation,
    }
    _safe_dispatch(dispatcher, patient.email, 'patient-appointment', patient_vars, patient.user_id)
    logger.info('Queued booking confirmation for patient %s', patient.email)

    doctor_vars = {
        'doctorName': doctor.name,
        'patientFullName': patient.name,
        'appointmentTime': formatted_time,
        'isVirtual': True,
        'meetingLink': appointment.meeting_link,
        'initialSymptoms': appointment.initial_symptoms,
        'purposeOfConsultation': appointment.purpose_of_consultation,
    }
    _safe_dispatch(dispatcher, doctor.email, 'doctor-appointment', doctor_vars, doctor.user_id)
    logger.info('Queued booking confirmation for doctor %s', doctor.email)


def notify_cancellation(
    dispatcher,
    appointment: Appointment,
    patient: PatientProfile,
    doctor: DoctorProfile,
    cancelled_by_user_id: int,
) -> None:
    cancelling_party = patient.name if cancelled_by_user_id == patient.user_id else doctor.name
    base_vars = {
        'cancellingPartyName': cancelling_party,
        'appointmentTime': appointment.start_time.strftime(TIME_FORMAT),
        'doctorName': doctor.last_name or doctor.name,
        'patientFullName': patient.name,
    }

    for recipient in (patient, doctor):
        variables = dict(base_vars, recipientName=recipient.name)
        _safe_dispatch(dispatcher, recipient.email, 'appointment-cancellation', variables, recipient.user_id)
        logger.info('Queued cancellation notice for %s', recipient.email)
