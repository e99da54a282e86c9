from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from telecare.auth.dependencies import get_current_caller
from telecare.auth.identity import CallerIdentity
from telecare.core.errors import SchedulingError
from telecare.database import get_db
from telecare.notifications.dispatcher import get_dispatcher
from telecare.routes.common import get_clock, http_error
from telecare.scheduling.booking import BookingService
from telecare.scheduling.queries import AppointmentQueries
from telecare.scheduling.transitions import TransitionService

router = APIRouter(tags=['appointments'])

MAX_FREE_TEXT_LENGTH = 1000


class BookAppointmentRequest(BaseModel):
    doctor_id: int
    start_time: datetime
    purpose_of_consultation: str | None = None
    initial_symptoms: str | None = None

    @field_validator('purpose_of_consultation', 'initial_symptoms')
    @classmethod
    def validate_free_text(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_FREE_TEXT_LENGTH:
            raise ValueError(f'Must be {MAX_FREE_TEXT_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    start_time: datetime
    end_time: datetime
    status: str
    meeting_link: str
    purpose_of_consultation: str | None = None
    initial_symptoms: str | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookAppointmentRequest,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    clock=Depends(get_clock),
):
    service = BookingService(db, dispatcher, clock=clock)
    try:
        appointment = service.book(
            caller,
            doctor_id=data.doctor_id,
            start_time=data.start_time,
            purpose_of_consultation=data.purpose_of_consultation,
            initial_symptoms=data.initial_symptoms,
        )
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.get('', response_model=list[AppointmentResponse])
def list_my_appointments(
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    try:
        appointments = AppointmentQueries(db).list_my_appointments(caller)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return [AppointmentResponse.model_validate(appointment) for appointment in appointments]


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    try:
        appointment = AppointmentQueries(db).get_appointment(caller, appointment_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.put('/cancel/{appointment_id}', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    clock=Depends(get_clock),
):
    try:
        appointment = TransitionService(db, dispatcher, clock=clock).cancel(caller, appointment_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)


@router.put('/complete/{appointment_id}', response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    clock=Depends(get_clock),
):
    try:
        appointment = TransitionService(db, dispatcher, clock=clock).complete(caller, appointment_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return AppointmentResponse.model_validate(appointment)
